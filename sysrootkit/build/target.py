"""
Cross compilation of the standard library crates.

TargetCrateBuilder generates a throwaway Cargo project whose only purpose is
to depend on the selected standard library crates (by path, inside the
source cache), builds it for the requested target, and copies everything
cargo produced in the dependency output directory into the sysroot.

The project lives in a private temporary directory that is removed when the
build finishes, whether it succeeded or failed.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from sysrootkit.core.context import BuildContext, Profile, SpecTarget, Target
from sysrootkit.core.events import EventBus
from sysrootkit.core.exceptions import HarvestError, TargetBuildError
from sysrootkit.core.filesystem import FilesystemError, copy_files, temporary_directory
from sysrootkit.core.process import CommandRunner

logger = logging.getLogger(__name__)

STAGE = "target"

CARGO = "cargo"
PROJECT_NAME = "sysroot"

# The sysroot crates are the runtime itself; the shim must not link std.
LIB_RS = "#![no_std]"


@dataclass(frozen=True)
class BuildReport:
    """Result of building the target crates."""

    triple: str
    crates: Tuple[str, ...]
    artifacts: Tuple[Path, ...]


def crate_source_dir(src_dir: Path, crate: str) -> Path:
    """Location of a standard library crate inside the source cache."""
    return src_dir / f"lib{crate.lower()}"


def resolve_target(target: Target) -> Tuple[str, Path]:
    """
    Triple name and target specification file for a target.

    For a SpecTarget the triple is the file stem and the file is
    canonicalized. For a TripleTarget the spec file is the conventional
    `<triple>.json`, which is only used if it exists.

    Raises:
        TargetBuildError: If a specification file does not exist
    """
    if isinstance(target, SpecTarget):
        try:
            return target.triple, target.spec_file
        except OSError as e:
            raise TargetBuildError(
                f"Target specification file not found: {target.path}"
            ) from e
    return target.triple, target.spec_file


class TargetCrateBuilder:
    """Build standard library crates for a foreign target."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        runner: Optional[CommandRunner] = None,
    ):
        self.events = events or EventBus()
        self.runner = runner or CommandRunner()

    def build(self, ctx: BuildContext, crates: Sequence[str]) -> BuildReport:
        """
        Build crates for ctx.target and copy the artifacts into the sysroot.

        Args:
            ctx: Build context
            crates: Crates to build (see SysrootConfig.crates)

        Returns:
            BuildReport listing the harvested artifacts

        Raises:
            TargetBuildError: If any step fails
            CommandError: If cargo exits with a non-zero status
        """
        triple, spec_file = resolve_target(ctx.target)
        src_dir = ctx.src_dir.absolute()

        with temporary_directory(prefix="sysroot") as temp_dir:
            project = self.stage(temp_dir, ctx.verbose)
            self.declare_dependencies(project, crates, src_dir)
            self.override_entry_module(project)
            self.install_target_spec(project, triple, spec_file)
            self.cargo_build(project, triple, ctx.profile, ctx.verbose)
            artifacts = self.harvest(project, triple, ctx)

        return BuildReport(triple, tuple(crates), tuple(artifacts))

    def stage(self, workdir: Path, verbose: bool = False) -> Path:
        """Create the skeleton library project inside workdir."""
        cmd = [CARGO, "new", "--lib", "--vcs", "none"]
        if verbose:
            cmd.append("--verbose")
        cmd.append(PROJECT_NAME)
        self.runner.run(cmd, cwd=workdir, show_output=verbose)

        project = workdir / PROJECT_NAME
        if not (project / "Cargo.toml").is_file():
            raise TargetBuildError(f"cargo new did not create {project / 'Cargo.toml'}")
        return project

    def declare_dependencies(
        self, project: Path, crates: Sequence[str], src_dir: Path
    ) -> None:
        """Append one path dependency per crate to the project's manifest."""
        manifest = project / "Cargo.toml"
        self.events.info(
            STAGE, f"will build the following crates: {list(crates)}", crates=list(crates)
        )

        try:
            toml = manifest.read_text(encoding="utf-8")
            if "[dependencies]" not in toml:
                toml = toml.rstrip("\n") + "\n\n[dependencies]\n"
            elif not toml.endswith("\n"):
                toml += "\n"

            for crate in crates:
                path = crate_source_dir(src_dir, crate)
                toml += f"{crate} = {{ path = '{path}' }}\n"

            manifest.write_text(toml, encoding="utf-8")
        except OSError as e:
            raise TargetBuildError(f"Failed to update {manifest}: {e}") from e

        logger.debug(f"sysroot's Cargo.toml:\n{toml}")

    def override_entry_module(self, project: Path) -> None:
        """Replace src/lib.rs with a freestanding crate root."""
        lib_rs = project / "src" / "lib.rs"
        try:
            lib_rs.write_text(LIB_RS, encoding="utf-8")
        except OSError as e:
            raise TargetBuildError(f"Failed to write {lib_rs}: {e}") from e

    def install_target_spec(self, project: Path, triple: str, spec_file: Path) -> Optional[Path]:
        """Copy the target specification file into the project, if there is one."""
        if not spec_file.is_file():
            return None

        self.events.info(STAGE, "copy target specification file", spec_file=str(spec_file))
        destination = project / f"{triple}.json"
        try:
            shutil.copyfile(spec_file, destination)
        except OSError as e:
            raise TargetBuildError(f"Failed to copy {spec_file}: {e}") from e
        return destination

    def cargo_build(
        self, project: Path, triple: str, profile: Profile, verbose: bool = False
    ) -> None:
        self.events.info(STAGE, "building the target crates", triple=triple)
        cmd = [CARGO, "build", "--target", triple]
        if profile is Profile.RELEASE:
            cmd.append("--release")
        if verbose:
            cmd.append("--verbose")
        self.runner.run(cmd, cwd=project, show_output=verbose)

    def harvest(self, project: Path, triple: str, ctx: BuildContext) -> List[Path]:
        """Copy every file cargo built for the dependencies into the sysroot."""
        self.events.info(STAGE, "copy the target crates to the sysroot")
        deps_dir = project / "target" / triple / ctx.profile.value / "deps"
        lib_dir = ctx.target_lib_dir(triple)

        if not deps_dir.is_dir():
            raise HarvestError(f"Build produced no artifacts directory: {deps_dir}")

        try:
            artifacts = copy_files(deps_dir, lib_dir)
        except FilesystemError as e:
            raise HarvestError(str(e)) from e

        logger.debug(f"Copied {len(artifacts)} artifacts to {lib_dir}")
        return artifacts
