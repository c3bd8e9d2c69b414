"""
Request model for a single sysroot build.

A BuildContext describes one invocation: which toolchain snapshot is
installed, which target to build for, and where the sysroot goes. It is
created once by the CLI and passed read-only through every pipeline stage.

Example:
    >>> from datetime import date
    >>> ctx = BuildContext(
    ...     host="x86_64-unknown-linux-gnu",
    ...     target=parse_target("arm-unknown-linux-gnueabihf"),
    ...     out_dir=Path("sysroot"),
    ...     profile=Profile.DEBUG,
    ...     snapshot=SourceSnapshot("abc123", date(2016, 3, 1)),
    ... )
    >>> ctx.target_lib_dir("arm-unknown-linux-gnueabihf")
    PosixPath('sysroot/debug/lib/rustlib/arm-unknown-linux-gnueabihf/lib')
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional, Union

MARKER_FILE_NAME = ".commit-hash"


class Profile(Enum):
    """Cargo build profile."""

    DEBUG = "debug"
    RELEASE = "release"

    @classmethod
    def from_release_flag(cls, release: bool) -> "Profile":
        return cls.RELEASE if release else cls.DEBUG

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TripleTarget:
    """
    A built-in target named by its triple.

    Attributes:
        name: Target triple (e.g., 'arm-unknown-linux-gnueabihf')
    """

    name: str

    @property
    def triple(self) -> str:
        return self.name

    @property
    def spec_file(self) -> Path:
        """Conventional spec file name, used only if it exists."""
        return Path(f"{self.name}.json")


@dataclass(frozen=True)
class SpecTarget:
    """
    A custom target described by a target specification file.

    Attributes:
        path: Path to the `<triple>.json` specification file
    """

    path: Path

    @property
    def triple(self) -> str:
        return self.path.stem

    @property
    def spec_file(self) -> Path:
        return self.path.resolve(strict=True)


Target = Union[TripleTarget, SpecTarget]


def parse_target(text: str) -> Target:
    """
    Interpret a --target argument.

    Args:
        text: Triple name or path to a target specification file

    Returns:
        SpecTarget if text names a JSON file, TripleTarget otherwise
    """
    if text.endswith("json"):
        return SpecTarget(Path(text))
    return TripleTarget(text)


@dataclass(frozen=True)
class SourceSnapshot:
    """
    Identity of the standard library sources matching the installed compiler.

    Attributes:
        commit_hash: Full commit hash reported by `rustc -vV`
        commit_date: Commit date reported by `rustc -vV`
    """

    commit_hash: str
    commit_date: Optional[date] = None

    @property
    def nightly_date(self) -> Optional[date]:
        # Nightlies are usually published the day after the commit.
        if self.commit_date is None:
            return None
        return self.commit_date + timedelta(days=1)


@dataclass(frozen=True)
class BuildContext:
    """
    Immutable description of one sysroot build.

    Attributes:
        host: Host triple of the installed compiler
        target: Target to build the sysroot for
        out_dir: Root of the sysroot output tree
        profile: Build profile (debug or release)
        snapshot: Source snapshot of the installed compiler
        verbose: Pass --verbose to cargo and show its output
        config_path: Optional explicit path to sysroot.yaml
    """

    host: str
    target: Target
    out_dir: Path
    profile: Profile
    snapshot: SourceSnapshot
    verbose: bool = False
    config_path: Optional[Path] = None

    @property
    def src_dir(self) -> Path:
        return self.out_dir / "src"

    @property
    def hash_file(self) -> Path:
        return self.src_dir / MARKER_FILE_NAME

    @property
    def rustlib_dir(self) -> Path:
        return self.out_dir / self.profile.value / "lib" / "rustlib"

    @property
    def host_lib_dir(self) -> Path:
        return self.rustlib_dir / self.host

    def target_lib_dir(self, triple: str) -> Path:
        return self.rustlib_dir / triple / "lib"
