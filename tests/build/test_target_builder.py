"""
Tests for cross compiling the standard library crates.

cargo is simulated by FakeRunner (see tests/mocks/toolchain.py).
"""

from pathlib import Path

import pytest

from sysrootkit.build.target import (
    LIB_RS,
    TargetCrateBuilder,
    crate_source_dir,
    resolve_target,
)
from sysrootkit.core.context import Profile, SpecTarget, TripleTarget
from sysrootkit.core.exceptions import CommandError, HarvestError, TargetBuildError
from tests.mocks import TARGET, FakeRunner


@pytest.fixture
def builder(events, fake_runner):
    return TargetCrateBuilder(events, fake_runner)


def build_dirs(runner: FakeRunner):
    return [Path(c["cwd"]) for c in runner.calls if c["cmd"][:2] == ["cargo", "build"]]


class TestHelpers:
    def test_crate_source_dir(self, tmp_path):
        assert crate_source_dir(tmp_path, "core") == tmp_path / "libcore"
        assert crate_source_dir(tmp_path, "Alloc") == tmp_path / "liballoc"

    def test_resolve_triple_target(self):
        triple, spec_file = resolve_target(TripleTarget(TARGET))
        assert triple == TARGET
        assert spec_file == Path(f"{TARGET}.json")

    def test_resolve_spec_target(self, tmp_path):
        spec = tmp_path / "thumbv7m-none-eabi.json"
        spec.write_text("{}")

        triple, spec_file = resolve_target(SpecTarget(spec))

        assert triple == "thumbv7m-none-eabi"
        assert spec_file == spec.resolve()

    def test_resolve_missing_spec_target(self, tmp_path):
        with pytest.raises(TargetBuildError, match="not found"):
            resolve_target(SpecTarget(tmp_path / "missing.json"))


class TestBuild:
    """Test TargetCrateBuilder.build()."""

    def test_cargo_commands(self, builder, fake_runner, make_context):
        builder.build(make_context(), ["core"])

        assert fake_runner.commands() == [
            ["cargo", "new", "--lib", "--vcs", "none", "sysroot"],
            ["cargo", "build", "--target", TARGET],
        ]

    def test_manifest_declares_path_dependencies(
        self, builder, fake_runner, make_context
    ):
        ctx = make_context()

        builder.build(ctx, ["alloc", "core"])

        src = ctx.src_dir.absolute()
        manifest = fake_runner.manifest_at_build
        assert manifest.count("[dependencies]") == 1
        assert f"alloc = {{ path = '{src / 'liballoc'}' }}\n" in manifest
        assert f"core = {{ path = '{src / 'libcore'}' }}\n" in manifest
        assert manifest.index("alloc =") < manifest.index("core =")

    def test_dependencies_header_added_when_missing(self, builder, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        (project / "Cargo.toml").write_text('[package]\nname = "sysroot"')

        builder.declare_dependencies(project, ["core"], tmp_path / "src")

        assert (project / "Cargo.toml").read_text() == (
            '[package]\nname = "sysroot"\n\n[dependencies]\n'
            f"core = {{ path = '{tmp_path / 'src' / 'libcore'}' }}\n"
        )

    def test_entry_module_is_no_std(self, builder, tmp_path):
        project = tmp_path / "project"
        (project / "src").mkdir(parents=True)
        (project / "src" / "lib.rs").write_text("pub fn add() {}\n")

        builder.override_entry_module(project)

        assert (project / "src" / "lib.rs").read_text() == LIB_RS

    def test_announces_crates(self, builder, make_context, recorder):
        builder.build(make_context(), ["core", "alloc"])

        messages = [e.message for e in recorder.events]
        assert "will build the following crates: ['core', 'alloc']" in messages

    def test_release_profile(self, builder, fake_runner, make_context, tmp_path):
        ctx = make_context(profile=Profile.RELEASE)

        report = builder.build(ctx, ["core"])

        assert ["cargo", "build", "--target", TARGET, "--release"] in fake_runner.commands()
        lib_dir = tmp_path / "out" / "release" / "lib" / "rustlib" / TARGET / "lib"
        assert all(p.parent == lib_dir for p in report.artifacts)

    def test_verbose_is_forwarded(self, builder, fake_runner, make_context):
        builder.build(make_context(verbose=True), ["core"])

        new_call, build_call = fake_runner.calls
        assert new_call["cmd"] == ["cargo", "new", "--lib", "--vcs", "none", "--verbose", "sysroot"]
        assert build_call["cmd"] == ["cargo", "build", "--target", TARGET, "--verbose"]
        assert new_call["show_output"] and build_call["show_output"]

    def test_artifacts_are_harvested(self, builder, make_context):
        ctx = make_context()

        report = builder.build(ctx, ["core", "alloc"])

        lib_dir = ctx.target_lib_dir(TARGET)
        assert sorted(p.name for p in lib_dir.iterdir()) == [
            "liballoc-0123abcd.rlib",
            "libcore-0123abcd.rlib",
            "libsysroot-0123abcd.rlib",
        ]
        assert report.triple == TARGET
        assert report.crates == ("core", "alloc")
        assert len(report.artifacts) == 3

    def test_workspace_is_removed(self, builder, fake_runner, make_context):
        builder.build(make_context(), ["core"])

        (workdir,) = build_dirs(fake_runner)
        assert not workdir.exists()

    def test_spec_file_is_copied_into_project(
        self, builder, fake_runner, make_context, tmp_path
    ):
        spec = tmp_path / "thumbv7m-none-eabi.json"
        spec.write_text('{"arch": "arm"}')
        ctx = make_context(target=SpecTarget(spec))

        report = builder.build(ctx, ["core"])

        assert "thumbv7m-none-eabi.json" in fake_runner.project_files_at_build
        assert ["cargo", "build", "--target", "thumbv7m-none-eabi"] in fake_runner.commands()
        assert report.triple == "thumbv7m-none-eabi"
        assert spec.read_text() == '{"arch": "arm"}'

    def test_triple_target_without_spec_file(self, builder, fake_runner, make_context):
        builder.build(make_context(), ["core"])

        assert f"{TARGET}.json" not in fake_runner.project_files_at_build

    def test_triple_target_with_spec_file_in_cwd(
        self, builder, fake_runner, make_context, tmp_path, monkeypatch
    ):
        monkeypatch.chdir(tmp_path)
        (tmp_path / f"{TARGET}.json").write_text("{}")

        builder.build(make_context(), ["core"])

        assert f"{TARGET}.json" in fake_runner.project_files_at_build

    def test_cargo_failure(self, events, host_sysroot, make_context):
        runner = FakeRunner(sysroot=host_sysroot, fail_on="build")
        builder = TargetCrateBuilder(events, runner)
        ctx = make_context()

        with pytest.raises(CommandError) as exc_info:
            builder.build(ctx, ["core"])

        assert exc_info.value.returncode == 101
        (workdir,) = [Path(c["cwd"]) for c in runner.calls if c["cmd"][1] == "build"]
        assert not workdir.exists()
        assert not ctx.target_lib_dir(TARGET).exists()

    def test_missing_deps_directory(self, events, make_context, host_sysroot):
        class NoOutputRunner(FakeRunner):
            def run(self, cmd, cwd=None, show_output=False):
                if cmd[:2] == ["cargo", "build"]:
                    self.calls.append({"cmd": list(cmd), "cwd": cwd})
                    return
                super().run(cmd, cwd=cwd, show_output=show_output)

        builder = TargetCrateBuilder(events, NoOutputRunner(sysroot=host_sysroot))

        with pytest.raises(HarvestError, match="no artifacts"):
            builder.build(make_context(), ["core"])

    def test_cargo_new_without_manifest(self, events, make_context):
        class BrokenRunner(FakeRunner):
            def run(self, cmd, cwd=None, show_output=False):
                self.calls.append({"cmd": list(cmd), "cwd": cwd})

        builder = TargetCrateBuilder(events, BrokenRunner())

        with pytest.raises(TargetBuildError, match="Cargo.toml"):
            builder.build(make_context(), ["core"])
