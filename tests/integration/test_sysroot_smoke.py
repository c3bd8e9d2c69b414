"""
End-to-end sysroot build against the installed toolchain.

Needs a nightly rustc/cargo on PATH and network access to fetch the
matching sources:

    pytest --integration tests/integration
"""

import shutil

import pytest

from sysrootkit.cli.parser import CLI
from sysrootkit.toolchain.rustc import Channel, version_meta

pytestmark = pytest.mark.integration

# A built-in target that needs nothing beyond core.
TARGET = "thumbv7m-none-eabi"


@pytest.fixture(scope="module")
def nightly_meta():
    if shutil.which("rustc") is None or shutil.which("cargo") is None:
        pytest.skip("rustc and cargo are required")
    meta = version_meta()
    if meta.channel is not Channel.NIGHTLY:
        pytest.skip(f"nightly rustc required, found {meta.release}")
    return meta


def test_build_core_sysroot(nightly_meta, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "sysroot"

    exit_code = CLI().run(["sysroot", "--target", TARGET, str(out_dir)])

    assert exit_code == 0
    assert (out_dir / "src" / ".commit-hash").read_text() == nightly_meta.commit_hash
    host_dir = out_dir / "debug" / "lib" / "rustlib" / nightly_meta.host
    assert host_dir.is_dir()
    target_lib = out_dir / "debug" / "lib" / "rustlib" / TARGET / "lib"
    assert any(p.name.startswith("libcore-") for p in target_lib.iterdir())


def test_second_build_reuses_sources(nightly_meta, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out_dir = tmp_path / "sysroot"
    cli = CLI()

    assert cli.run(["sysroot", "--target", TARGET, str(out_dir)]) == 0
    marker = out_dir / "src" / ".commit-hash"
    mtime = marker.stat().st_mtime_ns

    assert cli.run(["sysroot", "--target", TARGET, "--release", str(out_dir)]) == 0
    assert marker.stat().st_mtime_ns == mtime
    assert (out_dir / "release" / "lib" / "rustlib" / TARGET / "lib").is_dir()
