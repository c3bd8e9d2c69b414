"""
Pytest configuration and shared fixtures for SysrootKit tests.
"""

from pathlib import Path

import pytest

from sysrootkit.core.context import BuildContext, Profile, SourceSnapshot, TripleTarget
from sysrootkit.core.events import EventBus, RecordingObserver
from tests.mocks import COMMIT_HASH, HOST, TARGET, SOURCE_FILES, FakeRunner, build_tarball


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that need a nightly toolchain and network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Source Tarballs
# ============================================================================


@pytest.fixture
def source_tarball_bytes(tmp_path: Path) -> bytes:
    """Bytes of a small rust source tarball."""
    archive = build_tarball(tmp_path / "rust-src.tar.gz", SOURCE_FILES)
    return archive.read_bytes()


# ============================================================================
# Toolchain Fakes
# ============================================================================


@pytest.fixture
def host_sysroot(tmp_path: Path) -> Path:
    """Fake rustc installation root with a host runtime directory."""
    root = tmp_path / "toolchain"
    lib = root / "lib" / "rustlib" / HOST / "lib"
    lib.mkdir(parents=True)
    (lib / "libstd-0123abcd.rlib").write_bytes(b"std" * 100)
    (lib / "libstd-0123abcd.so").write_bytes(b"std-dylib")
    (root / "lib" / "rustlib" / HOST / "codegen-backends").mkdir()
    (root / "lib" / "rustlib" / HOST / "codegen-backends" / "backend.so").write_bytes(
        b"backend"
    )
    return root


@pytest.fixture
def fake_runner(host_sysroot: Path) -> FakeRunner:
    return FakeRunner(sysroot=host_sysroot)


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def events(recorder: RecordingObserver) -> EventBus:
    return EventBus([recorder])


@pytest.fixture
def make_context(tmp_path: Path):
    """Factory for BuildContext objects rooted in tmp_path."""

    def factory(**overrides) -> BuildContext:
        values = dict(
            host=HOST,
            target=TripleTarget(TARGET),
            out_dir=tmp_path / "out",
            profile=Profile.DEBUG,
            snapshot=SourceSnapshot(COMMIT_HASH, None),
            verbose=False,
            config_path=tmp_path / "sysroot.yaml",
        )
        values.update(overrides)
        return BuildContext(**values)

    return factory
