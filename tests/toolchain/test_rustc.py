"""
Tests for rustc introspection.
"""

from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest

from sysrootkit.core.exceptions import ToolchainError
from sysrootkit.toolchain.rustc import (
    Channel,
    VersionMeta,
    parse_version_meta,
    print_sysroot,
    require_nightly,
    version_meta,
)

NIGHTLY_OUTPUT = """rustc 1.8.0-nightly (fae516277 2016-02-13)
binary: rustc
commit-hash: fae516277a1ac94c1eb6e6e8a0cc1aa8fcc76d66
commit-date: 2016-02-13
host: x86_64-unknown-linux-gnu
release: 1.8.0-nightly
LLVM version: 3.8
"""

STABLE_OUTPUT = """rustc 1.75.0 (82e1608df 2023-12-21)
binary: rustc
commit-hash: 82e1608dfa6e0b5569232559e3d385fea5a93112
commit-date: 2023-12-21
host: aarch64-apple-darwin
release: 1.75.0
LLVM version: 17.0.6
"""


class TestChannel:
    @pytest.mark.parametrize(
        "release,expected",
        [
            ("1.8.0-nightly", Channel.NIGHTLY),
            ("1.7.0-beta.3", Channel.BETA),
            ("1.9.0-dev", Channel.DEV),
            ("1.75.0", Channel.STABLE),
        ],
    )
    def test_from_release(self, release, expected):
        assert Channel.from_release(release) is expected


class TestParseVersionMeta:
    """Test parse_version_meta()."""

    def test_nightly(self):
        meta = parse_version_meta(NIGHTLY_OUTPUT)

        assert meta.host == "x86_64-unknown-linux-gnu"
        assert meta.release == "1.8.0-nightly"
        assert meta.channel is Channel.NIGHTLY
        assert meta.commit_hash == "fae516277a1ac94c1eb6e6e8a0cc1aa8fcc76d66"
        assert meta.commit_date == date(2016, 2, 13)
        assert meta.llvm_version == "3.8"

    def test_stable(self):
        meta = parse_version_meta(STABLE_OUTPUT)

        assert meta.channel is Channel.STABLE
        assert meta.host == "aarch64-apple-darwin"

    def test_unknown_commit(self):
        output = NIGHTLY_OUTPUT.replace(
            "commit-hash: fae516277a1ac94c1eb6e6e8a0cc1aa8fcc76d66", "commit-hash: unknown"
        ).replace("commit-date: 2016-02-13", "commit-date: unknown")

        meta = parse_version_meta(output)

        assert meta.commit_hash is None
        assert meta.commit_date is None

    def test_missing_host(self):
        output = NIGHTLY_OUTPUT.replace("host: x86_64-unknown-linux-gnu\n", "")

        with pytest.raises(ToolchainError, match="host"):
            parse_version_meta(output)

    def test_bad_date(self):
        output = NIGHTLY_OUTPUT.replace("2016-02-13\nhost", "13/02/2016\nhost")

        with pytest.raises(ToolchainError, match="commit-date"):
            parse_version_meta(output)


class TestVersionMeta:
    def test_snapshot(self):
        snapshot = parse_version_meta(NIGHTLY_OUTPUT).snapshot()

        assert snapshot.commit_hash == "fae516277a1ac94c1eb6e6e8a0cc1aa8fcc76d66"
        assert snapshot.nightly_date == date(2016, 2, 14)

    def test_snapshot_requires_hash(self):
        meta = VersionMeta(release="1.9.0-dev", host="x", channel=Channel.DEV)

        with pytest.raises(ToolchainError, match="commit hash"):
            meta.snapshot()

    def test_require_nightly(self):
        require_nightly(parse_version_meta(NIGHTLY_OUTPUT))

        with pytest.raises(ToolchainError, match="only the nightly channel"):
            require_nightly(parse_version_meta(STABLE_OUTPUT))


class TestCommands:
    def test_version_meta_runs_rustc(self):
        runner = Mock()
        runner.output.return_value = NIGHTLY_OUTPUT

        meta = version_meta(runner)

        runner.output.assert_called_once_with(["rustc", "-vV"])
        assert meta.channel is Channel.NIGHTLY

    def test_print_sysroot(self):
        runner = Mock()
        runner.output.return_value = "/home/user/.rustup/toolchains/nightly\n"

        assert print_sysroot(runner) == Path("/home/user/.rustup/toolchains/nightly")
        runner.output.assert_called_once_with(["rustc", "--print", "sysroot"])

    def test_print_sysroot_empty(self):
        runner = Mock()
        runner.output.return_value = "\n"

        with pytest.raises(ToolchainError):
            print_sysroot(runner)
