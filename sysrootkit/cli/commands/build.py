"""
Sysroot command implementation.

Builds a sysroot with cross compiled standard crates for one target.
"""

import logging
from pathlib import Path

from sysrootkit.core.context import BuildContext, Profile, parse_target
from sysrootkit.core.exceptions import SysrootKitError, ToolchainError
from sysrootkit.pipeline import SysrootPipeline
from sysrootkit.toolchain.rustc import require_nightly, version_meta

logger = logging.getLogger(__name__)


def create_context(args) -> BuildContext:
    """
    Build the request for this invocation from parsed arguments.

    Raises:
        ToolchainError: If the installed rustc cannot build this sysroot
    """
    meta = version_meta()
    require_nightly(meta)

    target = parse_target(args.target)
    if target.triple == meta.host:
        raise ToolchainError("`cargo sysroot` for the host has not been implemented yet")

    return BuildContext(
        host=meta.host,
        target=target,
        out_dir=Path(args.out_dir),
        profile=Profile.from_release_flag(args.release),
        snapshot=meta.snapshot(),
        verbose=args.verbose,
        config_path=args.config,
    )


def run(args) -> int:
    """
    Run the sysroot command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")

    try:
        ctx = create_context(args)
    except SysrootKitError as e:
        logger.error(f"error: toolchain introspection failed: {e}")
        return 1

    pipeline = SysrootPipeline(lock_timeout=args.lock_timeout)
    result = pipeline.run(ctx)

    if not result.ok:
        logger.error(f"error: {result.failure.describe()}")
        return 1

    logger.info(f"sysroot ready: {ctx.out_dir / ctx.profile.value}")
    return 0
