"""
Subprocess execution for toolchain commands.

All external tools (rustc, cargo) are invoked through CommandRunner so the
pipeline stages can be tested with a fake runner and so every failure is
reported the same way: a CommandError carrying the command and exit code.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from sysrootkit.core.exceptions import CommandError, ToolchainError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Run external commands, raising CommandError on non-zero exit."""

    def run(
        self,
        cmd: List[str],
        cwd: Optional[Path] = None,
        show_output: bool = False,
    ) -> None:
        """
        Run a command for its side effects.

        Args:
            cmd: Command and arguments
            cwd: Working directory
            show_output: Inherit stdout if True, discard it otherwise

        Raises:
            ToolchainError: If the executable cannot be started
            CommandError: If the command exits with a non-zero status
        """
        logger.debug(f"Running: {' '.join(cmd)} (cwd={cwd})")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=None if show_output else subprocess.DEVNULL,
                check=False,
            )
        except OSError as e:
            raise ToolchainError(f"Failed to execute {cmd[0]}: {e}") from e

        if result.returncode != 0:
            raise CommandError(cmd, result.returncode)

    def output(self, cmd: List[str], cwd: Optional[Path] = None) -> str:
        """
        Run a command and return its standard output.

        Raises:
            ToolchainError: If the executable cannot be started
            CommandError: If the command exits with a non-zero status
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd, cwd=cwd, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise ToolchainError(f"Failed to execute {cmd[0]}: {e}") from e

        if result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stderr)

        return result.stdout
