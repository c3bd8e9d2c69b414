"""
SysrootKit CLI argument parser.

This module implements the command-line interface using argparse. The tool
is installed as `cargo-sysroot`, so cargo runs it as `cargo sysroot ...`
and passes `sysroot` as the first argument.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("sysrootkit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """SysrootKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="cargo",
            description="Builds sysroots with cross compiled standard crates",
            epilog='Use "cargo sysroot --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"cargo-sysroot {__version__}"
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_sysroot_command(subparsers)

        return parser

    def _add_sysroot_command(self, subparsers):
        """Add 'sysroot' subcommand."""
        parser = subparsers.add_parser(
            "sysroot",
            help="Build a sysroot with cross compiled standard crates",
            description="Builds a sysroot with cross compiled standard crates",
        )
        parser.add_argument(
            "--target",
            required=True,
            metavar="TRIPLE",
            help="Target triple to compile for, or path to a target specification (.json)",
        )
        parser.add_argument(
            "out_dir",
            type=Path,
            help="Output directory",
        )
        parser.add_argument(
            "--release",
            action="store_true",
            help="Build artifacts in release mode, with optimizations",
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Verbose cargo builds"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./sysroot.yaml)",
        )
        parser.add_argument(
            "--lock-timeout",
            type=float,
            default=0,
            metavar="SECONDS",
            help="Wait this long for another build using OUT_DIR (default: 0)",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if getattr(parsed_args, "verbose", False):
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if getattr(args, "verbose", False):
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif getattr(args, "quiet", False):
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "sysroot": "sysrootkit.cli.commands.build",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        import importlib

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
