"""
Entry point for running SysrootKit as a module.

Usage: python -m sysrootkit sysroot --target TRIPLE OUT_DIR [options]
"""

from sysrootkit.cli.parser import main

if __name__ == "__main__":
    main()
