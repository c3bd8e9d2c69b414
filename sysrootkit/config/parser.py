"""YAML configuration parser for SysrootKit.

This module reads the optional sysroot.yaml file that selects which
standard library crates to build for each target:

    target:
      thumbv7m-none-eabi:
        crates: [alloc, collections]

The baseline crate (`core`) is always built. Configuration problems never
abort a build; they are logged and the default crate list is used.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

BASELINE_CRATE = "core"
DEFAULT_CONFIG_FILE = "sysroot.yaml"

# Lookup results that mean "not configured" rather than "misconfigured"
MISSING = ("no target table", "not configured")


class CrateSelection(tuple):
    """Sorted, duplicate-free crate names, always including the baseline crate."""

    def __new__(cls, crates: Iterable[str] = ()):
        names = set(crates)
        names.add(BASELINE_CRATE)
        return super().__new__(cls, sorted(names))

    def __repr__(self) -> str:
        return f"CrateSelection({list(self)!r})"


class SysrootConfig:
    """Parsed sysroot.yaml contents."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, source: Optional[Path] = None):
        self.data = data or {}
        self.source = source

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "SysrootConfig":
        """
        Load configuration from disk.

        Args:
            path: Path to the YAML file (default: ./sysroot.yaml)

        Returns:
            SysrootConfig; empty if the file is missing or unreadable
        """
        path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)

        if not path.exists():
            logger.info(f"no {path.name} found, using default configuration")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring {path}: {e}")
            return cls(source=path)

        if data is None:
            return cls(source=path)

        if not isinstance(data, dict):
            logger.warning(
                f"Ignoring {path}: expected a mapping at the top level, "
                f"got {type(data).__name__}"
            )
            return cls(source=path)

        logger.debug(f"Loaded configuration from {path}")
        return cls(data, source=path)

    def crates(self, target: str) -> CrateSelection:
        """
        Crates to build for a target.

        Args:
            target: Target triple

        Returns:
            CrateSelection; `["core"]` if the target has no valid entry
        """
        key = f"target.{target}.crates"
        crates, problem = self._lookup_crates(target)

        if problem in MISSING:
            logger.debug(f"{key}: {problem}, using default crates")
            crates = (BASELINE_CRATE,)
        elif problem:
            logger.warning(f"{key}: {problem}, using default crates")
            crates = (BASELINE_CRATE,)

        return CrateSelection(crates)

    def _lookup_crates(self, target: str) -> Tuple[Tuple[str, ...], Optional[str]]:
        targets = self.data.get("target")
        if not isinstance(targets, dict):
            return (), "no target table"

        entry = targets.get(target)
        if not isinstance(entry, dict):
            return (), "not configured"

        crates = entry.get("crates")
        if not isinstance(crates, list):
            return (), "expected a list of crate names"

        if not crates:
            return (), "empty crate list"

        if not all(isinstance(c, str) and c for c in crates):
            return (), "every crate name must be a non-empty string"

        return tuple(crates), None
