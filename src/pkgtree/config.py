"""Runtime settings from the environment; CLI flags override them."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PACKAGES_DIR = "Packages"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    """Where to find installed packages and how loudly to log."""

    packages_dir: Path
    target_framework: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        """Read PKGTREE_PACKAGES_DIR, PKGTREE_TARGET_FRAMEWORK and PKGTREE_LOG_LEVEL."""
        packages_dir = os.environ.get("PKGTREE_PACKAGES_DIR", "").strip() or DEFAULT_PACKAGES_DIR
        return cls(
            packages_dir=Path(packages_dir).expanduser().resolve(),
            target_framework=os.environ.get("PKGTREE_TARGET_FRAMEWORK", "").strip() or None,
            log_level=os.environ.get("PKGTREE_LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL,
        )


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once, writing to stderr."""
    name = (level or Settings.from_env().log_level).upper()
    value = getattr(logging, name, None)
    if not isinstance(value, int):
        value = logging.WARNING
    logging.basicConfig(level=value, format=LOG_FORMAT)
    logging.getLogger().setLevel(value)
