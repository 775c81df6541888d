"""pkgtree: browse installed-package dependency trees (library, TUI, CLI)."""

from importlib.metadata import version, PackageNotFoundError

from pkgtree.api import (
    build_tree,
    create_engine,
    load_catalog_file,
    scan_installed_packages,
    who_depends_on,
)
from pkgtree.core.tree import TreeQueryEngine

__all__ = [
    "build_tree",
    "create_engine",
    "load_catalog_file",
    "scan_installed_packages",
    "who_depends_on",
    "TreeQueryEngine",
    "__version__",
]

try:
    __version__ = version("pkgtree")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
