"""Public API: use pkgtree from Python or from other tools."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pkgtree.core.catalog import InstalledPackage, PackageIdentifier
from pkgtree.core.finder import load_installed_packages
from pkgtree.core.parser import parse_catalog_json
from pkgtree.core.tree import DependencyNode, DiagnosticHook, ReloadPolicy, TreeQueryEngine


def load_catalog_file(path: Path) -> list[InstalledPackage]:
    """
    Read installed packages from a JSON catalog file.

    Raises CatalogLoadError if the file cannot be read or is not a catalog.
    """
    return parse_catalog_json(Path(path))


def scan_installed_packages(
    packages_dir: Path | None = None,
    *,
    target_framework: str | None = None,
) -> list[InstalledPackage]:
    """
    Read installed packages from the .nuspec manifests in a packages folder.

    packages_dir defaults to PKGTREE_PACKAGES_DIR (or ./Packages);
    target_framework picks the dependency group for multi-target packages.
    """
    return load_installed_packages(packages_dir, target_framework=target_framework)


def create_engine(
    packages: Iterable[InstalledPackage] | None = None,
    *,
    reload_policy: ReloadPolicy = ReloadPolicy.PRESERVE,
    diagnostic_hook: DiagnosticHook | None = None,
) -> TreeQueryEngine:
    """Create a query engine over a package list (an empty catalog if None)."""
    return TreeQueryEngine(
        packages,
        reload_policy=reload_policy,
        diagnostic_hook=diagnostic_hook,
    )


def build_tree(
    engine: TreeQueryEngine,
    package: str,
    *,
    max_depth: int | None = None,
) -> DependencyNode:
    """
    Build the full dependency tree below one package.

    Args:
        engine: Engine holding the current catalog.
        package: Name of the package to start from (case-insensitive).
        max_depth: Optional maximum depth; None = unlimited.

    Returns:
        Root DependencyNode; a package that is not installed yields a
        "not installed" leaf rather than None.
    """
    return engine.expand(package, max_depth=max_depth)


def who_depends_on(engine: TreeQueryEngine, package: str) -> list[PackageIdentifier]:
    """Installed packages that declare ``package`` as a dependency, in catalog order."""
    return list(engine.reverse_parents(package))
