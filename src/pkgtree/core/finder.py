"""Discover installed packages in a NuGet-style packages folder."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pkgtree.config import Settings
from pkgtree.core.catalog import InstalledPackage
from pkgtree.core.parser import parse_nuspec

logger = logging.getLogger(__name__)


def find_nuspec_files(packages_dir: Path) -> list[Path]:
    """
    List .nuspec manifests under a packages folder, in sorted path order.

    Installed packages live in ``<Id>.<Version>/<Id>.nuspec``; nested
    layouts are found too. Unreadable directories are skipped.
    """
    packages_dir = Path(packages_dir)
    if not packages_dir.exists() or not packages_dir.is_dir():
        return []
    found: list[Path] = []
    for root, dirs, files in os.walk(packages_dir, onerror=_log_walk_error):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for name in sorted(files):
            if name.lower().endswith(".nuspec"):
                found.append(Path(root) / name)
    return found


def _log_walk_error(error: OSError) -> None:
    logger.warning("Skipping %s: %s", error.filename, error.strerror)


def load_installed_packages(
    packages_dir: Path | None = None,
    *,
    target_framework: str | None = None,
) -> list[InstalledPackage]:
    """
    Parse every manifest in the packages folder into InstalledPackages.

    Args:
        packages_dir: Folder to scan; defaults to PKGTREE_PACKAGES_DIR or ./Packages.
        target_framework: Preferred dependency group; defaults to
            PKGTREE_TARGET_FRAMEWORK when set.

    Returns:
        Installed packages in manifest path order (unparseable manifests skipped).
    """
    settings = Settings.from_env()
    if packages_dir is None:
        packages_dir = settings.packages_dir
    if target_framework is None:
        target_framework = settings.target_framework
    packages: list[InstalledPackage] = []
    for path in find_nuspec_files(packages_dir):
        package = parse_nuspec(path, target_framework=target_framework)
        if package is None:
            logger.warning("Skipping unreadable manifest %s", path)
            continue
        packages.append(package)
    logger.info("Found %d installed package(s) in %s", len(packages), packages_dir)
    return packages
