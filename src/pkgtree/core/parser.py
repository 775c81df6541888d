"""Parse installed-package manifests (.nuspec) and JSON catalog files."""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from pkgtree.core.catalog import DependencyRef, InstalledPackage, PackageIdentifier
from pkgtree.core.version import InvalidVersionError, Version

logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """Raised when a catalog file cannot be read or has the wrong shape."""


def _local(tag: str) -> str:
    """Strip the XML namespace: '{ns}id' -> 'id'."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _text(elem: ET.Element, name: str) -> str:
    child = _child(elem, name)
    if child is None or not child.text:
        return ""
    return child.text.strip()


def parse_constraint(text: str | None) -> Version | None:
    """
    Declared dependency version: a plain version or the lower bound of a range.

    ``1.2.0`` -> 1.2.0, ``[1.2.0, 2.0)`` -> 1.2.0, ``(, 2.0]`` -> None.
    Returns None for empty or unparseable text.
    """
    if not isinstance(text, str) or not text:
        return None
    lower = text.strip().lstrip("[(").rstrip("])").split(",", 1)[0].strip()
    if not lower:
        return None
    try:
        return Version.parse(lower)
    except InvalidVersionError:
        logger.debug("Ignoring unparseable dependency version %r", text)
        return None


def _refs(elems: list[ET.Element]) -> list[DependencyRef]:
    refs = []
    for elem in elems:
        dep_id = (elem.get("id") or "").strip()
        if dep_id:
            refs.append(DependencyRef(dep_id, parse_constraint(elem.get("version"))))
    return refs


def select_dependency_group(
    dependencies: ET.Element,
    target_framework: str | None = None,
) -> list[ET.Element]:
    """
    Pick the <dependency> elements that apply to the target framework.

    Flat lists (no <group>) apply everywhere. With groups: an exact framework
    match (case-insensitive) wins, then the group without a framework, then
    the first group.
    """
    groups = [g for g in dependencies if _local(g.tag) == "group"]
    if not groups:
        return [d for d in dependencies if _local(d.tag) == "dependency"]
    chosen = None
    if target_framework:
        wanted = target_framework.strip().lower()
        chosen = next(
            (g for g in groups if (g.get("targetFramework") or "").strip().lower() == wanted),
            None,
        )
    if chosen is None:
        chosen = next((g for g in groups if not g.get("targetFramework")), groups[0])
    return [d for d in chosen if _local(d.tag) == "dependency"]


def parse_nuspec(path: Path, *, target_framework: str | None = None) -> InstalledPackage | None:
    """
    Parse a .nuspec manifest into an InstalledPackage.

    Returns None if the file cannot be read, is not a nuspec, or lacks a
    valid id/version.
    """
    if not path.exists() or not path.is_file():
        return None
    try:
        tree = ET.parse(path)
    except (ET.ParseError, OSError):
        logger.warning("Cannot parse %s", path)
        return None
    root = tree.getroot()
    if _local(root.tag) != "package":
        return None
    metadata = _child(root, "metadata")
    if metadata is None:
        return None

    name = _text(metadata, "id")
    if not name:
        return None
    try:
        version = Version.parse(_text(metadata, "version"))
    except InvalidVersionError:
        logger.warning("Invalid version in %s: %r", path, _text(metadata, "version"))
        return None

    deps: list[DependencyRef] = []
    dependencies = _child(metadata, "dependencies")
    if dependencies is not None:
        deps = _refs(select_dependency_group(dependencies, target_framework))

    return InstalledPackage(
        identifier=PackageIdentifier(name, version),
        title=_text(metadata, "title"),
        dependencies=tuple(deps),
    )


def package_from_dict(data: Any) -> InstalledPackage | None:
    """Build an InstalledPackage from one catalog entry; None if the entry is malformed."""
    if not isinstance(data, dict):
        return None
    name = str(data.get("id") or data.get("name") or "").strip()
    if not name:
        return None
    try:
        version = Version.parse(str(data.get("version", "")))
    except InvalidVersionError:
        logger.warning("Skipping %s: invalid version %r", name, data.get("version"))
        return None
    deps: list[DependencyRef] = []
    declared = data.get("dependencies") or []
    if not isinstance(declared, list):
        logger.warning("Ignoring dependencies of %s: expected a list, got %r", name, declared)
        declared = []
    for dep in declared:
        if isinstance(dep, str):
            if dep.strip():
                deps.append(DependencyRef(dep.strip()))
        elif isinstance(dep, dict) and isinstance(dep.get("id") or dep.get("name"), str):
            dep_name = (dep.get("id") or dep.get("name")).strip()
            dep_version = dep.get("version")
            if dep_version is not None and not isinstance(dep_version, str):
                logger.warning("Ignoring non-string version %r of %s -> %s", dep_version, name, dep_name)
                dep_version = None
            if dep_name:
                deps.append(DependencyRef(dep_name, parse_constraint(dep_version)))
        else:
            logger.warning("Skipping malformed dependency of %s: %r", name, dep)
    return InstalledPackage(
        identifier=PackageIdentifier(name, version),
        title=str(data.get("title") or ""),
        dependencies=tuple(deps),
    )


def parse_catalog_json(path: Path) -> list[InstalledPackage]:
    """
    Read a JSON catalog: ``{"packages": [...]}`` or a bare list of entries.

    Each entry is ``{"id", "version", "title"?, "dependencies"?}`` where a
    dependency is a name or ``{"id", "version"?}``. Malformed entries are
    skipped with a warning.

    Raises:
        CatalogLoadError: if the file cannot be read or is not a catalog.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogLoadError(f"Cannot read catalog {path}: {e}") from e
    entries = data.get("packages") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise CatalogLoadError(f"Not a package catalog: {path}")
    packages = []
    for entry in entries:
        package = package_from_dict(entry)
        if package is None:
            logger.warning("Skipping malformed catalog entry in %s: %r", path, entry)
            continue
        packages.append(package)
    return packages
