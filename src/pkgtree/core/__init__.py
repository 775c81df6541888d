"""Core library: installed-package catalog, dependency index, and tree queries."""

from pkgtree.core.catalog import (
    DependencyRef,
    InstalledPackage,
    PackageCatalog,
    PackageIdentifier,
    normalize_name,
)
from pkgtree.core.index import DependencyIndex, compute_roots
from pkgtree.core.parser import CatalogLoadError, parse_catalog_json, parse_nuspec
from pkgtree.core.state import ExpandStateStore
from pkgtree.core.tree import (
    DependencyNode,
    Diagnostic,
    DiagnosticKind,
    NodeStatus,
    ReloadPolicy,
    TreeQueryEngine,
)
from pkgtree.core.version import InvalidVersionError, Version, VersionStatus, classify_versions

__all__ = [
    "DependencyRef",
    "InstalledPackage",
    "PackageCatalog",
    "PackageIdentifier",
    "normalize_name",
    "DependencyIndex",
    "compute_roots",
    "CatalogLoadError",
    "parse_catalog_json",
    "parse_nuspec",
    "ExpandStateStore",
    "DependencyNode",
    "Diagnostic",
    "DiagnosticKind",
    "NodeStatus",
    "ReloadPolicy",
    "TreeQueryEngine",
    "InvalidVersionError",
    "Version",
    "VersionStatus",
    "classify_versions",
]
