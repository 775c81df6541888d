"""Forward and reverse dependency maps derived from a catalog, and root detection."""

from __future__ import annotations

from dataclasses import dataclass, field

from pkgtree.core.catalog import (
    DependencyRef,
    PackageCatalog,
    PackageIdentifier,
    normalize_name,
)


@dataclass(frozen=True)
class DependencyIndex:
    """
    Direct dependencies per package and the reverse "declared by" mapping.

    Built once per catalog snapshot; holds no state beyond what ``build``
    derives. Dependency names that are not installed are kept in the forward
    map as-is.
    """

    forward: dict[str, tuple[DependencyRef, ...]] = field(default_factory=dict)
    reverse: dict[str, tuple[PackageIdentifier, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, catalog: PackageCatalog) -> DependencyIndex:
        """Index every package's direct dependencies; O(total declared dependencies)."""
        forward: dict[str, tuple[DependencyRef, ...]] = {}
        reverse: dict[str, list[PackageIdentifier]] = {}
        for package in catalog:
            refs: dict[str, DependencyRef] = {}
            for ref in package.dependencies:
                # first declaration of a name wins
                refs.setdefault(ref.key, ref)
            forward[package.key] = tuple(refs.values())
            for key in refs:
                reverse.setdefault(key, []).append(package.identifier)
        return cls(
            forward=forward,
            reverse={key: tuple(ids) for key, ids in reverse.items()},
        )

    def direct_dependencies(self, name: str) -> tuple[DependencyRef, ...]:
        """Declared dependencies of ``name``; empty for leaves and unknown names alike."""
        return self.forward.get(normalize_name(name), ())

    def dependents(self, name: str) -> tuple[PackageIdentifier, ...]:
        """Installed packages that declare ``name`` (any version), in catalog order."""
        return self.reverse.get(normalize_name(name), ())

    def dangling(self, catalog: PackageCatalog) -> list[tuple[str, DependencyRef]]:
        """(declaring package name, ref) for every ref whose target is not installed."""
        out: list[tuple[str, DependencyRef]] = []
        for package in catalog:
            for ref in self.forward.get(package.key, ()):
                if ref.target_name not in catalog:
                    out.append((package.name, ref))
        return out


def compute_roots(catalog: PackageCatalog, index: DependencyIndex) -> list[PackageIdentifier]:
    """
    Packages no installed package depends on, in catalog order.

    Everything named as a dependency by some catalog member is removed; the
    remaining order is never re-sorted. If every package is referenced (a full
    cycle) the result is empty.
    """
    return [p.identifier for p in catalog if not index.dependents(p.name)]
