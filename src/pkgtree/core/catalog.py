"""Installed-package snapshot: identifiers, dependency refs, and the catalog index."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pkgtree.core.version import Version

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Package names compare case-insensitively."""
    return name.strip().casefold()


@dataclass(frozen=True)
class PackageIdentifier:
    """A package name together with one concrete version."""

    name: str
    version: Version

    @property
    def key(self) -> str:
        return normalize_name(self.name)

    def same_package(self, other: PackageIdentifier) -> bool:
        """True if both identifiers name the same package, whatever the versions."""
        return self.key == other.key

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True)
class DependencyRef:
    """A declared dependency; the version is the declared minimum and is display-only."""

    target_name: str
    version: Version | None = None

    @property
    def key(self) -> str:
        return normalize_name(self.target_name)

    def __str__(self) -> str:
        return f"{self.target_name} {self.version}" if self.version else self.target_name


@dataclass(frozen=True)
class InstalledPackage:
    """One installed package and the dependencies it declares."""

    identifier: PackageIdentifier
    title: str = ""
    dependencies: tuple[DependencyRef, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable of refs; store an immutable tuple
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        if not self.title:
            object.__setattr__(self, "title", self.identifier.name)

    @classmethod
    def create(
        cls,
        name: str,
        version: str,
        dependencies: Iterable[str | tuple[str, str | None]] = (),
        *,
        title: str = "",
    ) -> InstalledPackage:
        """Convenience constructor from plain strings: deps are names or (name, version)."""
        refs = []
        for dep in dependencies:
            if isinstance(dep, str):
                refs.append(DependencyRef(dep))
            else:
                dep_name, dep_version = dep
                refs.append(
                    DependencyRef(dep_name, Version.parse(dep_version) if dep_version else None)
                )
        return cls(
            identifier=PackageIdentifier(name, Version.parse(version)),
            title=title,
            dependencies=tuple(refs),
        )

    @property
    def name(self) -> str:
        return self.identifier.name

    @property
    def version(self) -> Version:
        return self.identifier.version

    @property
    def key(self) -> str:
        return self.identifier.key

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict (same shape the catalog loader reads)."""
        return {
            "id": self.name,
            "version": str(self.version),
            "title": self.title,
            "dependencies": [
                {"id": d.target_name, "version": str(d.version) if d.version else None}
                for d in self.dependencies
            ],
        }


class PackageCatalog:
    """
    Immutable snapshot of the installed packages, indexed by normalized name.

    Iteration follows source order. When the source lists the same name more
    than once the last entry wins, keeping the position of the first one.
    """

    def __init__(self, packages: Iterable[InstalledPackage] | None = None) -> None:
        self._by_key: dict[str, InstalledPackage] = {}
        self._duplicates: list[str] = []
        for package in packages or ():
            if package.key in self._by_key:
                previous = self._by_key[package.key]
                logger.warning(
                    "Duplicate installed package %s: %s replaces %s",
                    package.name,
                    package.version,
                    previous.version,
                )
                self._duplicates.append(package.name)
            self._by_key[package.key] = package

    def __iter__(self) -> Iterator[InstalledPackage]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._by_key

    def get(self, name: str) -> InstalledPackage | None:
        return self._by_key.get(normalize_name(name))

    @property
    def duplicates(self) -> tuple[str, ...]:
        """Names that appeared more than once in the source."""
        return tuple(self._duplicates)

    def names(self) -> list[str]:
        return [p.name for p in self]
