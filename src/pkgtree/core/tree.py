"""Query engine over the installed-package graph: roots, expansion, reverse lookup."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from pkgtree.core.catalog import (
    DependencyRef,
    InstalledPackage,
    PackageCatalog,
    PackageIdentifier,
    normalize_name,
)
from pkgtree.core.index import DependencyIndex, compute_roots
from pkgtree.core.state import ExpandStateStore
from pkgtree.core.version import VersionStatus, classify_versions

logger = logging.getLogger(__name__)


class NodeStatus(enum.Enum):
    INSTALLED = "installed"
    NOT_INSTALLED = "not installed"
    CYCLE = "cycle"


class DiagnosticKind(enum.Enum):
    DANGLING = "dangling"
    CYCLE = "cycle"
    DUPLICATE = "duplicate"


class ReloadPolicy(enum.Enum):
    """What happens to disclosure state when a new catalog is loaded."""

    PRESERVE = "preserve"
    COLLAPSE = "collapse"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal graph problem: a missing dependency, a cycle, or a duplicate entry."""

    kind: DiagnosticKind
    names: tuple[str, ...]

    def __str__(self) -> str:
        if self.kind is DiagnosticKind.CYCLE:
            return "Dependency cycle: " + " -> ".join(self.names)
        if self.kind is DiagnosticKind.DANGLING:
            return "Not installed: " + ", ".join(self.names)
        return "Duplicate installed package: " + ", ".join(self.names)


DiagnosticHook = Callable[[Diagnostic], None]


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default diagnostic hook: log a warning."""
    logger.warning("%s", diagnostic)


@dataclass
class DependencyNode:
    """A node in an expanded dependency tree: one package and its direct children."""

    name: str
    version: str
    title: str = ""
    status: NodeStatus = NodeStatus.INSTALLED
    # Declared version of the edge leading here; empty for roots
    constraint: str = ""
    children: list[DependencyNode] = field(default_factory=list)
    # Has dependencies that were not expanded (depth limit or collapsed)
    truncated: bool = False

    @property
    def is_leaf(self) -> bool:
        return self.status is not NodeStatus.INSTALLED or (not self.children and not self.truncated)

    def to_dict(self) -> dict:
        """Serialize node to a JSON-friendly dict."""
        result = self._fields_dict()
        stack = [(self, result)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                stack.append((child, child_out))
        return result

    def _fields_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "title": self.title,
            "status": self.status.value,
            "constraint": self.constraint,
            "truncated": self.truncated,
            "children": [],
        }


class TreeQueryEngine:
    """
    Facade the presentation layer calls each frame or on user interaction.

    Owns one catalog snapshot plus the index derived from it, a memoized
    root set, and the disclosure state. All queries are synchronous and
    side-effect free except ``toggle`` and ``load_catalog``; missing
    dependencies and cycles are reported through the diagnostic hook, never
    raised.
    """

    def __init__(
        self,
        packages: Iterable[InstalledPackage] | None = None,
        *,
        reload_policy: ReloadPolicy = ReloadPolicy.PRESERVE,
        diagnostic_hook: DiagnosticHook | None = None,
    ) -> None:
        self.reload_policy = reload_policy
        self._hook: DiagnosticHook = diagnostic_hook or log_diagnostic
        self._state = ExpandStateStore()
        self._catalog = PackageCatalog()
        self._index = DependencyIndex()
        self._roots: list[PackageIdentifier] | None = None
        self.load_catalog(packages)

    @property
    def catalog(self) -> PackageCatalog:
        return self._catalog

    @property
    def index(self) -> DependencyIndex:
        return self._index

    @property
    def state(self) -> ExpandStateStore:
        return self._state

    def load_catalog(self, packages: Iterable[InstalledPackage] | None) -> None:
        """Replace the catalog wholesale and invalidate everything derived from it."""
        self._catalog = PackageCatalog(packages)
        self._index = DependencyIndex.build(self._catalog)
        self._roots = None
        if self.reload_policy is ReloadPolicy.COLLAPSE:
            self._state.reset()
        if self._catalog.duplicates:
            self._report(DiagnosticKind.DUPLICATE, self._catalog.duplicates)
        logger.debug(
            "Loaded catalog: %d packages, %d dangling references",
            len(self._catalog),
            len(self._index.dangling(self._catalog)),
        )

    def _report(self, kind: DiagnosticKind, names: Iterable[str]) -> None:
        diagnostic = Diagnostic(kind=kind, names=tuple(names))
        try:
            self._hook(diagnostic)
        except Exception:
            logger.exception("Diagnostic hook failed for %s", diagnostic)

    # -- queries -----------------------------------------------------------

    def roots(self) -> list[PackageIdentifier]:
        """Packages nothing else depends on, in catalog order; memoized per catalog."""
        if self._roots is None:
            self._roots = compute_roots(self._catalog, self._index)
        return list(self._roots)

    def forward_children(self, name: str) -> tuple[DependencyRef, ...]:
        """Direct dependencies of ``name``; a name that is not installed is reported and has none."""
        if name not in self._catalog:
            self._report(DiagnosticKind.DANGLING, (name,))
            return ()
        return self._index.direct_dependencies(name)

    def reverse_parents(self, name: str) -> tuple[PackageIdentifier, ...]:
        """Who depends on ``name``: installed packages declaring it, in catalog order."""
        return self._index.dependents(name)

    def is_disclosed(self, name: str) -> bool:
        return self._state.is_disclosed(name)

    def toggle(self, name: str) -> bool:
        """Flip disclosure of ``name`` and return the new state."""
        return self._state.toggle(name)

    def package(self, name: str) -> InstalledPackage | None:
        return self._catalog.get(name)

    def packages(self) -> list[InstalledPackage]:
        return list(self._catalog)

    def is_installed(self, name: str) -> bool:
        return name in self._catalog

    def dependency_status(self, ref: DependencyRef) -> VersionStatus:
        """Installed version of ``ref``'s target against its declared version."""
        installed = self._catalog.get(ref.target_name)
        if installed is None:
            return VersionStatus.ABSENT
        if ref.version is None:
            return VersionStatus.SAME
        return classify_versions(installed.version, ref.version)

    # -- expansion ---------------------------------------------------------

    def expand(
        self,
        name: str,
        *,
        max_depth: int | None = None,
        disclosed_only: bool = False,
        ancestors: Iterable[str] = (),
    ) -> DependencyNode:
        """
        Expand ``name`` depth-first into a DependencyNode tree.

        A package that reappears on the current descent path becomes a
        ``CYCLE`` leaf; a dependency that is not installed becomes a
        ``NOT_INSTALLED`` leaf. Each missing name is reported once per call.

        Args:
            name: Package to start from.
            max_depth: Optional limit on levels below the start node; None = unlimited.
            disclosed_only: If True, only descend into nodes whose disclosure
                flag is set (the part of the tree the user has opened).
            ancestors: Names already above ``name`` on the descent path, for
                continuing an expansion one level at a time.
        """
        return self._expand(
            DependencyRef(name),
            path={normalize_name(a): a for a in ancestors},
            max_depth=max_depth,
            disclosed_only=disclosed_only,
        )

    def _expand(
        self,
        ref: DependencyRef,
        *,
        path: dict[str, str],
        max_depth: int | None,
        disclosed_only: bool,
    ) -> DependencyNode:
        # Explicit stack of (node, key, remaining deps, depth) frames so long
        # chains do not hit the interpreter's recursion limit.
        reported: set[str] = set()
        root, frame = self._visit(ref, 0, path, max_depth, disclosed_only, reported)
        stack = [frame] if frame is not None else []
        while stack:
            node, key, deps, depth = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                del path[key]
                continue
            child, frame = self._visit(dep, depth + 1, path, max_depth, disclosed_only, reported)
            node.children.append(child)
            if frame is not None:
                stack.append(frame)
        return root

    def _visit(
        self,
        ref: DependencyRef,
        depth: int,
        path: dict[str, str],
        max_depth: int | None,
        disclosed_only: bool,
        reported: set[str],
    ) -> tuple[DependencyNode, tuple | None]:
        """Build the node for ``ref``; return a frame when its children still need expanding."""
        constraint = str(ref.version) if ref.version else ""
        if ref.key in path:
            cycle = list(path.values())
            start = list(path).index(ref.key)
            self._report(DiagnosticKind.CYCLE, cycle[start:] + [ref.target_name])
            return (
                DependencyNode(
                    name=ref.target_name,
                    version="",
                    status=NodeStatus.CYCLE,
                    constraint=constraint,
                ),
                None,
            )

        package = self._catalog.get(ref.target_name)
        if package is None:
            if ref.key not in reported:
                reported.add(ref.key)
                self._report(DiagnosticKind.DANGLING, (ref.target_name,))
            return (
                DependencyNode(
                    name=ref.target_name,
                    version="",
                    status=NodeStatus.NOT_INSTALLED,
                    constraint=constraint,
                ),
                None,
            )

        node = DependencyNode(
            name=package.name,
            version=str(package.version),
            title=package.title,
            constraint=constraint,
        )
        deps = self._index.direct_dependencies(package.name)
        if not deps:
            return node, None
        if (max_depth is not None and depth >= max_depth) or (
            disclosed_only and not self.is_disclosed(package.name)
        ):
            node.truncated = True
            return node, None

        path[package.key] = package.name
        return node, (node, package.key, iter(deps), depth)
