"""Textual TUI for browsing installed-package dependency trees and dependents."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, LoadingIndicator, Static, Tree
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from pkgtree.api import load_catalog_file, scan_installed_packages
from pkgtree.core.catalog import InstalledPackage
from pkgtree.core.tree import (
    DependencyNode,
    Diagnostic,
    DiagnosticKind,
    NodeStatus,
    TreeQueryEngine,
)
from pkgtree.core.version import VersionStatus

logger = logging.getLogger(__name__)

WELCOME_TITLE = "[bold cyan]pkgtree[/]"

WELCOME_DESC = """[dim]Browse the dependency tree of your installed packages.
Expand a package to see what it depends on, or ask who depends on it.
Missing dependencies and cycles are marked instead of failing.[/]"""

MODE_FORWARD = "forward"
MODE_REVERSE = "reverse"

MAX_DIAGNOSTICS = 50

COLOR_HEADER = "bold magenta"
COLOR_PKG = "white"
COLOR_ROOT = "bold green"
COLOR_STATS = "cyan"
COLOR_MISSING = "bold red"
COLOR_CYCLE = "bold yellow"

_STATUS_COLORS = {
    VersionStatus.SAME: "green",
    VersionStatus.NEWER: "cyan",
    VersionStatus.OLDER: "yellow",
    VersionStatus.ABSENT: "red",
}


@dataclass
class NodeData:
    """What a Textual tree node shows: one package plus the names above it."""

    name: str
    path: tuple[str, ...] = ()
    loaded: bool = False


def node_label(node: DependencyNode, *, root: bool = False) -> str:
    """Rich-markup label for one expanded dependency node."""
    if node.status is NodeStatus.NOT_INSTALLED:
        wants = f" {node.constraint}" if node.constraint else ""
        return f"[{COLOR_MISSING}]{node.name}[/][dim]{wants}[/] [{COLOR_MISSING}](not installed)[/]"
    if node.status is NodeStatus.CYCLE:
        return f"[{COLOR_CYCLE}]{node.name}[/] [{COLOR_CYCLE}](cycle)[/]"
    color = COLOR_ROOT if root else COLOR_PKG
    return f"[{color}]{node.name}[/] [dim]v{node.version or '?'}[/]"


def format_package(engine: TreeQueryEngine, name: str) -> str:
    """Details-panel text for one package: versions, dependencies, dependents."""
    package = engine.package(name)
    if package is None:
        return f"[{COLOR_MISSING}]{name}[/]\n\n  Not installed."
    deps = engine.index.direct_dependencies(package.name)
    parents = engine.reverse_parents(package.name)

    lines = [
        f"[{COLOR_HEADER}]Package[/]",
        f"  [{COLOR_PKG}]{package.name}[/]  [dim]v{package.version}[/]",
    ]
    if package.title != package.name:
        lines.append(f"  {package.title}")
    lines += [
        "",
        f"[{COLOR_HEADER}]Stats[/]",
        f"  Direct dependencies:  [{COLOR_STATS}]{len(deps)}[/]",
        f"  Depended on by:       [{COLOR_STATS}]{len(parents)}[/]",
        f"  Expanded:             [{COLOR_STATS}]{'yes' if engine.is_disclosed(package.name) else 'no'}[/]",
    ]
    if deps:
        lines += ["", f"[{COLOR_HEADER}]Depends on[/]"]
        for dep in deps:
            status = engine.dependency_status(dep)
            installed = engine.package(dep.target_name)
            have = f"v{installed.version}" if installed else "not installed"
            wants = f" {dep.version}" if dep.version else ""
            lines.append(
                f"  {dep.target_name}[dim]{wants}[/]  [{_STATUS_COLORS[status]}]{have}[/]"
            )
    return "\n".join(lines)


class SearchScreen(ModalScreen[str | None]):
    """Modal asking for a package name. Keyboard-only."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    SearchScreen {
        align: center middle;
        padding: 2 4;
    }
    SearchScreen #search_title {
        text-align: center;
        padding-bottom: 1;
    }
    SearchScreen #search_input {
        width: 60;
        margin: 1 0;
    }
    SearchScreen #search_hint {
        text-align: center;
        padding-top: 1;
    }
    """

    def __init__(self, title: str, hint: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._title = title
        self._hint = hint
        self._input: Input | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self._title, id="search_title", markup=True)
            yield Input(placeholder="package name...", id="search_input")
            yield Static(self._hint, id="search_hint", markup=True)

    def on_mount(self) -> None:
        self._input = self.query_one("#search_input", Input)
        self._input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "search_input":
            return
        value = self._input.value.strip() if self._input else ""
        self.dismiss(value if value else None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class OpenSourceScreen(ModalScreen[Path | None]):
    """Modal to enter a packages folder or JSON catalog to browse instead."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = """
    OpenSourceScreen {
        align: center middle;
        padding: 2 4;
    }
    OpenSourceScreen #open_title {
        text-align: center;
        padding-bottom: 1;
    }
    OpenSourceScreen #open_input {
        width: 60;
        margin: 1 0;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._input: Input | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(
                "[bold cyan]Open packages[/]\n\n"
                "Type a packages folder or a .json catalog file.",
                id="open_title",
                markup=True,
            )
            yield Input(placeholder="/path/to/Packages", id="open_input")
            yield Static("[dim]Enter[/] = Open  ·  [dim]Escape[/] = Cancel", markup=True)

    def on_mount(self) -> None:
        self._input = self.query_one("#open_input", Input)
        self._input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "open_input":
            return
        value = self._input.value.strip() if self._input else ""
        if not value:
            self.dismiss(None)
            return
        p = Path(value).expanduser().resolve()
        if not p.exists():
            self.notify(f"Path does not exist: {p}", severity="warning", timeout=3)
            return
        self.dismiss(p)

    def action_cancel(self) -> None:
        self.dismiss(None)


class DepTreeApp(App[None]):
    """Terminal UI with two views: the dependency tree and "who depends on me"."""

    TITLE = "pkgtree"
    BINDINGS = [
        Binding("enter", "start_main", "Start", show=False),
        Binding("t", "switch_mode", "Switch view"),
        Binding("w", "who_depends", "Who depends?"),
        Binding("escape", "back", "Back", show=True),
        Binding("b", "back", "Back", show=False),
        Binding("/", "search", "Search"),
        Binding("n", "next_match", "Next match", show=False),
        Binding("N", "prev_match", "Prev match", show=False),
        Binding("o", "open_source", "Open"),
        Binding("d", "toggle_details", "Details"),
        Binding("c", "collapse_all", "Collapse"),
        Binding("r", "refresh", "Refresh"),
        Binding("q", "quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #welcome_container {
        align: center middle;
        width: 100%;
        height: 100%;
    }
    #welcome_title, #welcome_desc, #welcome_hint {
        text-align: center;
        width: 100%;
    }
    #welcome_desc {
        padding: 2 4;
    }
    #welcome_loading {
        text-align: center;
        padding-top: 1;
        display: none;
    }
    #welcome_loading.loading {
        display: block;
    }
    #welcome_loading LoadingIndicator {
        background: transparent;
    }
    #main_container {
        display: none;
    }
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 8;
    }
    """

    def __init__(
        self,
        *,
        packages_dir: Path | None = None,
        catalog_file: Path | None = None,
        target_framework: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._packages_dir = packages_dir
        self._catalog_file = catalog_file
        self._target_framework = target_framework
        self._engine = TreeQueryEngine(diagnostic_hook=self._on_diagnostic)
        self._diagnostics: list[Diagnostic] = []
        self._mode = MODE_FORWARD
        self._reverse_target: str | None = None
        self._main_started = False
        self._loading = False
        self._load_error: str | None = None
        self._search_matches: list[TreeNode] = []
        self._search_index = 0
        self._details_visible = True

    @property
    def engine(self) -> TreeQueryEngine:
        return self._engine

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        with Container(id="welcome_container"):
            yield Static(WELCOME_TITLE, id="welcome_title", markup=True)
            yield Static(WELCOME_DESC, id="welcome_desc", markup=True)
            yield Static(
                "[cyan]Enter[/] to explore  ·  [dim]q[/] to quit",
                id="welcome_hint",
                markup=True,
            )
            with Container(id="welcome_loading"):
                yield LoadingIndicator()
                yield Static("[dim]Reading installed packages...[/]", id="loading_text", markup=True)
        with Container(id="main_container"):
            yield Tree("Dependencies", id="dep_tree")
            yield Static("", id="details")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = "Dependency Tree"
        self._start_load()

    def on_key(self, event: Any) -> None:
        if not self._main_started and event.key == "enter":
            event.prevent_default()
            event.stop()
            self.action_start_main()

    # -- loading -----------------------------------------------------------

    def _start_load(self) -> None:
        """Read the package list in a background thread."""
        if self._loading:
            return
        self._loading = True
        self._load_error = None
        try:
            self.query_one("#welcome_loading").add_class("loading")
        except Exception:
            pass
        self.run_worker(self._load_worker, thread=True)

    def _load_worker(self) -> list[InstalledPackage]:
        if self._catalog_file is not None:
            return load_catalog_file(self._catalog_file)
        return scan_installed_packages(
            self._packages_dir,
            target_framework=self._target_framework,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.SUCCESS:
            self._loading = False
            self._diagnostics = []
            self._engine.load_catalog(event.worker.result)
            self._update_loading_status()
            if self._main_started:
                self._render_view()
        elif event.state == WorkerState.ERROR:
            self._loading = False
            self._load_error = str(event.worker.error)
            logger.error("Loading packages failed: %s", self._load_error)
            self._update_loading_status()
            if self._main_started:
                self._set_details(f"[red]Error: {self._load_error}[/]")

    def _update_loading_status(self) -> None:
        try:
            self.query_one("#welcome_loading").remove_class("loading")
            hint = self.query_one("#welcome_hint", Static)
            if self._load_error:
                hint.update(f"[red]Error: {self._load_error}[/]  ·  [dim]q[/] to quit")
            else:
                hint.update(
                    f"[green]✓[/] {len(self._engine.catalog)} packages installed  ·  "
                    "[cyan]Enter[/] to explore  ·  [dim]q[/] to quit"
                )
        except Exception:
            pass

    def _on_diagnostic(self, diagnostic: Diagnostic) -> None:
        logger.info("%s", diagnostic)
        self._diagnostics.append(diagnostic)
        del self._diagnostics[:-MAX_DIAGNOSTICS]

    # -- rendering ---------------------------------------------------------

    def action_start_main(self) -> None:
        if self._main_started:
            return
        self._main_started = True
        try:
            self.query_one("#welcome_container").styles.display = "none"
            self.query_one("#main_container").styles.display = "block"
        except Exception:
            pass
        self._render_view()

    def _clear_tree(self, tree: Tree) -> None:
        while tree.root.children:
            tree.root.children[0].remove()

    def _render_view(self) -> None:
        tree = self.query_one("#dep_tree", Tree)
        self._clear_tree(tree)
        self._search_matches = []
        if self._loading:
            tree.root.label = f"[{COLOR_HEADER}]Loading packages...[/]"
            self._set_details("[dim]Reading installed packages in background...[/]")
        elif self._mode == MODE_REVERSE and self._reverse_target:
            self._render_reverse(tree, self._reverse_target)
        else:
            self._render_forward(tree)
        tree.root.expand()
        try:
            tree.focus()
        except Exception:
            pass

    def _render_forward(self, tree: Tree) -> None:
        self.sub_title = "Dependency Tree"
        roots = self._engine.roots()
        tree.root.label = f"[{COLOR_HEADER}]Installed packages[/] [dim]({len(roots)} roots)[/]"
        if not roots:
            tree.root.add_leaf("[dim]No root packages[/]")
            self._set_details(
                "No root packages: the catalog is empty or every package is depended upon.\n\n"
                "[dim]o[/] = Open packages folder  ·  [dim]r[/] = Refresh"
            )
            return
        for root in roots:
            node = self._engine.expand(root.name, max_depth=0)
            self._add_package_node(tree.root, node, path=(), root=True)
        self._set_details(self._summary())

    def _render_reverse(self, tree: Tree, name: str) -> None:
        self.sub_title = "Who Depends on Me?"
        package = self._engine.package(name)
        shown = package.name if package else name
        tree.root.label = f"[{COLOR_HEADER}]Packages that depend on {shown}[/]"
        parents = self._engine.reverse_parents(name)
        if not parents:
            tree.root.add_leaf("[dim]NONE[/]")
        for parent in parents:
            node = self._engine.expand(parent.name, max_depth=0)
            self._add_package_node(tree.root, node, path=())
        self._set_details(format_package(self._engine, name))

    def _add_package_node(
        self,
        parent: TreeNode,
        node: DependencyNode,
        *,
        path: tuple[str, ...],
        root: bool = False,
    ) -> None:
        label = node_label(node, root=root)
        data = NodeData(name=node.name, path=path)
        if node.is_leaf:
            parent.add_leaf(label, data=data)
            return
        child = parent.add(label, data=data, expand=False)
        if self._engine.is_disclosed(node.name):
            child.expand()

    def _load_children(self, tn: TreeNode, data: NodeData) -> None:
        """Add a node's dependencies the first time it is shown."""
        subtree = self._engine.expand(data.name, max_depth=1, ancestors=data.path)
        path = data.path + (data.name,)
        for child in subtree.children:
            self._add_package_node(tn, child, path=path)
        data.loaded = True

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        data = event.node.data
        if not isinstance(data, NodeData):
            return
        if not self._engine.is_disclosed(data.name):
            self._engine.toggle(data.name)
        if not data.loaded:
            self._load_children(event.node, data)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        data = event.node.data
        if isinstance(data, NodeData) and self._engine.is_disclosed(data.name):
            self._engine.toggle(data.name)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        data = event.node.data
        if isinstance(data, NodeData):
            self._set_details(format_package(self._engine, data.name))

    def _summary(self) -> str:
        catalog = self._engine.catalog
        lines = [
            f"[{COLOR_HEADER}]Installed packages[/]",
            "",
            f"Total: [{COLOR_STATS}]{len(catalog)}[/]  ·  "
            f"Roots: [{COLOR_STATS}]{len(self._engine.roots())}[/]  ·  "
            f"Missing dependencies: [{COLOR_STATS}]{len(self._engine.index.dangling(catalog))}[/]",
        ]
        cycles = [d for d in self._diagnostics if d.kind is DiagnosticKind.CYCLE]
        duplicates = [d for d in self._diagnostics if d.kind is DiagnosticKind.DUPLICATE]
        for d in duplicates + cycles[-3:]:
            lines.append(f"[{COLOR_CYCLE}]{d}[/]")
        lines.append("")
        lines.append(
            "[dim]↑/↓[/] move  ·  [dim]Space[/] expand  ·  [dim]w[/] = who depends on this  ·  "
            "[dim]t[/] = switch view"
        )
        return "\n".join(lines)

    def _set_details(self, text: str) -> None:
        self.query_one("#details", Static).update(text)

    # -- actions -----------------------------------------------------------

    def _cursor_package(self) -> str | None:
        tree = self.query_one("#dep_tree", Tree)
        node = tree.cursor_node
        if node is not None and isinstance(node.data, NodeData):
            return node.data.name
        return None

    def _show_reverse(self, name: str | None) -> None:
        if not name:
            return
        if not self._engine.is_installed(name):
            self.notify(f"Not installed: {name}", severity="warning", timeout=2)
            return
        self._mode = MODE_REVERSE
        self._reverse_target = name
        self._render_view()

    def action_who_depends(self) -> None:
        """Who depends on the package under the cursor (or a typed name)."""
        if not self._main_started:
            return
        name = self._cursor_package()
        if name and self._engine.is_installed(name):
            self._show_reverse(name)
            return
        self.push_screen(
            SearchScreen(
                "[bold cyan]Who depends on me?[/]\n\nType an installed package name.",
                "[dim]Enter[/] = Show dependents  ·  [dim]Escape[/] = Cancel",
            ),
            self._show_reverse,
        )

    def action_switch_mode(self) -> None:
        if not self._main_started:
            return
        if self._mode == MODE_FORWARD:
            if self._reverse_target:
                self._show_reverse(self._reverse_target)
            else:
                self.action_who_depends()
            return
        self._mode = MODE_FORWARD
        self._render_view()

    def action_back(self) -> None:
        if not self._main_started or self._mode == MODE_FORWARD:
            return
        self._mode = MODE_FORWARD
        self._render_view()

    def action_refresh(self) -> None:
        """Reload the package list; expanded packages stay expanded."""
        if not self._main_started:
            return
        self._start_load()
        self._render_view()

    def action_collapse_all(self) -> None:
        self._engine.state.reset()
        if self._main_started:
            self._render_view()

    def action_open_source(self) -> None:
        if not self._main_started:
            return
        self.push_screen(OpenSourceScreen(), self._on_open_done)

    def _on_open_done(self, path: Path | None) -> None:
        if path is None:
            return
        if path.is_file():
            self._catalog_file = path
        else:
            self._catalog_file = None
            self._packages_dir = path
        self.notify(f"Opening: {path}", severity="information", timeout=2)
        self.action_refresh()

    def action_search(self) -> None:
        if not self._main_started:
            return
        self.push_screen(
            SearchScreen(
                "[bold cyan]Search[/]\n\nType a package name or partial match to find in the tree.",
                "[dim]Enter[/] = Search  ·  [dim]Escape[/] = Cancel\n"
                "[dim]After search: [bold]n[/bold] = next match, [bold]N[/bold] = previous[/]",
            ),
            self._on_search_done,
        )

    def _on_search_done(self, query: str | None) -> None:
        if not query:
            return
        self._search_matches = []
        self._search_index = 0
        tree = self.query_one("#dep_tree", Tree)
        self._collect_matches(tree.root, query.lower())
        if not self._search_matches:
            self.notify(f"No matches for '{query}'", severity="warning", timeout=2)
            return
        self.notify(
            f"Found {len(self._search_matches)} match(es) for '{query}'",
            severity="information",
            timeout=2,
        )
        self._goto_match(0)

    def _collect_matches(self, node: TreeNode, query: str) -> None:
        """Recursively collect loaded nodes whose package name matches."""
        if isinstance(node.data, NodeData) and query in node.data.name.lower():
            self._search_matches.append(node)
        for child in node.children:
            self._collect_matches(child, query)

    def _goto_match(self, index: int) -> None:
        if not self._search_matches:
            return
        self._search_index = index % len(self._search_matches)
        match_node = self._search_matches[self._search_index]
        parent = match_node.parent
        while parent is not None:
            parent.expand()
            parent = parent.parent
        tree = self.query_one("#dep_tree", Tree)
        tree.select_node(match_node)
        tree.scroll_to_node(match_node)

    def action_next_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index + 1)

    def action_prev_match(self) -> None:
        if not self._search_matches:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._goto_match(self._search_index - 1)

    def action_toggle_details(self) -> None:
        self._details_visible = not self._details_visible
        try:
            details = self.query_one("#details", Static)
            details.styles.display = "block" if self._details_visible else "none"
        except Exception:
            pass

    def action_quit(self) -> None:
        self.exit()


def main() -> None:
    """Entry point for the pkgtree TUI."""
    packages_dir = Path(sys.argv[1]).expanduser() if len(sys.argv) > 1 else None
    app = DepTreeApp(packages_dir=packages_dir)
    app.run()


if __name__ == "__main__":
    main()
