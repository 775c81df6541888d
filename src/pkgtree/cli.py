"""Command-line interface for pkgtree: list packages, show roots, trees, and dependents."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pkgtree import __version__
from pkgtree.api import create_engine, load_catalog_file, scan_installed_packages
from pkgtree.config import configure_logging
from pkgtree.core.catalog import InstalledPackage
from pkgtree.core.parser import CatalogLoadError
from pkgtree.core.tree import DependencyNode, NodeStatus, TreeQueryEngine

logger = logging.getLogger(__name__)

_STATUS_MARKERS = {
    NodeStatus.NOT_INSTALLED: "[not installed]",
    NodeStatus.CYCLE: "[cycle]",
}


def _load_packages(args: argparse.Namespace) -> list[InstalledPackage]:
    """Packages from --catalog if given, else from the packages folder."""
    catalog = getattr(args, "catalog", None)
    if catalog:
        return load_catalog_file(Path(catalog))
    packages_dir = getattr(args, "packages_dir", None)
    return scan_installed_packages(
        Path(packages_dir) if packages_dir else None,
        target_framework=getattr(args, "framework", None),
    )


def _engine_from_args(args: argparse.Namespace) -> TreeQueryEngine | None:
    try:
        packages = _load_packages(args)
    except CatalogLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    logger.debug("Loaded %d package(s)", len(packages))
    return create_engine(packages)


def _node_line(node: DependencyNode) -> str:
    version = f" ({node.version})" if node.version else ""
    wants = f" >= {node.constraint}" if node.constraint else ""
    marker = f" {_STATUS_MARKERS[node.status]}" if node.status in _STATUS_MARKERS else ""
    more = " ..." if node.truncated else ""
    return f"{node.name}{version}{wants}{marker}{more}"


def _print_tree_text(node: DependencyNode) -> None:
    """Print a dependency tree as indented text."""
    print(_node_line(node))
    stack = [(child, "", i == len(node.children) - 1) for i, child in enumerate(node.children)][::-1]
    while stack:
        current, prefix, is_last = stack.pop()
        print(f"{prefix}{'└── ' if is_last else '├── '}{_node_line(current)}")
        child_prefix = prefix + ("    " if is_last else "│   ")
        last = len(current.children) - 1
        stack.extend([(c, child_prefix, i == last) for i, c in enumerate(current.children)][::-1])


def cmd_list(args: argparse.Namespace) -> int:
    """List installed packages."""
    engine = _engine_from_args(args)
    if engine is None:
        return 1
    packages = engine.packages()
    if args.json:
        print(json.dumps([p.to_dict() for p in packages], indent=2))
        return 0
    if not packages:
        print("No installed packages found.")
        return 1
    print(f"Found {len(packages)} package(s):\n")
    for package in packages:
        line = f"  {package.name} {package.version}"
        if args.verbose and package.dependencies:
            line += "  -> " + ", ".join(str(d) for d in package.dependencies)
        print(line)
    return 0


def cmd_roots(args: argparse.Namespace) -> int:
    """List packages nothing else depends on."""
    engine = _engine_from_args(args)
    if engine is None:
        return 1
    roots = engine.roots()
    if args.json:
        print(json.dumps([{"id": r.name, "version": str(r.version)} for r in roots], indent=2))
        return 0
    if not roots:
        print("No root packages (empty catalog or every package is depended upon).")
        return 0
    for root in roots:
        print(f"  {root.name} {root.version}")
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    """Show dependency tree for a package, or for every root."""
    engine = _engine_from_args(args)
    if engine is None:
        return 1
    if args.package:
        if not engine.is_installed(args.package):
            print(f"Package not installed: {args.package}", file=sys.stderr)
            return 1
        names = [args.package]
    else:
        names = [r.name for r in engine.roots()]
    trees = [engine.expand(name, max_depth=args.depth) for name in names]

    if args.json:
        payload = trees[0].to_dict() if args.package else [t.to_dict() for t in trees]
        try:
            text = json.dumps(payload, indent=2)
        except RecursionError:
            print("Error: tree is too deep for JSON output; limit it with --depth", file=sys.stderr)
            return 1
        print(text)
    else:
        for tree in trees:
            _print_tree_text(tree)
    return 0


def cmd_why(args: argparse.Namespace) -> int:
    """Show which installed packages depend on a package."""
    engine = _engine_from_args(args)
    if engine is None:
        return 1
    if not engine.is_installed(args.package):
        print(f"Package not installed: {args.package}", file=sys.stderr)
        return 1
    parents = engine.reverse_parents(args.package)
    if args.json:
        print(json.dumps([{"id": p.name, "version": str(p.version)} for p in parents], indent=2))
        return 0
    print(f"Packages that depend on {args.package}:")
    if not parents:
        print("  NONE")
    for parent in parents:
        print(f"  {parent.name} {parent.version}")
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    """Launch the interactive TUI."""
    from pkgtree.tui.app import DepTreeApp

    packages_dir = getattr(args, "packages_dir", None)
    catalog = getattr(args, "catalog", None)
    app = DepTreeApp(
        packages_dir=Path(packages_dir) if packages_dir else None,
        catalog_file=Path(catalog) if catalog else None,
        target_framework=getattr(args, "framework", None),
    )
    app.run()
    return 0


def _canonical(engine: TreeQueryEngine, name: str) -> str:
    """Installed spelling of ``name``, or ``name`` itself when it is not installed."""
    package = engine.package(name)
    return package.name if package is not None else name


def _collect_edges(engine: TreeQueryEngine, names: list[str] | None = None) -> set[tuple[str, str]]:
    """(parent, child) edges reachable from ``names``, or every edge in the catalog."""
    if names is None:
        return {
            (p.name, _canonical(engine, d.target_name)) for p in engine.packages() for d in p.dependencies
        }
    edges: set[tuple[str, str]] = set()
    seen: set[str] = set()
    stack = list(names)
    while stack:
        name = stack.pop()
        package = engine.package(name)
        if package is None or package.key in seen:
            continue
        seen.add(package.key)
        for dep in engine.forward_children(package.name):
            edges.add((package.name, _canonical(engine, dep.target_name)))
            stack.append(dep.target_name)
    return edges


def _generate_dot(engine: TreeQueryEngine, edges: set[tuple[str, str]], title: str | None = None) -> str:
    """Generate DOT (Graphviz) format; roots are filled, missing packages dashed."""
    lines = [
        "digraph dependencies {",
        "    rankdir=LR;",
        '    node [shape=box, style=rounded, fontname="sans-serif"];',
    ]
    if title:
        lines.insert(1, f'    label="{title}";')
        lines.insert(2, "    labelloc=t;")
    nodes = {n for edge in edges for n in edge}
    for root in engine.roots():
        if root.name in nodes or not edges:
            lines.append(f'    "{root.name}" [style="rounded,filled", fillcolor=lightblue];')
    for name in sorted(nodes):
        if not engine.is_installed(name):
            lines.append(f'    "{name}" [style="rounded,dashed"];')
    for parent, child in sorted(edges):
        lines.append(f'    "{parent}" -> "{child}";')
    lines.append("}")
    return "\n".join(lines)


def _mermaid_id(name: str) -> str:
    """Convert a package name to a valid Mermaid node ID."""
    return name.replace("-", "_").replace(".", "_")


def _generate_mermaid(engine: TreeQueryEngine, edges: set[tuple[str, str]], title: str | None = None) -> str:
    """Generate Mermaid format; roots are highlighted."""
    lines = [f"---\ntitle: {title}\n---\ngraph LR" if title else "graph LR"]
    nodes = {n for edge in edges for n in edge}
    for root in engine.roots():
        if root.name in nodes or not edges:
            lines.append(f"    {_mermaid_id(root.name)}[{root.name}]")
            lines.append(f"    style {_mermaid_id(root.name)} fill:#add8e6")
    for parent, child in sorted(edges):
        lines.append(f"    {_mermaid_id(parent)} --> {_mermaid_id(child)}")
    return "\n".join(lines)


def cmd_graph(args: argparse.Namespace) -> int:
    """Generate a dependency graph in DOT or Mermaid format."""
    engine = _engine_from_args(args)
    if engine is None:
        return 1
    if args.package and not engine.is_installed(args.package):
        print(f"Package not installed: {args.package}", file=sys.stderr)
        return 1
    edges = _collect_edges(engine, [args.package] if args.package else None)

    if args.no_title:
        title = None
    elif args.package:
        title = f"{args.package} dependencies"
    else:
        title = "Installed packages"

    if args.format == "mermaid":
        output = _generate_mermaid(engine, edges, title=title)
    else:
        output = _generate_dot(engine, edges, title=title)

    if args.output:
        Path(args.output).write_text(output)
        print(f"Graph written to: {args.output}", file=sys.stderr)
    else:
        print(output)
    return 0


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--packages-dir",
        metavar="PATH",
        help="Packages folder to scan for .nuspec files (default: $PKGTREE_PACKAGES_DIR or ./Packages)",
    )
    parser.add_argument(
        "-c",
        "--catalog",
        metavar="FILE",
        help="Read installed packages from a JSON catalog instead of a packages folder",
    )
    parser.add_argument(
        "--framework",
        metavar="TFM",
        help="Target framework for choosing dependency groups (default: $PKGTREE_TARGET_FRAMEWORK)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pkgtree CLI."""
    parser = argparse.ArgumentParser(
        prog="pkgtree",
        description="Explore installed package dependencies from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default=None,
        help="Logging level: DEBUG, INFO, WARNING, ERROR (default: $PKGTREE_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # pkgtree list
    list_parser = subparsers.add_parser(
        "list",
        help="List installed packages",
        description="List installed packages in catalog order.",
    )
    _add_source_options(list_parser)
    list_parser.add_argument("-v", "--verbose", action="store_true", help="Show declared dependencies")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=cmd_list)

    # pkgtree roots
    roots_parser = subparsers.add_parser(
        "roots",
        help="List packages no other installed package depends on",
        description="List root packages: installed packages nothing else depends on.",
    )
    _add_source_options(roots_parser)
    roots_parser.add_argument("--json", action="store_true", help="Output as JSON")
    roots_parser.set_defaults(func=cmd_roots)

    # pkgtree tree
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show dependency tree for a package (or all roots)",
        description="Display the dependency tree of a package, or of every root package.",
    )
    tree_parser.add_argument(
        "package",
        nargs="?",
        help="Package name to show dependencies for (default: every root)",
    )
    _add_source_options(tree_parser)
    tree_parser.add_argument(
        "-d",
        "--depth",
        type=int,
        default=None,
        help="Maximum tree depth (default: unlimited)",
    )
    tree_parser.add_argument("--json", action="store_true", help="Output as JSON")
    tree_parser.set_defaults(func=cmd_tree)

    # pkgtree why
    why_parser = subparsers.add_parser(
        "why",
        help="Show which installed packages depend on a package",
        description="Reverse lookup: list installed packages that declare the package as a dependency.",
    )
    why_parser.add_argument("package", help="Package name to look up")
    _add_source_options(why_parser)
    why_parser.add_argument("--json", action="store_true", help="Output as JSON")
    why_parser.set_defaults(func=cmd_why)

    # pkgtree graph
    graph_parser = subparsers.add_parser(
        "graph",
        help="Generate a dependency graph (DOT/Mermaid format)",
        description=(
            "Generate a dependency graph. Without arguments, graphs every installed "
            "package. Specify a package name to graph just what it reaches."
        ),
    )
    graph_parser.add_argument("package", nargs="?", help="Package name to graph (optional)")
    _add_source_options(graph_parser)
    graph_parser.add_argument(
        "-f",
        "--format",
        choices=["dot", "mermaid"],
        default="dot",
        help="Output format: dot (Graphviz) or mermaid (default: dot)",
    )
    graph_parser.add_argument("-o", "--output", metavar="FILE", help="Output file (default: stdout)")
    graph_parser.add_argument("--no-title", action="store_true", help="Don't include a title in the graph")
    graph_parser.set_defaults(func=cmd_graph)

    # pkgtree tui (default if no command)
    tui_parser = subparsers.add_parser(
        "tui",
        help="Launch the interactive terminal UI",
        description="Start the interactive TUI for browsing dependencies and dependents.",
    )
    _add_source_options(tui_parser)
    tui_parser.set_defaults(func=cmd_tui)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    # Default to TUI if no command specified
    if args.command is None:
        return cmd_tui(argparse.Namespace(packages_dir=None, catalog=None, framework=None))

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
