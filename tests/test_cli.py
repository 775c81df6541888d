"""Tests for pkgtree CLI."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from unittest import mock

import pytest

from pkgtree.cli import (
    _collect_edges,
    _generate_dot,
    _generate_mermaid,
    _mermaid_id,
    _print_tree_text,
    cmd_list,
    cmd_roots,
    cmd_tree,
    cmd_why,
    main,
)
from pkgtree.core.catalog import InstalledPackage
from pkgtree.core.tree import DependencyNode, NodeStatus, TreeQueryEngine

CATALOG = {
    "packages": [
        {"id": "App", "version": "1.0.0", "dependencies": [{"id": "Lib", "version": "2.0"}, "Ghost"]},
        {"id": "Lib", "version": "2.1.0", "dependencies": ["Core"]},
        {"id": "Core", "version": "0.9.0"},
        {"id": "Tool", "version": "3.0.0", "dependencies": ["Core"]},
    ]
}


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG))
    return path


def _args(catalog_file: Path, **kwargs) -> argparse.Namespace:
    defaults = {"catalog": str(catalog_file), "packages_dir": None, "framework": None, "json": False}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestPrintTreeText:
    """Tests for _print_tree_text helper."""

    def test_simple_node(self, capsys) -> None:
        _print_tree_text(DependencyNode(name="pkg", version="1.0.0"))
        assert capsys.readouterr().out == "pkg (1.0.0)\n"

    def test_branches_and_markers(self, capsys) -> None:
        tree = DependencyNode(
            name="A",
            version="1.0",
            children=[
                DependencyNode(
                    name="B",
                    version="1.0",
                    constraint="0.5",
                    children=[DependencyNode(name="A", version="", status=NodeStatus.CYCLE)],
                ),
                DependencyNode(name="Ghost", version="", status=NodeStatus.NOT_INSTALLED),
                DependencyNode(name="C", version="2.0", truncated=True),
            ],
        )
        _print_tree_text(tree)
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "A (1.0)",
            "├── B (1.0) >= 0.5",
            "│   └── A [cycle]",
            "├── Ghost [not installed]",
            "└── C (2.0) ...",
        ]


class TestCommands:
    """Tests for cmd_* functions."""

    def test_list(self, catalog_file: Path, capsys) -> None:
        assert cmd_list(_args(catalog_file, verbose=True)) == 0
        out = capsys.readouterr().out
        assert "Found 4 package(s)" in out
        assert "App 1.0.0  -> Lib 2.0, Ghost" in out

    def test_list_json(self, catalog_file: Path, capsys) -> None:
        assert cmd_list(_args(catalog_file, verbose=False, json=True)) == 0
        data = json.loads(capsys.readouterr().out)
        assert [p["id"] for p in data] == ["App", "Lib", "Core", "Tool"]

    def test_list_empty(self, tmp_path: Path, capsys) -> None:
        args = argparse.Namespace(catalog=None, packages_dir=str(tmp_path), framework=None, json=False, verbose=False)
        assert cmd_list(args) == 1
        assert "No installed packages" in capsys.readouterr().out

    def test_bad_catalog(self, tmp_path: Path, capsys) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{")
        assert cmd_roots(_args(bad)) == 1
        assert "Error:" in capsys.readouterr().err

    def test_roots(self, catalog_file: Path, capsys) -> None:
        assert cmd_roots(_args(catalog_file)) == 0
        out = capsys.readouterr().out
        assert "App 1.0.0" in out
        assert "Tool 3.0.0" in out
        assert "Lib" not in out

    def test_roots_json(self, catalog_file: Path, capsys) -> None:
        assert cmd_roots(_args(catalog_file, json=True)) == 0
        assert json.loads(capsys.readouterr().out) == [
            {"id": "App", "version": "1.0.0"},
            {"id": "Tool", "version": "3.0.0"},
        ]

    def test_tree_single(self, catalog_file: Path, capsys) -> None:
        assert cmd_tree(_args(catalog_file, package="app", depth=None)) == 0
        out = capsys.readouterr().out
        assert out.startswith("App (1.0.0)")
        assert "Core (0.9.0)" in out
        assert "Ghost [not installed]" in out

    def test_tree_all_roots_json(self, catalog_file: Path, capsys) -> None:
        assert cmd_tree(_args(catalog_file, package=None, depth=1, json=True)) == 0
        data = json.loads(capsys.readouterr().out)
        assert [t["name"] for t in data] == ["App", "Tool"]
        assert data[0]["children"][0]["truncated"] is True

    def test_tree_not_installed(self, catalog_file: Path, capsys) -> None:
        assert cmd_tree(_args(catalog_file, package="Ghost", depth=None)) == 1
        assert "not installed" in capsys.readouterr().err

    def test_tree_long_chain(self, tmp_path: Path, capsys) -> None:
        size = 1200
        path = tmp_path / "chain.json"
        path.write_text(
            json.dumps(
                [
                    {"id": f"p{i}", "version": "1.0", "dependencies": [f"p{i + 1}"] if i + 1 < size else []}
                    for i in range(size)
                ]
            )
        )
        assert cmd_tree(_args(path, package=None, depth=None)) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == size
        assert lines[-1].endswith(f"└── p{size - 1} (1.0)")

    def test_why(self, catalog_file: Path, capsys) -> None:
        assert cmd_why(_args(catalog_file, package="core")) == 0
        out = capsys.readouterr().out
        assert "Lib 2.1.0" in out
        assert "Tool 3.0.0" in out

    def test_why_none(self, catalog_file: Path, capsys) -> None:
        assert cmd_why(_args(catalog_file, package="App")) == 0
        assert "NONE" in capsys.readouterr().out

    def test_why_json(self, catalog_file: Path, capsys) -> None:
        assert cmd_why(_args(catalog_file, package="Lib", json=True)) == 0
        assert json.loads(capsys.readouterr().out) == [{"id": "App", "version": "1.0.0"}]

    def test_why_not_installed(self, catalog_file: Path) -> None:
        assert cmd_why(_args(catalog_file, package="Ghost")) == 1


class TestGraph:
    """Tests for graph generation."""

    def _engine(self) -> TreeQueryEngine:
        return TreeQueryEngine(
            [
                InstalledPackage.create("my-app", "1.0", ["Lib.Core", "Ghost"]),
                InstalledPackage.create("Lib.Core", "1.0"),
                InstalledPackage.create("Other", "1.0"),
            ]
        )

    def test_collect_all_edges(self) -> None:
        edges = _collect_edges(self._engine())
        assert edges == {("my-app", "Lib.Core"), ("my-app", "Ghost")}

    def test_collect_reachable_edges(self) -> None:
        engine = self._engine()
        assert _collect_edges(engine, ["Lib.Core"]) == set()
        assert _collect_edges(engine, ["my-app"]) == {("my-app", "Lib.Core"), ("my-app", "Ghost")}

    def test_dot(self) -> None:
        engine = self._engine()
        dot = _generate_dot(engine, _collect_edges(engine), title="T")
        assert dot.startswith("digraph dependencies {")
        assert 'label="T";' in dot
        assert '"my-app" -> "Lib.Core";' in dot
        assert '"my-app" [style="rounded,filled", fillcolor=lightblue];' in dot
        assert '"Ghost" [style="rounded,dashed"];' in dot
        assert dot.endswith("}")

    def test_mermaid(self) -> None:
        engine = self._engine()
        out = _generate_mermaid(engine, _collect_edges(engine))
        assert out.startswith("graph LR")
        assert "my_app --> Lib_Core" in out
        assert "style my_app fill:#add8e6" in out

    def test_mermaid_id(self) -> None:
        assert _mermaid_id("a-b.c") == "a_b_c"

    def test_edges_use_installed_spelling(self) -> None:
        engine = TreeQueryEngine(
            [
                InstalledPackage.create("App", "1.0", ["newtonsoft.json"]),
                InstalledPackage.create("Newtonsoft.Json", "13.0", ["Core"]),
                InstalledPackage.create("Core", "1.0"),
            ]
        )
        expected = {("App", "Newtonsoft.Json"), ("Newtonsoft.Json", "Core")}
        assert _collect_edges(engine) == expected
        assert _collect_edges(engine, ["App"]) == expected
        dot = _generate_dot(engine, expected)
        assert "newtonsoft.json" not in dot
        assert '"App" -> "Newtonsoft.Json";' in dot


class TestMain:
    """Tests for the argparse entry point."""

    def test_roots(self, catalog_file: Path, capsys) -> None:
        assert main(["roots", "--catalog", str(catalog_file)]) == 0
        assert "App" in capsys.readouterr().out

    def test_log_level_option(self, catalog_file: Path) -> None:
        assert main(["--log-level", "debug", "list", "-c", str(catalog_file)]) == 0

    def test_graph_to_file(self, catalog_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "g.dot"
        assert main(["graph", "-c", str(catalog_file), "-o", str(out), "--no-title"]) == 0
        text = out.read_text()
        assert '"Lib" -> "Core";' in text
        assert "label=" not in text

    def test_graph_single_package_mermaid(self, catalog_file: Path, capsys) -> None:
        assert main(["graph", "Lib", "-c", str(catalog_file), "-f", "mermaid"]) == 0
        out = capsys.readouterr().out
        assert "title: Lib dependencies" in out
        assert "Lib --> Core" in out
        assert "App" not in out

    def test_graph_unknown_package(self, catalog_file: Path) -> None:
        assert main(["graph", "Nope", "-c", str(catalog_file)]) == 1

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "pkgtree" in capsys.readouterr().out

    def test_default_runs_tui(self) -> None:
        with mock.patch("pkgtree.cli.cmd_tui", return_value=0) as tui:
            assert main([]) == 0
        tui.assert_called_once()

    def test_tui_command(self, catalog_file: Path) -> None:
        with mock.patch("pkgtree.tui.app.DepTreeApp.run") as run:
            assert main(["tui", "-c", str(catalog_file)]) == 0
        run.assert_called_once()
