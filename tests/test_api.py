"""Tests for pkgtree.api module."""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

import pkgtree
from pkgtree.api import (
    build_tree,
    create_engine,
    load_catalog_file,
    scan_installed_packages,
    who_depends_on,
)
from pkgtree.core.catalog import InstalledPackage
from pkgtree.core.parser import CatalogLoadError
from pkgtree.core.tree import NodeStatus, ReloadPolicy


class TestModuleExports:
    """Tests for pkgtree module-level exports."""

    def test_version_format(self) -> None:
        assert isinstance(pkgtree.__version__, str)
        assert re.match(r"^\d+\.\d+\.\d+(\+.+)?$", pkgtree.__version__)

    def test_exports(self) -> None:
        for name in pkgtree.__all__:
            assert hasattr(pkgtree, name)


class TestApi:
    """Tests for the public API functions."""

    def test_load_catalog_file(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"id": "A", "version": "1.0", "dependencies": ["B"]}]))
        packages = load_catalog_file(path)
        assert [p.name for p in packages] == ["A"]

    def test_load_catalog_file_error(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogLoadError):
            load_catalog_file(tmp_path / "missing.json")

    def test_scan_installed_packages(self, tmp_path: Path) -> None:
        folder = tmp_path / "A.1.0.0"
        folder.mkdir()
        (folder / "A.nuspec").write_text(
            "<package><metadata><id>A</id><version>1.0.0</version></metadata></package>"
        )
        assert [p.name for p in scan_installed_packages(tmp_path)] == ["A"]

    def test_create_engine_defaults(self) -> None:
        engine = create_engine()
        assert engine.roots() == []
        assert engine.reload_policy is ReloadPolicy.PRESERVE

    def test_build_tree_and_who_depends_on(self) -> None:
        seen = []
        engine = create_engine(
            [
                InstalledPackage.create("App", "1.0", ["Lib", "Ghost"]),
                InstalledPackage.create("Lib", "2.0"),
            ],
            reload_policy=ReloadPolicy.COLLAPSE,
            diagnostic_hook=seen.append,
        )
        tree = build_tree(engine, "app")
        assert tree.name == "App"
        assert [c.name for c in tree.children] == ["Lib", "Ghost"]
        assert tree.children[1].status is NodeStatus.NOT_INSTALLED
        assert len(seen) == 1
        assert [p.name for p in who_depends_on(engine, "lib")] == ["App"]
        assert who_depends_on(engine, "App") == []

    def test_build_tree_max_depth(self) -> None:
        engine = create_engine(
            [
                InstalledPackage.create("A", "1.0", ["B"]),
                InstalledPackage.create("B", "1.0", ["C"]),
                InstalledPackage.create("C", "1.0"),
            ]
        )
        tree = build_tree(engine, "A", max_depth=1)
        assert tree.children[0].truncated
        assert tree.children[0].children == []
