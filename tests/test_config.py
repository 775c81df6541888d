"""Tests for pkgtree.config module."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest import mock

from pkgtree.config import DEFAULT_LOG_LEVEL, Settings, configure_logging

_CLEAN_ENV = {
    "PKGTREE_PACKAGES_DIR": "",
    "PKGTREE_TARGET_FRAMEWORK": "",
    "PKGTREE_LOG_LEVEL": "",
}


class TestSettings:
    """Tests for Settings.from_env."""

    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, _CLEAN_ENV, clear=False):
            settings = Settings.from_env()
        assert settings.packages_dir == Path("Packages").resolve()
        assert settings.target_framework is None
        assert settings.log_level == DEFAULT_LOG_LEVEL

    def test_from_env(self, tmp_path: Path) -> None:
        env = {
            "PKGTREE_PACKAGES_DIR": str(tmp_path),
            "PKGTREE_TARGET_FRAMEWORK": " netstandard2.0 ",
            "PKGTREE_LOG_LEVEL": "debug",
        }
        with mock.patch.dict(os.environ, env, clear=False):
            settings = Settings.from_env()
        assert settings.packages_dir == tmp_path.resolve()
        assert settings.target_framework == "netstandard2.0"
        assert settings.log_level == "DEBUG"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_explicit_level(self) -> None:
        configure_logging("info")
        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back(self) -> None:
        configure_logging("chatty")
        assert logging.getLogger().level == logging.WARNING

    def test_level_from_env(self) -> None:
        with mock.patch.dict(os.environ, {"PKGTREE_LOG_LEVEL": "ERROR"}, clear=False):
            configure_logging()
        assert logging.getLogger().level == logging.ERROR
