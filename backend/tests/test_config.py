"""Tests for settings and logging setup."""

from __future__ import annotations

import logging

from spacegeom.config import Settings
from spacegeom.logging_config import setup_logging


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.default_tolerance == 0.01
        assert settings.max_intersection_passes == 100

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SPACEGEOM_DEFAULT_TOLERANCE", "0.05")
        monkeypatch.setenv("SPACEGEOM_MAX_INTERSECTION_PASSES", "7")
        settings = Settings()
        assert settings.default_tolerance == 0.05
        assert settings.max_intersection_passes == 7


class TestSetupLogging:
    def teardown_method(self):
        logger = logging.getLogger("spacegeom")
        for handler in list(logger.handlers):
            handler.close()
        setup_logging("INFO")

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger("spacegeom").handlers) == 1

    def test_level_by_name(self):
        setup_logging("debug")
        assert logging.getLogger("spacegeom").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("LOUD")
        assert logging.getLogger("spacegeom").level == logging.INFO

    def test_log_file(self, tmp_path):
        path = tmp_path / "spacegeom.log"
        setup_logging(logging.WARNING, str(path))
        logger = logging.getLogger("spacegeom.geometry_engine.boolean_ops")
        logger.warning("Dropped union sliver")
        assert len(logging.getLogger("spacegeom").handlers) == 2
        assert "Dropped union sliver" in path.read_text(encoding="utf-8")
