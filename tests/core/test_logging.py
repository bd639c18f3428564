"""Tests for lithos.core.utils.logging."""

import os
import sys

from loguru import logger

from lithos.core.utils.logging import resolve_log_file, setup_logging


class TestSetupLogging:
    def test_file_sink_receives_messages(self, tmp_dir):
        log_file = os.path.join(tmp_dir, "lithos.log")
        setup_logging(level="INFO", log_file=log_file)
        try:
            logger.info("history ready")
            logger.debug("not written at INFO")
        finally:
            logger.remove()
            logger.add(sys.stderr)

        with open(log_file) as f:
            content = f.read()
        assert "history ready" in content
        assert "not written" not in content

    def test_relative_file_goes_to_log_dir(self, tmp_dir):
        log_dir = os.path.join(tmp_dir, "logs", "nested")
        try:
            path = setup_logging(level="warning", log_file="lithos.log", log_dir=log_dir)
            logger.warning("oversold")
        finally:
            logger.remove()
            logger.add(sys.stderr)

        assert path == os.path.join(log_dir, "lithos.log")
        with open(path) as f:
            assert "oversold" in f.read()

    def test_console_only(self):
        try:
            assert setup_logging() is None
        finally:
            logger.remove()
            logger.add(sys.stderr)


class TestResolveLogFile:
    def test_disabled(self):
        assert resolve_log_file(None, "/var/log") is None
        assert resolve_log_file("", "/var/log") is None

    def test_absolute_path_ignores_log_dir(self, tmp_dir):
        target = os.path.join(tmp_dir, "app.log")
        assert resolve_log_file(target, "/elsewhere") == target

    def test_relative_without_log_dir(self):
        assert resolve_log_file("app.log") == "app.log"
