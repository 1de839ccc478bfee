"""Tests for host-aware logging."""

import logging
from unittest.mock import MagicMock

import pytest
from solaryield.solaryield_logging import LogLevel, get_logger, set_global_feedback, set_global_level


@pytest.fixture
def feedback():
    host = MagicMock()
    yield host
    set_global_feedback(None)


class TestSolaryieldLogger:
    def test_get_logger_is_cached(self):
        assert get_logger("solaryield.test_a") is get_logger("solaryield.test_a")

    def test_standard_logging_backend(self, caplog):
        logger = get_logger("solaryield.test_std")
        assert logger.backend == "logging"
        with caplog.at_level(logging.INFO, logger="solaryield.test_std"):
            logger.info("Daily run started")
        assert "Daily run started" in caplog.text

    def test_level_filters_messages(self, caplog):
        logger = get_logger("solaryield.test_level")
        with caplog.at_level(logging.DEBUG, logger="solaryield.test_level"):
            logger.debug("hidden")
            logger.set_level(LogLevel.DEBUG)
            logger.debug("shown")
        assert "hidden" not in caplog.text
        assert "shown" in caplog.text

    def test_feedback_routing(self, feedback):
        logger = get_logger("solaryield.test_feedback")
        logger.set_level(LogLevel.DEBUG)
        set_global_feedback(feedback)
        assert logger.backend == "feedback"

        logger.debug("grid 8x8")
        logger.info("run started")
        logger.warning("p3 skipped")
        logger.error("failed")

        feedback.push_debug_info.assert_called_once_with("grid 8x8")
        feedback.push_info.assert_any_call("run started")
        feedback.push_info.assert_any_call("WARNING: p3 skipped")
        feedback.report_error.assert_called_once_with("failed")

    def test_global_level(self):
        a = get_logger("solaryield.test_global_a")
        b = get_logger("solaryield.test_global_b")
        set_global_level(LogLevel.ERROR)
        try:
            assert a.level == LogLevel.ERROR
            assert b.level == LogLevel.ERROR
        finally:
            set_global_level(LogLevel.INFO)
