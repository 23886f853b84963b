"""Tests for btc_predictor.utils.logger."""

import logging
from unittest.mock import patch

from btc_predictor.utils.logger import setup_logger


class TestSetupLogger:

    def test_names_are_nested_under_project(self):
        assert setup_logger("fallback").name == "btc_predictor.fallback"
        assert setup_logger("btc_predictor.scoring").name == "btc_predictor.scoring"
        assert setup_logger().name == "btc_predictor"

    def test_single_handler_per_logger(self):
        setup_logger("handler_check")
        logger = setup_logger("handler_check")
        assert len(logger.handlers) == 1

    def test_level_defaults_to_settings(self):
        with patch("btc_predictor.utils.logger.setting", return_value="DEBUG"):
            assert setup_logger("level_check").level == logging.DEBUG

    def test_explicit_level_wins(self):
        assert setup_logger("level_check", "warning").level == logging.WARNING
