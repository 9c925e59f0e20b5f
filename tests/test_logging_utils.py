import logging
import unittest
from unittest import mock

import logging_utils
from config import Config
from logging_utils import configure_logging, debug_enabled, get_log_level, log_event, set_log_level


class TestLogEvent(unittest.TestCase):
    def setUp(self):
        self.addCleanup(set_log_level, get_log_level())

    def test_fields_are_appended_and_floats_rounded(self):
        set_log_level("INFO")
        with mock.patch.object(logging_utils._logger_adapter, "log") as log_mock:
            log_event("INFO", "Mapper", "Sample", x=0.123456, count=3)

        log_mock.assert_called_once_with(logging.INFO, "Sample | x=0.123 count=3", tag="Mapper")

    def test_filtered_level_is_not_formatted(self):
        set_log_level("INFO")
        with mock.patch.object(logging_utils._logger_adapter, "log") as log_mock:
            log_event("DEBUG", "Mapper", "Sample", x=0.5)

        log_mock.assert_not_called()
        self.assertFalse(debug_enabled())

    def test_configure_logging_uses_config_level(self):
        cfg = Config()
        cfg.log_level = "debug"
        with mock.patch.object(logging_utils._logger_adapter, "log"):
            configure_logging(cfg)

        self.assertEqual(get_log_level(), "DEBUG")
        self.assertTrue(debug_enabled())


if __name__ == "__main__":
    unittest.main()
