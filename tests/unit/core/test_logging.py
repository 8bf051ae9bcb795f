import logging
import unittest

import pytest

from idasdk_build.core import (
    IdaSdkLogger,
    LevelFlag,
    LoggerConfigurator,
    configure_loggers,
    getLogger,
)
from idasdk_build.core.errors import InvalidLogLevelError, SdkNotFoundError
from idasdk_build.core.logging import IdaSdkFormatter, LOG_FILENAME


class TestLoggerConfigurator(unittest.TestCase):
    def setUp(self):
        self.prefix = "IdaSdk"
        self.test_logger_name = f"{self.prefix}.testunit"
        self.logger = getLogger(self.test_logger_name)
        self.logger.setLevel(logging.WARNING)

    def test_get_logger_returns_project_class(self):
        self.assertIsInstance(self.logger, IdaSdkLogger)
        self.assertIs(getLogger(self.test_logger_name), self.logger)

    def test_available_loggers_with_prefix(self):
        names = LoggerConfigurator.available_loggers(self.prefix)
        self.assertIn(self.test_logger_name, names)
        self.assertIn(self.prefix, names)

    def test_available_loggers_without_prefix(self):
        names = LoggerConfigurator.available_loggers()
        self.assertIn("idasdk_build", names)

    def test_set_level_changes_level(self):
        LoggerConfigurator.set_level(self.test_logger_name, "DEBUG")
        self.assertEqual(self.logger.level, logging.DEBUG)

    def test_set_level_invalid_raises(self):
        with self.assertRaises(ValueError):
            LoggerConfigurator.set_level(self.test_logger_name, "NOTALEVEL")

    def test_level_flag_tracks_level_changes(self):
        flag = LevelFlag(self.test_logger_name, logging.DEBUG)
        LoggerConfigurator.set_level(self.test_logger_name, "WARNING")
        self.assertFalse(flag)
        LoggerConfigurator.set_level(self.test_logger_name, "DEBUG")
        self.assertTrue(flag)


class TestTargetContext(unittest.TestCase):
    def tearDown(self):
        IdaSdkLogger.reset_target()

    def test_target_is_carried_in_mdc(self):
        IdaSdkLogger.update_target("myplugin")
        self.assertEqual(IdaSdkLogger.mdc()["target"], "myplugin")
        IdaSdkLogger.reset_target()
        self.assertEqual(IdaSdkLogger.mdc()["target"], "")

    def test_formatter_renders_target(self):
        formatter = IdaSdkFormatter("%(levelname)s%(target)s - %(message)s")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hi", None, None)
        record.target = "myplugin"
        self.assertEqual(formatter.format(record), "INFO - myplugin - hi")

    def test_formatter_without_target(self):
        formatter = IdaSdkFormatter("%(levelname)s%(target)s - %(message)s")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hi", None, None)
        self.assertEqual(formatter.format(record), "INFO - hi")


def test_configure_loggers_writes_file(tmp_path):
    log = getLogger("idasdk_build.test_logging")
    configure_loggers(tmp_path / "logs", level="DEBUG")
    try:
        assert log.isEnabledFor(logging.DEBUG)
        IdaSdkLogger.update_target("ldr")
        log.debug("configured")
        for handler in logging.getLogger("idasdk_build").handlers:
            handler.flush()
        text = (tmp_path / "logs" / LOG_FILENAME).read_text()
        assert "configured" in text
        assert " - ldr - " in text
    finally:
        IdaSdkLogger.reset_target()
        configure_loggers()


def test_configure_loggers_rejects_unknown_level():
    with pytest.raises(InvalidLogLevelError):
        configure_loggers(level="bogus")


def test_discovery_debug_flag_follows_configuration(tmp_path):
    from idasdk_build import discovery

    try:
        configure_loggers(level="INFO")
        assert not discovery._debug_on
        configure_loggers(tmp_path / "logs", level="DEBUG")
        with pytest.raises(SdkNotFoundError):
            discovery.find_sdk(root_dir=tmp_path / "nothing", environ={})
        for handler in logging.getLogger("idasdk_build").handlers:
            handler.flush()
        text = (tmp_path / "logs" / LOG_FILENAME).read_text()
        assert f"No IDA SDK at {tmp_path / 'nothing' / 'idasdk'}" in text
        assert discovery._debug_on
    finally:
        configure_loggers()
