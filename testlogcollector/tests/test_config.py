import os
import tempfile
import unittest
from dataclasses import dataclass, field
from typing import Dict
from unittest import mock

import testlogcollector.lib.config as cfg
from testlogcollector.lib.config import Config, LogFormat, LoggingConfig


@dataclass
class LoggingConfigCase:
    name: str
    env_vars: Dict[str, str]
    file_contents: str | None
    expected: LoggingConfig


@dataclass
class InvalidConfigCase:
    name: str
    env_vars: Dict[str, str]
    file_contents: str | None = None
    expected_msg: str = ""


class ConfigTest(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.tmp_dir.name, "logging.yaml")

    def tearDown(self):
        self.tmp_dir.cleanup()

    def write_config(self, contents: str) -> None:
        with open(self.config_path, "w") as fh:
            fh.write(contents)

    def build_env_vars(self, env_vars: Dict[str, str], file_contents: str | None) -> Dict[str, str]:
        retval = dict(env_vars)
        if file_contents is not None:
            self.write_config(file_contents)
            retval[cfg.CONFIG_ENV_VAR_KEY] = self.config_path
        return retval

    def test_get_logging_config(self):
        test_cases = [
            LoggingConfigCase("defaults", {}, None, LoggingConfig()),
            LoggingConfigCase(
                "env only",
                {cfg.LOGLEVEL_ENV_VAR_KEY: "debug", cfg.LOGFORMAT_ENV_VAR_KEY: "CONSOLE"},
                None,
                LoggingConfig(log_level="DEBUG", log_format=LogFormat.CONSOLE),
            ),
            LoggingConfigCase(
                "file only",
                {},
                "log_level: warning\nlog_format: console\nconst_kvs:\n  suite: unit\n  run: 3\n",
                LoggingConfig(
                    log_level="WARNING",
                    log_format=LogFormat.CONSOLE,
                    const_kvs={"suite": "unit", "run": "3"},
                ),
            ),
            LoggingConfigCase(
                "env overrides file",
                {cfg.LOGLEVEL_ENV_VAR_KEY: "ERROR"},
                "log_level: debug\nlog_format: json\n",
                LoggingConfig(log_level="ERROR", log_format=LogFormat.JSON),
            ),
            LoggingConfigCase("empty file", {}, "", LoggingConfig()),
        ]

        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                env_vars = self.build_env_vars(test_case.env_vars, test_case.file_contents)
                actual = Config.get_logging_config(env_vars)
                self.assertEqual(test_case.expected, actual)

    def test_get_logging_config_invalid(self):
        test_cases = [
            InvalidConfigCase(
                "unknown level in env",
                {cfg.LOGLEVEL_ENV_VAR_KEY: "chatty"},
                expected_msg="log_level=CHATTY",
            ),
            InvalidConfigCase(
                "unknown format in env",
                {cfg.LOGFORMAT_ENV_VAR_KEY: "xml"},
                expected_msg="log_format=xml",
            ),
            InvalidConfigCase(
                "unknown format in file",
                {},
                "log_format: logfmt\n",
                expected_msg="log_format=logfmt",
            ),
        ]

        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                env_vars = self.build_env_vars(test_case.env_vars, test_case.file_contents)
                with self.assertRaises(ValueError) as ctx:
                    Config.get_logging_config(env_vars)
                self.assertIn(test_case.expected_msg, str(ctx.exception))

    def test_get_env_vars_filters_on_prefix(self):
        env = {
            cfg.LOGLEVEL_ENV_VAR_KEY: "DEBUG",
            "OTHER_TESTLOGCOLLECTOR_LOGLEVEL": "ERROR",
            "PATH": "/usr/bin",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            actual = Config.get_env_vars(cfg.ENV_VAR_PREFIX)
        self.assertEqual({cfg.LOGLEVEL_ENV_VAR_KEY: "DEBUG"}, actual)

    def test_get_logging_config_reads_environment(self):
        with mock.patch.dict(os.environ, {cfg.LOGFORMAT_ENV_VAR_KEY: "console"}, clear=True):
            actual = Config.get_logging_config()
        self.assertEqual(LogFormat.CONSOLE, actual.log_format)

    def test_log_format_from_string(self):
        self.assertEqual(LogFormat.JSON, LogFormat.get_enum_value_from_string("json"))
        self.assertEqual(LogFormat.CONSOLE, LogFormat.get_enum_value_from_string("Console"))
        self.assertIsNone(LogFormat.get_enum_value_from_string("yaml"))
