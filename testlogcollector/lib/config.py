# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import yaml

ENV_VAR_PREFIX = "TESTLOGCOLLECTOR"
ENV_VAR_CONFIG = "CONFIG"
ENV_VAR_LOGLEVEL = "LOGLEVEL"
ENV_VAR_LOGFORMAT = "LOGFORMAT"

CONFIG_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_CONFIG}"
LOGLEVEL_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_LOGLEVEL}"
LOGFORMAT_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_LOGFORMAT}"

DEFAULT_LOG_LEVEL = "INFO"


class LogFormat(Enum):
    JSON = "json"
    CONSOLE = "console"

    @staticmethod
    def get_enum_value_from_string(value_string: str):
        """
        Convert a string to the corresponding LogFormat enum value.
        :param value_string: The string representation of the enum value.
        :return: The corresponding LogFormat enum value or None if not found.
        """
        try:
            return LogFormat(value_string.lower())
        except ValueError:
            return None


@dataclass
class LoggingConfig:
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: LogFormat = LogFormat.JSON
    const_kvs: Dict[str, str] = field(default_factory=dict)


class Config(object):

    @staticmethod
    def load_configs(config: str) -> Dict:
        with open(config, "r") as fh:
            return yaml.load(fh, Loader=yaml.FullLoader) or {}

    @staticmethod
    def get_env_vars(prefix: str) -> Dict:
        retval = {}
        for k, v in os.environ.items():
            if k.startswith(f"{prefix}_"):
                retval[k] = v
        return retval

    @staticmethod
    def get_logging_config(env_vars: Optional[Dict] = None) -> LoggingConfig:
        """
        Build the logging configuration from an optional YAML file and the environment.

        Values in the environment take precedence over those in the file referenced by
        TESTLOGCOLLECTOR_CONFIG, which take precedence over the defaults.

        Args:
            env_vars (dict): Environment variables to read, defaults to those in os.environ with
                the TESTLOGCOLLECTOR prefix.

        Returns:
            LoggingConfig: The validated configuration.
        """
        if env_vars is None:
            env_vars = Config.get_env_vars(ENV_VAR_PREFIX)

        file_configs = {}
        if CONFIG_ENV_VAR_KEY in env_vars:
            file_configs = Config.load_configs(env_vars[CONFIG_ENV_VAR_KEY])

        retval = LoggingConfig()

        level = env_vars.get(LOGLEVEL_ENV_VAR_KEY, file_configs.get("log_level"))
        if level is not None:
            level = str(level).upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ValueError(f"unknown log level; log_level={level}")
            retval.log_level = level

        log_format = env_vars.get(LOGFORMAT_ENV_VAR_KEY, file_configs.get("log_format"))
        if log_format is not None:
            retval.log_format = LogFormat.get_enum_value_from_string(str(log_format))
            if retval.log_format is None:
                raise ValueError(f"unknown log format; log_format={log_format}")

        const_kvs = file_configs.get("const_kvs")
        if const_kvs:
            retval.const_kvs = {str(k): str(v) for k, v in const_kvs.items()}

        return retval
