# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
import sys
from datetime import datetime
from typing import IO, Any, Optional, Union

import structlog
from structlog.stdlib import BoundLogger

from testlogcollector.lib.config import Config, LogFormat, LoggingConfig
from testlogcollector.lib.shared import SharedLineCollector

Logger = Union[BoundLogger, Any]
Stream = Union[IO[str], SharedLineCollector]


def add_timestamp(logger, method_name, event_dict):
    """Add an ISO 8601 `@timestamp` with timezone offset, the format ELK stacks expect."""
    event_dict["@timestamp"] = datetime.now().astimezone().isoformat()
    return event_dict


def get_renderer(log_format: LogFormat):
    match log_format:
        case LogFormat.JSON:
            return structlog.processors.JSONRenderer()
        case LogFormat.CONSOLE:
            return structlog.dev.ConsoleRenderer(colors=False, event_key="message")
        case _:
            raise ValueError(f"unknown log format; log_format={log_format}")


def get_logger(
    name: str,
    log_level: str,
    stream: Optional[Stream] = None,
    log_format: LogFormat = LogFormat.JSON,
    cache_logger: bool = True,
    force_reconfig: bool = False,
    const_kvs: dict[str, str] | None = None,
) -> Logger:
    """
    Configure structlog on top of the stdlib root logger and return a logger for `name`.

    Every event, including those from third-party libraries that use the stdlib logging module,
    is rendered on a single line and written to `stream`. Passing a LineCollector or a
    SharedLineCollector as the stream collects one line per event.
    """
    if force_reconfig:
        structlog.reset_defaults()
        # Also clear handlers from the root logger so we don't duplicate them
        logging.getLogger().handlers.clear()

    # These run for BOTH the logger created here and third-party library logs.
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.EventRenamer("message"),
        structlog.processors.dict_tracebacks,
    ]

    if const_kvs is not None:
        # Add processors to inject a set of constant key/value pairs.
        for k, v in const_kvs.items():
            shared_processors.append(
                lambda logger, method_name, event_dict, key=k, value=v: {**event_dict, key: value}
            )

    if not structlog.is_configured():
        structlog.configure(
            processors=shared_processors
            + [
                # Prepare the data for the final formatter
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=cache_logger,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=get_renderer(log_format),
        foreign_pre_chain=shared_processors,
    )

    # Hijack the root logger to ensure we remove any existing handlers.
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    return structlog.get_logger(name)


def get_logger_from_config(
    name: str, logging_config: LoggingConfig, stream: Optional[Stream] = None, **kwargs
) -> Logger:
    return get_logger(
        name,
        logging_config.log_level,
        stream=stream,
        log_format=logging_config.log_format,
        const_kvs=logging_config.const_kvs or None,
        **kwargs,
    )


def get_logger_from_env(name: str, stream: Optional[Stream] = None, **kwargs) -> Logger:
    return get_logger_from_config(name, Config.get_logging_config(), stream=stream, **kwargs)
