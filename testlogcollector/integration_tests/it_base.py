# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import json
import logging
import unittest
from dataclasses import dataclass
from threading import Thread
from typing import Callable, Dict, List

import structlog

from testlogcollector.lib import logging as tlc_logging
from testlogcollector.lib.collector import LineCollector
from testlogcollector.lib.shared import SharedLineCollector

THREAD_JOIN_TIMEOUT_SECONDS = 10.0


@dataclass
class ExpectedEvent:
    message: str
    level: str


class ITBase(unittest.TestCase):

    def setup_base(self) -> None:
        self.collector: SharedLineCollector = LineCollector.new_shared()
        self.logger = tlc_logging.get_logger(
            self.__class__.__name__,
            "DEBUG",
            stream=self.collector,
            cache_logger=False,
            force_reconfig=True,
        )

    def teardown_base(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def get_events(self) -> List[Dict]:
        # Each line must be a complete JSON document on its own.
        return [json.loads(line) for line in self.collector.clone_lines()]

    def run_threads(self, target: Callable, num_threads: int) -> None:
        threads = [
            Thread(target=target, args=(i,), name=f"it-worker-{i}") for i in range(num_threads)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=THREAD_JOIN_TIMEOUT_SECONDS)
            if t.is_alive():
                self.fail(f"thread did not finish; name={t.name}")

    def assert_events(self, expected: List[ExpectedEvent], actual: List[Dict]) -> None:
        self.assertEqual(len(expected), len(actual))
        for e, a in zip(expected, actual):
            self.assertEqual(e.message, a["message"])
            self.assertEqual(e.level, a["level"])
