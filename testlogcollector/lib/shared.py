# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
from contextlib import contextmanager
from threading import Lock
from typing import Iterator, List, Optional, Union

import structlog

from testlogcollector.lib.collector import BytesLike, LineCollector

logger = structlog.get_logger(__name__)


class PoisonedCollectorError(Exception):
    """Raised when acquiring a shared collector whose previous holder failed while holding it."""


class _SharedState(object):

    def __init__(self, collector: LineCollector):
        self.collector = collector
        self.mutex = Lock()
        self.poisoned = False


class SharedLineCollector(object):
    """
    A handle to a LineCollector that may be shared between threads.

    Every access to the underlying collector goes through lock(), which grants exclusive access
    for the duration of a with block. Handles created with clone() refer to the same collector and
    the same lock.

    If the body of a lock() block raises, the collector is considered poisoned: its contents may
    be half written, so every later attempt to acquire it, from any handle, raises
    PoisonedCollectorError.
    """

    def __init__(self, collector: Optional[LineCollector] = None):
        self._state = _SharedState(collector if collector is not None else LineCollector())

    def clone(self) -> "SharedLineCollector":
        handle = SharedLineCollector.__new__(SharedLineCollector)
        handle._state = self._state
        return handle

    @property
    def is_poisoned(self) -> bool:
        return self._state.poisoned

    def _is_log_stream(self) -> bool:
        # Walks the stdlib handlers that structlog events from this module reach.
        current = logging.getLogger(__name__)
        while current is not None:
            for handler in current.handlers:
                stream = getattr(handler, "stream", None)
                if isinstance(stream, SharedLineCollector) and stream._state is self._state:
                    return True
            if not current.propagate:
                break
            current = current.parent
        return False

    @contextmanager
    def lock(self) -> Iterator[LineCollector]:
        state = self._state
        failure = None
        try:
            with state.mutex:
                if state.poisoned:
                    raise PoisonedCollectorError(
                        "shared collector was poisoned by a holder that failed while holding it"
                    )
                try:
                    yield state.collector
                except BaseException as e:
                    state.poisoned = True
                    failure = e
                    raise
        finally:
            # Logged once the mutex is released. A handle that is itself the log stream cannot
            # record its own poisoning, the exception raised to the holder is all there is.
            if failure is not None and not self._is_log_stream():
                logger.error("shared collector poisoned", error=repr(failure))

    def write(self, data: Union[str, BytesLike]) -> int:
        with self.lock() as collector:
            return collector.write(data)

    def flush(self) -> None:
        with self.lock() as collector:
            collector.flush()

    def count(self) -> int:
        with self.lock() as collector:
            return collector.count()

    def clone_lines(self) -> List[str]:
        with self.lock() as collector:
            return collector.clone_lines()

    def clear(self) -> None:
        with self.lock() as collector:
            collector.clear()
