# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import codecs
import io
from collections.abc import Sequence
from typing import TYPE_CHECKING, Iterator, List, Union

if TYPE_CHECKING:
    from testlogcollector.lib.shared import SharedLineCollector

BytesLike = Union[bytes, bytearray, memoryview]

LINE_DELIMITER = "\n"


class LinesView(Sequence):
    """A live, read-only view over the complete lines held by a LineCollector."""

    __slots__ = ("_lines",)

    def __init__(self, lines: List[str]):
        self._lines = lines

    def __getitem__(self, index):
        return self._lines[index]

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __eq__(self, other) -> bool:
        if isinstance(other, LinesView):
            return self._lines == other._lines
        if isinstance(other, (list, tuple)):
            return self._lines == list(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"LinesView({self._lines!r})"


class LineCollector(io.TextIOBase):
    """
    A file-like object that collects everything written to it as a list of lines.

    Text is split on newlines as it is written; the newline itself is dropped. Anything written
    after the last newline is held in `pending` until a later write terminates it. Neither flush()
    nor close() terminate the pending line.

    The collector is not thread safe. Use new_shared() to get a handle that serializes access.
    """

    def __init__(self):
        super().__init__()
        self._lines: List[str] = []
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @staticmethod
    def new_shared() -> "SharedLineCollector":
        # Imported here as shared.py depends on this module.
        from testlogcollector.lib.shared import SharedLineCollector

        return SharedLineCollector(LineCollector())

    @property
    def pending(self) -> str:
        """
        Text written since the last newline.

        An incomplete UTF-8 sequence at the end of a bytes write is held back until the bytes that
        complete it arrive, so it is not part of `pending` in the meantime.
        """
        return self._pending

    def writable(self) -> bool:
        return True

    def write(self, data: Union[str, BytesLike]) -> int:
        view = None
        if isinstance(data, str):
            # Bytes left over from a previous write can never be completed now, so they are
            # replaced ahead of this text rather than reordered after it.
            text = self._decoder.decode(b"", final=True) + data
            self._decoder.reset()
        elif isinstance(data, (bytes, bytearray, memoryview)):
            view = memoryview(data)
            text = self._decoder.decode(view.tobytes())
        else:
            raise TypeError(f"write() argument must be str or bytes-like, not {type(data).__name__}")

        self._pending += text
        if LINE_DELIMITER in self._pending:
            parts = self._pending.split(LINE_DELIMITER)
            self._lines.extend(parts[:-1])
            # Keep the partial line for the next write
            self._pending = parts[-1]
        return view.nbytes if view is not None else len(data)

    def flush(self) -> None:
        pass

    def count(self) -> int:
        return len(self._lines)

    def lines(self) -> LinesView:
        return LinesView(self._lines)

    def clone_lines(self) -> List[str]:
        return list(self._lines)

    def clear(self) -> None:
        # Cleared in place so that outstanding views see the reset.
        self._lines.clear()
        self._pending = ""
        self._decoder.reset()
