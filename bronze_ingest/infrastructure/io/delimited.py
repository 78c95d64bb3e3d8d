"""Record iteration over delimited text.

Records are split with the standard library ``csv`` module. Quoting is
lenient: a stray quote inside a field is kept as data. A record that still
cannot be split is yielded as a ParseFailure carrying every physical line it
consumed, and iteration carries on with the next line.
"""

from __future__ import annotations

import codecs
import csv
import io
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from ...constants import Defaults
from ...domain.entities.tabular import ParseFailure
from ...domain.services.sniffing import detect_delimiter, sample_lines

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class RawRecord:
    index: int
    values: list[str]


class _LineTracker:
    pass

    def __init__(self, text: io.TextIOBase) -> None:
        super().__init__()
        self._text = text
        self.line_number = 0
        self.start_line = 1
        self._pending: list[str] = []

    def __iter__(self) -> Iterator[str]:
        for line in self._text:
            self.line_number += 1
            self._pending.append(line)
            yield line

    def begin_record(self) -> None:
        self._pending.clear()
        self.start_line = self.line_number + 1

    @property
    def record_text(self) -> str:
        """Physical lines consumed since the current record began."""
        return "".join(self._pending).rstrip("\r\n")


def text_encoding(encoding: str) -> str:
    """Decode UTF-8 sources with BOM stripping."""
    if codecs.lookup(encoding).name == "utf-8":
        return "utf-8-sig"
    return encoding


def sniff_delimiter(
    buffered: io.BufferedReader,
    *,
    sniff_bytes: int = Defaults.SNIFF_BYTES,
    sniff_lines: int = Defaults.SNIFF_LINES,
    encoding: str = Defaults.ENCODING,
) -> str:
    """Detect the delimiter from the head of ``buffered`` without consuming it."""
    sample = buffered.peek(sniff_bytes)[:sniff_bytes]
    lines = sample_lines(sample, max_lines=sniff_lines, encoding=text_encoding(encoding))
    return detect_delimiter(lines)


def buffered_stream(handle: BinaryIO, *, sniff_bytes: int) -> io.BufferedReader:
    size = max(sniff_bytes, io.DEFAULT_BUFFER_SIZE)
    return io.BufferedReader(cast("io.RawIOBase", handle), buffer_size=size)


def delimited_records(
    text: io.TextIOBase, delimiter: str
) -> Iterator[RawRecord | ParseFailure]:
    """Yield every non-blank record of ``text`` in order.

    Records and failures share one zero-based index sequence.
    """
    lines = _LineTracker(text)
    reader = csv.reader(lines, delimiter=delimiter, skipinitialspace=True)
    index = 0
    while True:
        lines.begin_record()
        try:
            values = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            yield ParseFailure(
                row_index=index,
                message=f"line {lines.start_line}: {e}",
                raw_value=lines.record_text,
            )
            index += 1
            continue
        if not values:
            continue
        yield RawRecord(index=index, values=values)
        index += 1
