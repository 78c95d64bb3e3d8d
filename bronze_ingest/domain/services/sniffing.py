"""Format sniffing for undeclared delimited sources.

Pure functions over a small sample: which delimiter the sample uses and
whether its first record looks like a header. Both are heuristics with no
guarantee on adversarial input.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ...constants import Defaults, Delimiters, NumericFormatting

if TYPE_CHECKING:
    from collections.abc import Sequence

_LEADING_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def sample_lines(
    sample: bytes | str,
    *,
    max_lines: int = Defaults.SNIFF_LINES,
    encoding: str = Defaults.ENCODING,
) -> list[str]:
    """Return up to ``max_lines`` non-empty, stripped lines from a sample.

    Bytes are decoded leniently; a multi-byte character cut at the end of
    the sample never raises.
    """
    text = (
        sample.decode(encoding, errors="replace")
        if isinstance(sample, bytes)
        else sample
    )
    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        lines.append(stripped)
        if len(lines) >= max_lines:
            break
    return lines


def detect_delimiter(sample: bytes | str | Sequence[str]) -> str:
    """Pick the candidate delimiter with the highest aggregate count.

    Ties resolve to the earlier candidate (comma, semicolon, tab, pipe); an
    empty or delimiter-free sample yields a comma.

    Example:
        >>> detect_delimiter("a;b;c\\n1;2;3")
        ';'
    """
    lines = (
        sample_lines(sample)
        if isinstance(sample, (bytes, str))
        else [line for line in sample if line.strip()]
    )
    best = Delimiters.COMMA
    best_count = 0
    for candidate in Delimiters.CANDIDATES:
        count = sum(line.count(candidate) for line in lines)
        if count > best_count:
            best, best_count = candidate, count
    return best


def delimiter_name(delimiter: str | None) -> str:
    if delimiter is None:
        return "none"
    return Delimiters.NAMES.get(delimiter, repr(delimiter))


def is_numeric(value: str) -> bool:
    """Whether a field reads as a number once formatting tokens are removed.

    Thousands separators, currency symbols and percent signs are stripped;
    the residue must start with a float literal, and the original may carry
    at most two characters outside the numeric-formatting alphabet.
    """
    text = value.strip()
    if not text:
        return False
    residue = text
    for token in NumericFormatting.STRIP_TOKENS:
        residue = residue.replace(token, "")
    if not _LEADING_FLOAT_RE.match(residue):
        return False
    foreign = sum(1 for char in text if char not in NumericFormatting.ALLOWED_CHARS)
    return foreign <= NumericFormatting.MAX_FOREIGN_CHARS


def detect_headers(first_row: Sequence[str], second_row: Sequence[str] | None) -> bool:
    """Classify ``first_row`` as a header by comparing it with ``second_row``.

    Fields are compared position by position over the shorter row. The
    first row is a header when it has strictly fewer numeric fields than
    the second, or when its first field alone is non-numeric. Without a
    second row there is nothing to compare and the answer is ``False``.
    """
    if second_row is None:
        return False
    first_numeric = 0
    second_numeric = 0
    for first, second in zip(first_row, second_row, strict=False):
        if is_numeric(first):
            first_numeric += 1
        if is_numeric(second):
            second_numeric += 1
    if first_numeric < second_numeric:
        return True
    return len(first_row) > 0 and not is_numeric(first_row[0])
