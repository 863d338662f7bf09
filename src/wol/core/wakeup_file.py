"""
Wakeup files: one target per line.

Blank lines and lines whose first non-blank character is ``#`` are skipped.
Every other line is parsed with :func:`wol.core.target.parse_target`.

Parsing is lazy and never stops at a bad line: the iterators yield either a
:class:`~wol.core.target.WakeupTarget` or an error object for each line, in
file order, so callers can report errors and still wake everything else.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import IO, AnyStr, Optional, Union

from wol.core.target import (
    ASCII_WHITESPACE,
    WakeupTarget,
    WakeupTargetParseError,
    parse_target,
)

logger = logging.getLogger(__name__)


class ParseLineError(Exception):
    """A line which could be read but is not a valid target."""

    def __init__(self, line_no: int, error: WakeupTargetParseError) -> None:
        self.line_no = line_no
        self.error = error
        super().__init__(f"Line {line_no}: {error}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseLineError):
            return NotImplemented
        return (self.line_no, self.error) == (other.line_no, other.error)

    def __hash__(self) -> int:
        return hash((self.line_no, str(self.error)))


class ReadLineError(Exception):
    """A line which could not be read at all, e.g. because of bad encoding."""

    def __init__(self, line_no: int, error: Exception) -> None:
        self.line_no = line_no
        self.error = error
        super().__init__(f"Line {line_no}: Failed to read line: {error}")


ParsedLine = Union[WakeupTarget, ParseLineError]


def _parse_line(index: int, line: str) -> Optional[ParsedLine]:
    stripped = line.strip(ASCII_WHITESPACE)
    if not stripped or stripped.startswith("#"):
        return None
    try:
        return parse_target(stripped)
    except WakeupTargetParseError as exc:
        logger.debug("Line %d: %s", index + 1, exc)
        return ParseLineError(index + 1, exc)


def from_lines(lines: Iterable[str]) -> Iterator[ParsedLine]:
    """
    Parse targets from an iterable of lines.

    Args:
        lines: Lines of text, with or without trailing newlines

    Yields:
        A WakeupTarget for each good line, a ParseLineError for each bad one
    """
    for index, line in enumerate(lines):
        result = _parse_line(index, line)
        if result is not None:
            yield result


def from_reader(
    stream: IO[AnyStr], encoding: str = "utf-8"
) -> Iterator[Union[ParsedLine, ReadLineError]]:
    """
    Parse targets from a binary or text stream, line by line.

    Lines of a binary stream are decoded one at a time, so a line with bad
    encoding yields a ReadLineError and reading continues with the next line.
    A text stream or an OSError from the stream can't be resumed after a
    read failure; the ReadLineError is then the last item.

    Args:
        stream: An open file, ``sys.stdin.buffer``, ``io.BytesIO``, …
        encoding: Encoding of binary streams

    Yields:
        WakeupTarget, ParseLineError or ReadLineError, in line order
    """
    index = 0
    while True:
        try:
            raw = stream.readline()
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Line %d: read failed: %s", index + 1, exc)
            yield ReadLineError(index + 1, exc)
            return
        if not raw:
            return
        if isinstance(raw, bytes):
            try:
                line = raw.decode(encoding)
            except UnicodeDecodeError as exc:
                yield ReadLineError(index + 1, exc)
                index += 1
                continue
        else:
            line = raw
        result = _parse_line(index, line)
        if result is not None:
            yield result
        index += 1
