"""
Trace File Reader
=================

Parses line-oriented video trace files into TraceLine records.

File Format:
    One frame per line, in display order, whitespace-separated fields:

        <frame-number> <frame-type> <frame-size-bytes> [extra fields ...]

    Only the frame size is used by the codecs; every field is kept as a
    string in TraceLine.fields. The column holding the frame size is
    configurable. Blank lines and lines starting with the comment prefix
    are skipped.
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from syncodecs.config import settings
from syncodecs.models.trace import TraceLine


logger = logging.getLogger(__name__)


class TraceError(ValueError):
    """Base class for trace reading and loading failures."""


class TraceFormatError(TraceError):
    """A trace file line could not be parsed."""

    def __init__(self, source: str, line_number: int, message: str) -> None:
        self.source = source
        self.line_number = line_number
        super().__init__(f"{source}:{line_number}: {message}")


class TraceReader:
    """
    Reader for whitespace-separated trace files.

    Attributes:
        size_column: Zero-based column holding the frame size in bytes
        comment_prefix: Lines starting with this prefix are ignored

    Example:
        reader = TraceReader()
        lines = reader.read("traces/video_720p_1200.txt")
        print(sum(line.frame_size for line in lines))
    """

    def __init__(
        self,
        size_column: Optional[int] = None,
        comment_prefix: str = "#",
    ) -> None:
        """
        Initialize the reader.

        Args:
            size_column: Column of the frame size (defaults to settings.trace.size_column)
            comment_prefix: Prefix of comment lines
        """
        if size_column is None:
            size_column = settings.trace.size_column
        if size_column < 0:
            raise ValueError("size_column must be non-negative")

        self.size_column = size_column
        self.comment_prefix = comment_prefix

    def read(self, path: Union[str, Path]) -> List[TraceLine]:
        """
        Read every frame record of a trace file.

        Args:
            path: Trace file location

        Returns:
            Frame records in file order

        Raises:
            TraceFormatError: If a line is not UTF-8 text, lacks the size
                column, or its size is not a non-negative integer
            OSError: If the file cannot be opened
        """
        path = Path(path)
        with open(path, "rb") as f:
            records = self.parse_lines(self._decode_lines(f, str(path)), source=str(path))
        logger.debug(f"Read {len(records)} frames from {path}")
        return records

    @staticmethod
    def _decode_lines(raw_lines: Iterable[bytes], source: str) -> Iterator[str]:
        for line_number, raw in enumerate(raw_lines, start=1):
            try:
                yield raw.decode("utf-8")
            except UnicodeDecodeError:
                raise TraceFormatError(source, line_number, "line is not valid UTF-8 text") from None

    def parse_lines(self, lines: Iterable[str], source: str = "<string>") -> List[TraceLine]:
        """Parse an iterable of text lines (used by read and by tests)."""
        records: List[TraceLine] = []
        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or (self.comment_prefix and line.startswith(self.comment_prefix)):
                continue
            fields = tuple(line.split())
            if len(fields) <= self.size_column:
                raise TraceFormatError(
                    source,
                    line_number,
                    f"expected at least {self.size_column + 1} fields, got {len(fields)}",
                )
            try:
                frame_size = int(float(fields[self.size_column]))
            except (ValueError, OverflowError):
                raise TraceFormatError(
                    source,
                    line_number,
                    f"frame size {fields[self.size_column]!r} is not a finite number",
                ) from None
            if frame_size < 0:
                raise TraceFormatError(source, line_number, f"negative frame size {frame_size}")
            records.append(TraceLine(frame_size=frame_size, fields=fields))
        return records
