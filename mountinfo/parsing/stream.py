# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Lazy, line at a time adapters from a byte source to parse results."""

import logging
import weakref
from typing import (
    Callable,
    Generator,
    IO,
    Iterable,
    Iterator,
    Optional,
    TypeVar,
    Union,
)

from mountinfo.parsing.errors import IoError, LineError, ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LineSource = Union[IO[bytes], IO[str], Iterable[bytes], Iterable[str]]
ParseResult = Union[T, LineError]

_EOF = object()


def _line_reader(source: LineSource) -> Callable[[], object]:
    readline = getattr(source, "readline", None)
    if readline is not None:

        def read() -> object:
            line = readline()
            return line if line else _EOF

        return read

    lines = iter(source)
    return lambda: next(lines, _EOF)


def read_lines(source: LineSource) -> Generator[Union[str, IoError], None, None]:
    """Yield each line of `source` as text, one read per pull.

    A failure reading (or decoding) a line is yielded as an `IoError` instead
    of being raised; pulling again attempts the next line.
    """
    read = _line_reader(source)
    while True:
        try:
            line = read()
            if line is _EOF:
                return
            if isinstance(line, bytes):
                line = line.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Failed to read line", exc_info=True)
            yield IoError.from_exception(e)
            continue
        assert isinstance(line, str)
        yield line


def parse_lines(
    source: LineSource, parse_line: Callable[[str], T]
) -> Generator[ParseResult[T], None, None]:
    """Apply `parse_line` to every line of `source`, yielding the parsed value
    or the `LineError` describing why that line failed.
    """
    for line in read_lines(source):
        if isinstance(line, IoError):
            yield line
            continue
        try:
            yield parse_line(line)
        except LineError as e:
            yield e


class OwnedResults(Iterator[ParseResult[T]]):
    """Parse results read from a file that this iterator owns.

    The file is closed once the results are exhausted, on `close()`, when a
    `with` block over the iterator ends, or when the iterator is garbage
    collected without having been pulled to the end.
    """

    def __init__(self, f: IO[bytes], results: Iterator[ParseResult[T]]) -> None:
        self._results = results
        self._finalizer = weakref.finalize(self, f.close)

    def __next__(self) -> ParseResult[T]:
        if self.closed:
            raise StopIteration
        try:
            return next(self._results)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        self._finalizer()

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def __enter__(self) -> "OwnedResults[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def only_records(
    results: Iterable[ParseResult[T]],
    strict: bool = True,
    log: Optional[logging.Logger] = None,
) -> Generator[T, None, None]:
    """Unwrap parse results.

    Parameters:
        results: The output of one of the stream adapters.
        strict: If true, raise `ParseError` on the first failed line. Otherwise
            failed lines are logged and skipped.
        log: Logger for skipped lines; defaults to this module's logger.

    Raises:
        ParseError: On the first failed line, if `strict`.
    """
    log = log or logger
    for lineno, result in enumerate(results, start=1):
        if not isinstance(result, LineError):
            yield result
            continue
        if strict:
            raise ParseError(result, lineno)
        log.warning(f"Skipping line {lineno}: {result}")
