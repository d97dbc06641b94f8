# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Tokenizing helpers shared by the mount table parsers."""

import re
from typing import Callable, List, Optional, Type, TypeVar

from mountinfo.parsing.errors import LineError, MissingField, ParseIntError

_SEPARATORS = re.compile(r"[ \t]+")
_DIGITS = re.compile(r"[0-9]+")

U32_MAX = 2**32 - 1

T = TypeVar("T")


def split_fields(line: str) -> List[str]:
    """Split a trimmed line on runs of spaces and tabs.

    >>> split_fields("  36 35\\t\\t98:0 ")
    ['36', '35', '98:0']
    """
    return [token for token in _SEPARATORS.split(line.strip()) if token != ""]


def split_terminator(s: str, sep: str) -> List[str]:
    """Split `s` on `sep`, dropping a single trailing empty piece.

    >>> split_terminator("rw,noatime,", ",")
    ['rw', 'noatime']
    >>> split_terminator("", ",")
    []
    """
    pieces = s.split(sep)
    if pieces[-1] == "":
        pieces.pop()
    return pieces


def parse_unsigned(s: str, max_value: Optional[int] = None) -> int:
    """Parse a plain decimal unsigned integer.

    Unlike `int`, signs, surrounding whitespace, underscores and non-ASCII
    digits are rejected.

    Raises:
        ValueError: If `s` is not an unsigned decimal integer, or exceeds
            `max_value`.
    """
    if _DIGITS.fullmatch(s) is None:
        raise ValueError(f"invalid digit found in {s!r}")
    value = int(s)
    if max_value is not None and value > max_value:
        raise ValueError(f"number too large to fit in target type: {s!r}")
    return value


class TokenCursor:
    """A forward-only cursor over the whitespace separated tokens of a line.

    Tokens are consumed strictly left to right; there is no way to step back.
    """

    def __init__(self, line: str) -> None:
        self._tokens = split_fields(line)
        self._pos = 0

    def next(self) -> Optional[str]:
        """Consume and return the next token, or `None` if exhausted."""
        if self._pos >= len(self._tokens):
            return None
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def require(self, missing: Type[MissingField]) -> str:
        """Consume the next token, raising `missing` if there is none."""
        token = self.next()
        if token is None:
            raise missing()
        return token

    def require_as(
        self, missing: Type[MissingField], convert: Callable[[str], T]
    ) -> T:
        return convert(self.require(missing))


def parse_id(token: str) -> int:
    """Parse a mount or parent id, wrapping conversion failures."""
    try:
        return parse_unsigned(token)
    except ValueError as e:
        raise ParseIntError(e) from None


def parse_with(
    token: str, convert: Callable[[str], T], invalid: Callable[[str], LineError]
) -> T:
    """Apply `convert` to `token`, mapping any `ValueError` to `invalid(token)`."""
    try:
        return convert(token)
    except LineError:
        raise
    except ValueError:
        raise invalid(token) from None
