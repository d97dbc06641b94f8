# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parser for /proc/<pid>/mounts, which uses the fstab(5) layout."""

import re
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Generator, Optional

from mountinfo.parsing.errors import (
    InvalidFilePath,
    InvalidFreq,
    InvalidPassno,
    MissingFile,
    MissingFreq,
    MissingMntops,
    MissingPassno,
    MissingSpec,
    MissingVfstype,
)
from mountinfo.parsing.mount_options import (
    OptionParser,
    parse_mount_option,
    parse_mount_options,
)
from mountinfo.parsing.stream import (
    LineSource,
    only_records,
    OwnedResults,
    parse_lines,
    ParseResult,
)
from mountinfo.parsing.tokens import parse_unsigned, parse_with, TokenCursor
from mountinfo.schemas.mounts_entry import MountsEntry

PROC_SELF_MOUNTS = "/proc/self/mounts"

_OCTAL_ESCAPE = re.compile(r"\\([0-3][0-7]{2})")


def proc_mounts_path(pid: Optional[int] = None) -> str:
    if pid is None:
        return PROC_SELF_MOUNTS
    return f"/proc/{pid}/mounts"


def unescape_octals(s: str) -> str:
    r"""Decode the octal escapes the kernel uses for whitespace and backslashes.

    >>> unescape_octals(r"/tmp/x\040b")
    '/tmp/x b'
    """
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), s)


def parse_mounts_line(
    line: str, option_parser: OptionParser = parse_mount_option
) -> MountsEntry:
    """Parse one line of a mounts table.

    /dev/sda2 / ext4 rw,relatime 0 0
    (1)       (2)(3) (4)         (5)(6)

    Raises:
        LineError: The first field that failed to parse, scanning left to right.
    """
    cursor = TokenCursor(line)

    spec = unescape_octals(cursor.require(MissingSpec))
    raw_file = cursor.require(MissingFile)
    file = unescape_octals(raw_file)
    if not PurePosixPath(file).is_absolute():
        raise InvalidFilePath(raw_file)
    vfstype = cursor.require(MissingVfstype)
    mntops = parse_mount_options(cursor.require(MissingMntops), option_parser)
    freq = parse_with(cursor.require(MissingFreq), parse_unsigned, InvalidFreq)
    passno = parse_with(cursor.require(MissingPassno), parse_unsigned, InvalidPassno)

    return MountsEntry(
        spec=spec,
        file=Path(file),
        vfstype=vfstype,
        mntops=mntops,
        freq=freq,
        passno=passno,
    )


def parse_mounts(
    source: LineSource, option_parser: OptionParser = parse_mount_option
) -> Generator[ParseResult[MountsEntry], None, None]:
    """Lazily parse every line of `source`, one result per line."""
    return parse_lines(source, partial(parse_mounts_line, option_parser=option_parser))


def proc_mounts(
    pid: Optional[int] = None, option_parser: OptionParser = parse_mount_option
) -> OwnedResults[MountsEntry]:
    """Parse the mounts table of `pid` (default: self).

    Raises:
        OSError: If the table could not be opened.
    """
    f = open(proc_mounts_path(pid), "rb")
    return OwnedResults(f, parse_mounts(f, option_parser))


def self_mounts(
    option_parser: OptionParser = parse_mount_option,
) -> OwnedResults[MountsEntry]:
    return proc_mounts(None, option_parser)


def iter_mounts(
    source: LineSource,
    strict: bool = True,
    option_parser: OptionParser = parse_mount_option,
) -> Generator[MountsEntry, None, None]:
    yield from only_records(parse_mounts(source, option_parser), strict=strict)
