# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parser for /proc/<pid>/mountinfo.

See section 3.5 in https://www.kernel.org/doc/Documentation/filesystems/proc.txt
"""

from functools import partial
from pathlib import Path
from typing import Generator, List, Optional, Tuple

from mountinfo.parsing.errors import (
    InvalidDevId,
    InvalidTag,
    MissingDevId,
    MissingFileSystem,
    MissingMountId,
    MissingMountOpts,
    MissingMountPoint,
    MissingMountSource,
    MissingParentId,
    MissingRoot,
    MissingSeparator,
    MissingSuperOpts,
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
from mountinfo.parsing.tokens import parse_id, parse_unsigned, TokenCursor, U32_MAX
from mountinfo.schemas.mount import DeviceId, MountRecord, Tag

PROC_SELF_MOUNTINFO = "/proc/self/mountinfo"
SEPARATOR = "-"


def proc_mountinfo_path(pid: Optional[int] = None) -> str:
    if pid is None:
        return PROC_SELF_MOUNTINFO
    return f"/proc/{pid}/mountinfo"


def parse_device_id(token: str) -> DeviceId:
    """Parse `major:minor`.

    >>> parse_device_id("98:0")
    DeviceId(major=98, minor=0)

    Raises:
        InvalidDevId: Unless the token is exactly two u32s separated by `:`.
    """
    parts = token.split(":")
    if len(parts) != 2:
        raise InvalidDevId(token)
    try:
        major, minor = (parse_unsigned(p, max_value=U32_MAX) for p in parts)
    except ValueError:
        raise InvalidDevId(token) from None
    return DeviceId(major, minor)


def parse_tag(token: str) -> Tag:
    """Parse an optional field.

    >>> parse_tag("shared:7")
    Tag(name='shared', value='7')
    >>> parse_tag("unbindable")
    Tag(name='unbindable', value=None)

    Raises:
        InvalidTag: If the tag has an empty name.
    """
    name, colon, value = token.partition(":")
    if name == "":
        raise InvalidTag(token)
    return Tag(name, value if colon else None)


def _parse_tags(cursor: TokenCursor) -> Tuple[Tag, ...]:
    tags: List[Tag] = []
    while True:
        token = cursor.next()
        if token is None:
            raise MissingSeparator()
        if token == SEPARATOR:
            return tuple(tags)
        tags.append(parse_tag(token))


def parse_mountinfo_line(
    line: str, option_parser: OptionParser = parse_mount_option
) -> MountRecord:
    """Parse one line of a mountinfo table.

    36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 - ext3 /dev/root rw,errors=continue
    (1)(2)(3)   (4)   (5)      (6)      (7)   (8) (9)   (10)         (11)

    Tokens after field 11 are ignored; newer kernels may append fields.

    Raises:
        LineError: The first field that failed to parse, scanning left to right.
    """
    cursor = TokenCursor(line)

    mount_id = cursor.require_as(MissingMountId, parse_id)
    parent_id = cursor.require_as(MissingParentId, parse_id)
    device_id = parse_device_id(cursor.require(MissingDevId))
    root = Path(cursor.require(MissingRoot))
    mount_point = Path(cursor.require(MissingMountPoint))
    mount_opts = parse_mount_options(cursor.require(MissingMountOpts), option_parser)
    tags = _parse_tags(cursor)
    filesystem_type = cursor.require(MissingFileSystem)
    mount_source = cursor.require(MissingMountSource)
    super_opts = parse_mount_options(cursor.require(MissingSuperOpts), option_parser)

    return MountRecord(
        mount_id=mount_id,
        parent_id=parent_id,
        device_id=device_id,
        root=root,
        mount_point=mount_point,
        mount_opts=mount_opts,
        tags=tags,
        filesystem_type=filesystem_type,
        mount_source=mount_source,
        super_opts=super_opts,
    )


def parse_mountinfo(
    source: LineSource, option_parser: OptionParser = parse_mount_option
) -> Generator[ParseResult[MountRecord], None, None]:
    """Lazily parse every line of `source`.

    Yields one `MountRecord` or `LineError` per line; a failed line does not end
    the iteration.
    """
    return parse_lines(
        source, partial(parse_mountinfo_line, option_parser=option_parser)
    )


def proc_mountinfo(
    pid: Optional[int] = None, option_parser: OptionParser = parse_mount_option
) -> OwnedResults[MountRecord]:
    """Parse the mount table in the mount namespace of `pid` (default: self).

    Raises:
        OSError: If the table could not be opened.
    """
    f = open(proc_mountinfo_path(pid), "rb")
    return OwnedResults(f, parse_mountinfo(f, option_parser))


def self_mountinfo(
    option_parser: OptionParser = parse_mount_option,
) -> OwnedResults[MountRecord]:
    """Parse the mount table in the current process' mount namespace."""
    return proc_mountinfo(None, option_parser)


def iter_mountinfo(
    source: LineSource,
    strict: bool = True,
    option_parser: OptionParser = parse_mount_option,
) -> Generator[MountRecord, None, None]:
    """Like `parse_mountinfo`, but yield records only.

    Raises:
        ParseError: On the first failed line, if `strict`.
    """
    yield from only_records(parse_mountinfo(source, option_parser), strict=strict)
