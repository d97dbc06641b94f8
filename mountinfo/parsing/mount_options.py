# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parsing of individual comma-separated mount option tokens."""

from typing import Callable, Dict, Tuple

from mountinfo.parsing.errors import InvalidMountOption, LineError
from mountinfo.parsing.tokens import split_terminator
from mountinfo.schemas.mount_option import MountFlag, MountOption

# raises LineError or ValueError on a bad token
OptionParser = Callable[[str], MountOption]

_FLAGS: Dict[str, MountOption] = {
    "rw": MountOption(MountFlag.WRITE, enabled=True),
    "ro": MountOption(MountFlag.WRITE, enabled=False),
}
for _flag in MountFlag:
    if _flag is MountFlag.WRITE:
        continue
    _FLAGS[_flag.value] = MountOption(_flag, enabled=True)
    _FLAGS["no" + _flag.value] = MountOption(_flag, enabled=False)


def parse_mount_option(token: str) -> MountOption:
    """Parse one mount option.

    Examples:
    >>> parse_mount_option("noatime")
    MountOption(flag=<MountFlag.ATIME: 'atime'>, enabled=False, extra=None)
    >>> parse_mount_option("mode=755")
    MountOption(flag=None, enabled=True, extra='mode=755')

    Raises:
        InvalidMountOption: If the token is empty.
    """
    if token == "":
        raise InvalidMountOption(token)
    try:
        return _FLAGS[token]
    except KeyError:
        return MountOption(extra=token)


def _parse_piece(piece: str, option_parser: OptionParser) -> MountOption:
    try:
        return option_parser(piece)
    except LineError:
        raise
    except ValueError as e:
        raise InvalidMountOption(piece) from e


def parse_mount_options(
    token: str, option_parser: OptionParser = parse_mount_option
) -> Tuple[MountOption, ...]:
    """Parse a comma-separated options field, e.g. `rw,nosuid,mode=755`.

    A `LineError` raised by `option_parser` propagates unchanged; any other
    `ValueError` is raised as `InvalidMountOption` for the offending piece.
    """
    return tuple(
        _parse_piece(piece, option_parser) for piece in split_terminator(token, ",")
    )
