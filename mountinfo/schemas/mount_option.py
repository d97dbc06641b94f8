# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MountFlag(Enum):
    """Boolean mount flags with a `no` prefixed negation, plus the write flag."""

    ATIME = "atime"
    DIRATIME = "diratime"
    RELATIME = "relatime"
    DEV = "dev"
    EXEC = "exec"
    SUID = "suid"
    WRITE = "rw"


@dataclass(frozen=True)
class MountOption:
    """A single comma-separated mount option.

    Known flags are stored as `flag`/`enabled`; every other option (including
    `key=value` options) is kept verbatim in `extra`.
    """

    flag: Optional[MountFlag] = None
    enabled: bool = True
    extra: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.flag is None) == (self.extra is None):
            raise ValueError("Exactly one of flag and extra must be set")

    def __str__(self) -> str:
        if self.flag is None:
            assert self.extra is not None
            return self.extra
        if self.flag is MountFlag.WRITE:
            return "rw" if self.enabled else "ro"
        return self.flag.value if self.enabled else "no" + self.flag.value
