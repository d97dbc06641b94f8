# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

from mountinfo.schemas.mount_option import MountOption


class DeviceId(NamedTuple):
    """st_dev of files on the filesystem, split into its two halves."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}:{self.minor}"


class Tag(NamedTuple):
    """An optional field such as `shared:7` or `unbindable`."""

    name: str
    value: Optional[str] = None

    def __str__(self) -> str:
        return self.name if self.value is None else f"{self.name}:{self.value}"


@dataclass(frozen=True)
class MountRecord:
    """One line of /proc/<pid>/mountinfo.

    https://man7.org/linux/man-pages/man5/proc_pid_mountinfo.5.html
    """

    mount_id: int
    parent_id: int
    device_id: DeviceId
    root: Path
    mount_point: Path
    mount_opts: Tuple[MountOption, ...]
    tags: Tuple[Tag, ...]
    filesystem_type: str
    mount_source: str
    super_opts: Tuple[MountOption, ...]
