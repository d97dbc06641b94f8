# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from mountinfo.schemas.mount_option import MountOption


@dataclass(frozen=True)
class MountsEntry:
    """One line of /proc/<pid>/mounts, which uses the fstab(5) layout."""

    spec: str
    file: Path
    vfstype: str
    mntops: Tuple[MountOption, ...]
    freq: int
    passno: int
