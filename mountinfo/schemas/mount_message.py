# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Flat, JSON serializable rows published to sinks."""

from dataclasses import dataclass
from typing import Generator, Iterable

from mountinfo.schemas.mount import MountRecord
from mountinfo.schemas.mount_option import MountOption
from mountinfo.schemas.mounts_entry import MountsEntry


def _join_options(options: Iterable[MountOption]) -> str:
    return ",".join(str(o) for o in options)


@dataclass
class MountMessage:
    hostname: str
    mount_id: int
    parent_id: int
    dev_major: int
    dev_minor: int
    root: str
    mount_point: str
    mount_options: str
    tags: str
    filesystem_type: str
    mount_source: str
    super_options: str

    @classmethod
    def from_record(cls, record: MountRecord, hostname: str) -> "MountMessage":
        return cls(
            hostname=hostname,
            mount_id=record.mount_id,
            parent_id=record.parent_id,
            dev_major=record.device_id.major,
            dev_minor=record.device_id.minor,
            root=record.root.as_posix(),
            mount_point=record.mount_point.as_posix(),
            mount_options=_join_options(record.mount_opts),
            tags=" ".join(str(t) for t in record.tags),
            filesystem_type=record.filesystem_type,
            mount_source=record.mount_source,
            super_options=_join_options(record.super_opts),
        )


@dataclass
class MountsMessage:
    hostname: str
    spec: str
    file: str
    vfstype: str
    mntops: str
    freq: int
    passno: int

    @classmethod
    def from_entry(cls, entry: MountsEntry, hostname: str) -> "MountsMessage":
        return cls(
            hostname=hostname,
            spec=entry.spec,
            file=entry.file.as_posix(),
            vfstype=entry.vfstype,
            mntops=_join_options(entry.mntops),
            freq=entry.freq,
            passno=entry.passno,
        )


def as_mount_messages(
    records: Iterable[MountRecord], hostname: str
) -> Generator[MountMessage, None, None]:
    for record in records:
        yield MountMessage.from_record(record, hostname)


def as_mounts_messages(
    entries: Iterable[MountsEntry], hostname: str
) -> Generator[MountsMessage, None, None]:
    for entry in entries:
        yield MountsMessage.from_entry(entry, hostname)
