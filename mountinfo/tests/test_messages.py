# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import asdict
from pathlib import Path

from mountinfo.parsing.mountinfo import iter_mountinfo, parse_mountinfo_line
from mountinfo.parsing.mounts import parse_mounts_line
from mountinfo.schemas.mount import DeviceId, Tag
from mountinfo.schemas.mount_message import (
    as_mount_messages,
    MountMessage,
    MountsMessage,
)
from mountinfo.schemas.mount_option import MountFlag, MountOption

HOSTNAME = "node101"


def test_mount_message_from_record() -> None:
    record = parse_mountinfo_line(
        "40 26 0:35 / /logs rw,relatime shared:22 master:3 unbindable - nfs4 node101:/syslog rw,vers=4.2"
    )

    message = MountMessage.from_record(record, HOSTNAME)

    assert asdict(message) == {
        "hostname": HOSTNAME,
        "mount_id": 40,
        "parent_id": 26,
        "dev_major": 0,
        "dev_minor": 35,
        "root": "/",
        "mount_point": "/logs",
        "mount_options": "rw,relatime",
        "tags": "shared:22 master:3 unbindable",
        "filesystem_type": "nfs4",
        "mount_source": "node101:/syslog",
        "super_options": "rw,vers=4.2",
    }


def test_mounts_message_from_entry() -> None:
    entry = parse_mounts_line("tmpfs /tmp/x\\040b tmpfs ro,nosuid 0 2")

    message = MountsMessage.from_entry(entry, HOSTNAME)

    assert message == MountsMessage(
        hostname=HOSTNAME,
        spec="tmpfs",
        file="/tmp/x b",
        vfstype="tmpfs",
        mntops="ro,nosuid",
        freq=0,
        passno=2,
    )


def test_as_mount_messages(sample_mountinfo: Path) -> None:
    with sample_mountinfo.open("rb") as f:
        messages = list(as_mount_messages(iter_mountinfo(f), HOSTNAME))

    assert [m.mount_point for m in messages] == [
        "/sys",
        "/proc",
        "/",
        "/run/snapd/ns",
        "/logs",
        "/public",
    ]
    assert {m.hostname for m in messages} == {HOSTNAME}


def test_str_of_parts() -> None:
    assert str(DeviceId(8, 2)) == "8:2"
    assert str(Tag("shared", "")) == "shared:"
    assert str(Tag("unbindable")) == "unbindable"
    assert str(MountOption(MountFlag.RELATIME, enabled=False)) == "norelatime"
