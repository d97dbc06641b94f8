# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Collection,
    Generator,
    Iterator,
    Literal,
    Mapping,
    Optional,
    Protocol,
    runtime_checkable,
)

import click
from mountinfo.exporters import registry

from mountinfo.monitoring.click import (
    click_default_cmd,
    file_option,
    pid_option,
    publish_options,
    skip_errors_option,
)
from mountinfo.monitoring.monitor import publish
from mountinfo.monitoring.sink.protocol import (
    DataIdentifier,
    SinkAdditionalParams,
    SinkImpl,
)
from mountinfo.monitoring.sink.utils import Factory
from mountinfo.monitoring.tables import open_table
from mountinfo.parsing.mountinfo import parse_mountinfo, proc_mountinfo_path
from mountinfo.parsing.stream import only_records, ParseResult
from mountinfo.schemas.mount import MountRecord
from mountinfo.schemas.mount_message import as_mount_messages, MountMessage
from typeguard import typechecked

LOGGER_NAME = "mountinfo"


@runtime_checkable
class CliObject(Protocol):
    @property
    def registry(self) -> Mapping[str, Factory[SinkImpl]]: ...

    def hostname(self) -> str: ...

    def read_mountinfo(
        self, pid: Optional[int], path: Optional[Path]
    ) -> Iterator[ParseResult[MountRecord]]: ...


@dataclass
class CliObjectImpl:
    registry: Mapping[str, Factory[SinkImpl]] = field(default_factory=lambda: registry)

    def hostname(self) -> str:
        return socket.gethostname()

    def read_mountinfo(
        self, pid: Optional[int], path: Optional[Path]
    ) -> Iterator[ParseResult[MountRecord]]:
        f = open_table(path or Path(proc_mountinfo_path(pid)))
        with f:
            yield from parse_mountinfo(f)


def as_messages(
    results: Iterator[ParseResult[MountRecord]],
    hostname: str,
    skip_errors: bool,
    logger: logging.Logger,
) -> Generator[MountMessage, None, None]:
    records = only_records(results, strict=not skip_errors, log=logger)
    yield from as_mount_messages(records, hostname)


# construct at module-scope so `--help` can be rendered without a parent context
_default_obj: CliObject = CliObjectImpl()


@click_default_cmd(context_settings={"obj": _default_obj})
@pid_option
@file_option("mountinfo")
@skip_errors_option
@publish_options
@click.pass_obj
@typechecked
def main(
    obj: CliObject,
    pid: Optional[int],
    path: Optional[Path],
    skip_errors: bool,
    sink: str,
    sink_opts: Collection[str],
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    log_folder: str,
    stdout: bool,
    dry_run: bool,
    retries: int,
    chunk_size: int,
) -> None:
    """
    Parse a /proc/<pid>/mountinfo table and publish one row per mount.
    """
    if pid is not None and path is not None:
        raise click.UsageError("--pid and --file are mutually exclusive.")

    def _collect_mountinfo(
        logger: logging.Logger,
    ) -> Generator[MountMessage, None, None]:
        logger.info(f"reading mountinfo of {path or pid or 'self'}")
        return as_messages(
            obj.read_mountinfo(pid, path),
            hostname=obj.hostname(),
            skip_errors=skip_errors,
            logger=logger,
        )

    publish(
        logger_name=LOGGER_NAME,
        log_folder=log_folder,
        stdout=stdout,
        log_level=log_level,
        get_rows=_collect_mountinfo,
        additional_params=SinkAdditionalParams(
            data_identifier=DataIdentifier.MOUNTINFO
        ),
        sink=sink,
        sink_opts=sink_opts,
        chunk_size=chunk_size,
        retries=retries,
        dry_run=dry_run,
        registry=obj.registry,
    )
