# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Logging setup, and publishing of a parsed table to a sink."""
from __future__ import annotations

import inspect
import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from typing import (
    Callable,
    Collection,
    Iterable,
    Literal,
    Mapping,
    Optional,
    Tuple,
    TYPE_CHECKING,
)

import click
from mountinfo.monitoring.sink.protocol import SinkAdditionalParams, SinkImpl
from mountinfo.monitoring.sink.utils import (
    Factory,
    get_message_for_sink_init_error,
    write_to_sink_with_retries,
)
from mountinfo.parsing.errors import ParseError
from omegaconf import OmegaConf as oc

if TYPE_CHECKING:
    from _typeshed import DataclassInstance

LOG_LEVEL = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FORMAT = "[%(asctime)s] - [%(levelname)s] - [%(name)s] - %(message)s"


def _rotating_file_handler(
    path: str, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def init_logger(
    logger_name: str,
    log_dir: str,
    log_name: str,
    log_formatter: Optional[logging.Formatter] = logging.Formatter(DEFAULT_LOG_FORMAT),
    log_level: int = logging.INFO,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 2,
    log_stdout: bool = False,
) -> Tuple[logging.Logger, logging.Handler]:
    """Attach a handler to logger `logger_name`: stdout if `log_stdout`,
    otherwise the rotated file `{log_dir}/{log_name}`.

    The handler is returned so the caller can detach and close it.
    """
    handler: logging.Handler = (
        logging.StreamHandler(sys.stdout)
        if log_stdout
        else _rotating_file_handler(
            os.path.join(log_dir, log_name), max_bytes, backup_count
        )
    )
    if log_formatter is not None:
        handler.setFormatter(log_formatter)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.addHandler(handler)
    return logger, handler


def make_sink(
    sink: str,
    sink_opts: Collection[str],
    registry: Mapping[str, Factory[SinkImpl]],
) -> SinkImpl:
    """Instantiate the sink registered as `sink` with `-o key=value` options.

    Raises:
        click.UsageError: If the sink is unknown or its options are wrong.
        click.ClickException: If the result does not implement `SinkImpl`.
    """
    factory = registry.get(sink)
    if factory is None:
        raise click.UsageError(
            f"Sink '{sink}' could not be found. Registered sinks: {sorted(registry)}"
        )

    kwargs = oc.to_container(oc.from_dotlist(list(sink_opts)))
    assert isinstance(kwargs, dict)
    try:
        impl = factory(**kwargs)
    except TypeError as e:
        msg = get_message_for_sink_init_error(e, sink, factory, kwargs)
        if msg is None:
            raise
        raise click.UsageError(str(msg)) from e
    except ValueError as e:
        raise click.UsageError(f"Sink '{sink}': {e}") from e

    if not isinstance(impl, SinkImpl):
        module = getattr(inspect.getmodule(impl), "__name__", "<unknown>")
        raise click.ClickException(
            f"Sink '{sink}' from {module} does not appear to implement {SinkImpl.__name__}"
        )
    return impl


def publish(
    logger_name: str,
    log_folder: str,
    stdout: bool,
    log_level: LOG_LEVEL,
    get_rows: Callable[[logging.Logger], Iterable[DataclassInstance]],
    additional_params: SinkAdditionalParams,
    sink: str,
    sink_opts: Collection[str],
    chunk_size: int,
    retries: int,
    dry_run: bool,
    registry: Mapping[str, Factory[SinkImpl]],
    unixtime: Callable[[], float] = time.time,
) -> None:
    """Read one table with `get_rows` and write every row to `sink`.

    The command logs to `{log_folder}/{logger_name}_logs/{logger_name}.log`
    (or stdout) for the duration of the call.

    Raises:
        click.ClickException: If the table has a malformed line (in strict
            mode) or the rows could not be written.
    """
    logger, handler = init_logger(
        logger_name=logger_name,
        log_dir=os.path.join(log_folder, f"{logger_name}_logs"),
        log_name=f"{logger_name}.log",
        log_stdout=stdout,
        log_level=getattr(logging, log_level),
    )
    if dry_run:
        logger.debug("--dry-run: rows go to stdout")
        sink = "stdout"
    try:
        sink_impl = make_sink(sink, sink_opts, registry)
        write_to_sink_with_retries(
            write=sink_impl.write,
            sink=sink,
            records=get_rows(logger),
            chunk_size=chunk_size,
            retries=retries,
            verbose=log_level == "DEBUG",
            log_time=int(unixtime()),
            additional_params=additional_params,
        )
        logger.debug(f"published {logger_name} to {sink}")
    except ParseError as e:
        logger.error(str(e))
        raise click.ClickException(f"{e} (pass --skip-errors to ignore)") from e
    finally:
        logger.removeHandler(handler)
        handler.close()
