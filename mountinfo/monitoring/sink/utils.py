# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Plugin registry and write helpers for sinks."""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
import re
import sys
import textwrap
import traceback
from dataclasses import dataclass
from functools import partial
from itertools import islice
from types import ModuleType
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Type,
    TYPE_CHECKING,
    TypeVar,
)

import click
from mountinfo.monitoring.decorators import exponential_backoff, OutOfRetries, retry
from mountinfo.monitoring.itertools import chunk_by_json_size, json_dumps_dataclass
from mountinfo.monitoring.sink.protocol import SinkAdditionalParams, SinkWrite

from mountinfo.schemas.log import Log

if TYPE_CHECKING:
    from _typeshed import DataclassInstance


logger = logging.getLogger(__name__)


def discover(package: ModuleType) -> Dict[str, ModuleType]:
    """Import every direct submodule of `package`, so that the plugins they
    define get a chance to register themselves.

    Raises:
        RuntimeError: If `package` is a plain module.
    """
    search_path = getattr(package, "__path__", None)
    if search_path is None:
        raise RuntimeError(f"{package.__name__} is not a package")

    names = [
        info.name
        for info in pkgutil.iter_modules(search_path, prefix=f"{package.__name__}.")
    ]
    logger.debug(f"Importing plugins {names}")
    return {name: importlib.import_module(name) for name in names}


T = TypeVar("T")
Factory = Callable[..., T]
ClassDecorator = Callable[[Type[T]], Type[T]]
Register = Callable[[str], ClassDecorator[T]]

T_co = TypeVar("T_co", covariant=True)


def make_register(registry: MutableMapping[str, Factory[T_co]]) -> Register[T_co]:
    """Make a `register(name)` class decorator which stores the decorated class
    in `registry` under `name`.

    >>> sinks = {}
    >>> register = make_register(sinks)
    >>> @register("null")
    ... class Null:
    ...     pass
    >>> sinks["null"] is Null
    True

    Registering a second class under a taken name raises `RuntimeError`.
    """

    def register(name: str) -> ClassDecorator[T_co]:
        def add(cls: Type[T_co]) -> Type[T_co]:
            if name in registry:
                raise RuntimeError(f"'{name}' is already registered to {registry[name]}")
            registry[name] = cls
            logger.debug(f"Registered sink '{name}': {cls.__qualname__}")
            return cls

        return add

    return register


def _signature(factory: Factory) -> inspect.Signature:
    # classes without their own __init__ report object's (*args, **kwargs)
    if isinstance(factory, type) and factory.__init__ is object.__init__:
        return inspect.Signature()
    return inspect.signature(factory)


def format_factory_docstrings(
    registry: Mapping[str, Factory],
    *,
    default_docstring: str = "No documentation found.",
) -> str:
    """Describe every factory in `registry` for a `--help` epilog: its name,
    defining module, signature and docstring, sorted by name.
    """
    blocks = []
    for name, factory in sorted(registry.items()):
        doc = inspect.getdoc(factory) or default_docstring
        blocks.append(
            f"{name} - (from module: '{factory.__module__}')\n"
            f"  Signature: {_signature(factory)}\n"
            + textwrap.indent(doc, "  ", lambda _: True)
            + "\n"
        )
    return "\n".join(blocks)


@dataclass
class SinkOptionsMessage:
    """Explains a mismatch between `-o` options and a sink's keyword-only
    parameters.
    """

    sink_name: str
    sink_factory: Factory
    sink_kwargs: Mapping[str, Any]

    def _params(self, required_only: bool) -> List[str]:
        params = inspect.signature(self.sink_factory).parameters.values()
        return sorted(
            p.name
            for p in params
            if p.kind == p.KEYWORD_ONLY and (not required_only or p.default is p.empty)
        )

    @property
    def unrecognized(self) -> List[str]:
        return sorted(set(self.sink_kwargs) - set(self._params(required_only=False)))

    @property
    def missing(self) -> List[str]:
        return sorted(set(self._params(required_only=True)) - set(self.sink_kwargs))

    def __str__(self) -> str:
        lines = [f"Sink '{self.sink_name}' was given bad options."]
        lines.append("It accepts the following keyword-only parameters:")
        lines.extend(f"\t{name}" for name in self._params(required_only=False))
        if self.unrecognized:
            lines.append("But the following unrecognized options were given:")
            lines.extend(f"\t{name}" for name in self.unrecognized)
        if self.missing:
            lines.append("The following required options are missing:")
            lines.extend(f"\t{name}" for name in self.missing)
        return "\n".join(lines)


_KNOWN_INIT_ERRORS = re.compile(
    r"(got an unexpected keyword argument|missing [0-9]+ required keyword-only argument)"
)


def get_message_for_sink_init_error(
    exc: TypeError,
    sink_name: str,
    sink_factory: Factory,
    sink_kwargs: Mapping[str, Any],
) -> Optional[SinkOptionsMessage]:
    """Return a readable explanation if `exc` was caused by bad sink options,
    otherwise `None`.
    """
    if _KNOWN_INIT_ERRORS.search(str(exc)) is None:
        return None
    return SinkOptionsMessage(
        sink_name=sink_name, sink_factory=sink_factory, sink_kwargs=sink_kwargs
    )


def print_tb(verbose: bool) -> None:
    if verbose:
        traceback.print_exception(*sys.exc_info())


def write_to_sink_with_retries(
    write: SinkWrite,
    sink: str,
    records: Iterable[DataclassInstance],
    chunk_size: int,
    retries: int,
    verbose: bool,
    log_time: int,
    additional_params: SinkAdditionalParams,
) -> None:
    """Write `records` to a sink in chunks of at most `chunk_size` JSON bytes
    (or in one batch if `chunk_size` is 0), retrying each chunk up to `retries`
    times.

    Raises:
        click.ClickException: If a chunk could not be written after all retries.
        click.UsageError: If the sink rejects the rows as invalid.
    """
    write_chunk: Callable[[Log], None] = retry(
        retry_schedule_factory=lambda: islice(exponential_backoff(), retries)
    )(partial(write, additional_params=additional_params))

    def chunks() -> Iterable[List[DataclassInstance]]:
        if chunk_size == 0:
            yield list(records)
        else:
            yield from chunk_by_json_size(records, chunk_size, json_dumps_dataclass)

    try:
        for n, chunk in enumerate(chunks(), start=1):
            logger.debug(f"writing chunk {n} ({len(chunk)} rows) to {sink}")
            write_chunk(Log(ts=log_time, message=chunk))
    except OutOfRetries as e:
        print_tb(verbose)
        raise click.ClickException(
            f"Sink '{sink}' still failed after {retries} retries. Please try again later."
        ) from e
    except ValueError as e:
        print_tb(verbose)
        raise click.UsageError(str(e)) from e
