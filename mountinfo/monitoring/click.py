# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""click building blocks shared by the mountinfo commands."""

import logging
import re
import textwrap
from functools import reduce
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar, Union

import click

import tomli
from mountinfo.exporters import registry
from mountinfo.monitoring.sink.utils import format_factory_docstrings
from typeguard import typechecked
from typing_extensions import ParamSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")
FC = TypeVar("FC", bound=Union[Callable[..., Any], click.Command])

OMEGACONF_DOTLIST_DOCS = (
    "https://omegaconf.readthedocs.io/en/2.3_branch/usage.html#from-a-dot-list"
)


class IntWithSISymbol(click.ParamType):
    """A byte count such as `512`, `64k` (64,000) or `1M` (1,000,000)."""

    name = "integer_si"
    _multipliers = {"": 1, "k": 1000, "M": 1_000_000}
    _pattern = re.compile(r"(?P<digits>[0-9]+)(?P<symbol>[^0-9]?)")

    def convert(
        self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> int:
        if isinstance(value, int):
            return value
        if not isinstance(value, str):
            self.fail(f"Expected a string, got {type(value).__name__}", param, ctx)
        m = self._pattern.fullmatch(value)
        if m is None:
            self.fail(f"{value!r} is not a valid integer", param, ctx)
        symbol = m.group("symbol")
        if symbol not in self._multipliers:
            known = ", ".join(s for s in self._multipliers if s)
            self.fail(f"Unknown SI symbol {symbol!r}, expected one of: {known}", param, ctx)
        return int(m.group("digits")) * self._multipliers[symbol]


pid_option = click.option(
    "--pid",
    type=click.IntRange(min=1),
    default=None,
    help="Read the table of this process' mount namespace instead of our own.",
)


def file_option(table: str) -> Callable[[FC], FC]:
    return click.option(
        "--file",
        "path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        help=f"Read a saved {table} table from this path instead of /proc.",
    )


skip_errors_option = click.option(
    "--skip-errors",
    is_flag=True,
    default=False,
    help="Log and skip malformed lines instead of failing on the first one.",
)

# applied bottom to top, so `--help` lists them in this order
_PUBLISH_OPTIONS = [
    click.option(
        "--sink",
        default="stdout",
        help="Name of the registered sink that receives the rows.",
    ),
    click.option(
        "-o",
        "--sink-opt",
        "sink_opts",
        multiple=True,
        help="key=value passed to the sink constructor, in OmegaConf dot-list syntax. See [1]",
    ),
    click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        default="INFO",
        show_default=True,
        help="Verbosity of the command's own log.",
    ),
    click.option(
        "--log-folder",
        type=click.Path(file_okay=False),
        default="mountinfo_logs",
        show_default=True,
        help="Directory for the command's rotated log file.",
    ),
    click.option(
        "--stdout",
        is_flag=True,
        default=False,
        help="Log to stdout instead of the log folder.",
    ),
    click.option(
        "--dry-run",
        "-n",
        is_flag=True,
        help="Print rows to STDOUT as JSON, whatever the sink.",
    ),
    click.option(
        "--retries",
        type=click.IntRange(min=0),
        default=2,
        show_default=True,
        help="How often a chunk is retried when the sink asks for it.",
    ),
    click.option(
        "--chunk-size",
        type=IntWithSISymbol(),
        default="1M",
        show_default=True,
        help=(
            "Upper bound in bytes on the JSON encoding of each chunk handed to "
            "the sink, e.g. 64k or 1M. 0 sends all rows at once."
        ),
    ),
]


def publish_options(f: FC) -> FC:
    """Add the options consumed by `mountinfo.monitoring.monitor.publish`."""
    return reduce(lambda acc, option: option(acc), reversed(_PUBLISH_OPTIONS), f)


def get_docs_for_references(refs: Iterable[str]) -> str:
    """Number a list of references for a click epilog.

    Examples:
    >>> get_docs_for_references(["r1", "r2"])
    '\\x08\\nReferences:\\n  [1]: r1\\n  [2]: r2'
    """
    numbered = "\n".join(f"[{i}]: {ref}" for i, ref in enumerate(refs, start=1))
    return "\b\nReferences:\n" + textwrap.indent(numbered, "  ", lambda _: True)


def click_default_cmd(
    context_settings: Optional[Dict[str, Any]] = None,
) -> Callable[[Callable[..., T]], click.Command]:
    """`click.command` whose epilog documents every registered sink."""
    sinks = textwrap.indent(format_factory_docstrings(registry), "  ", lambda _: True)
    return click.command(
        context_settings=context_settings,
        epilog=f"\b\nSink documentation:\n\n\b\n{sinks}"
        + get_docs_for_references([OMEGACONF_DOTLIST_DOCS]),
    )


@typechecked
def _as_table(value: Any) -> Dict[str, Any]:
    return value


def _load_table(path: Path, name: str) -> Dict[str, Any]:
    """Read table `name` from the TOML file at `path`.

    Raises:
        click.BadParameter: If the file is not TOML or has no such table.
    """
    logger.info(f"Reading config from {path}...")
    with path.open("rb") as f:
        try:
            conf = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise click.BadParameter(f"{path} does not contain valid TOML.") from e
    if name not in conf:
        raise click.BadParameter(
            f"'{name}' is not a top-level table name in {path}. Valid names: {list(conf)}"
        )
    logger.info(f"Loaded table '{name}'.")
    return _as_table(conf[name])


_P = ParamSpec("_P")
_R = TypeVar("_R")

DEFAULT_CONFIG_PATH = "/etc/mountinfo/config.toml"


def toml_config_option(
    name: str,
    *,
    default_config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
) -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Add an eager `--config` option which fills the context's `default_map`
    from table `name` of a TOML file.

    Values on the command line win over the config file, which wins over the
    context's existing `default_map` and the options' own defaults. On a group,
    subtables (e.g. `[mountinfo.show]`) configure the subcommands.

    A path that does not exist, or `/dev/null`, counts as an empty table.
    """

    def set_default_map(ctx: click.Context, param: click.Parameter, path: Path) -> None:
        if path == Path("/dev/null") or not path.exists():
            return
        try:
            table = _load_table(path, name)
        except click.BadParameter as e:
            e.ctx, e.param = ctx, param
            raise
        ctx.default_map = {**(ctx.default_map or {}), **table}

    def decorator(f: Callable[_P, _R]) -> Callable[_P, _R]:
        return click.option(
            "--config",
            type=click.Path(dir_okay=False, path_type=Path),
            callback=set_default_map,
            default=default_config_path,
            show_default=True,
            is_eager=True,
            expose_value=False,
            help=f"TOML file whose table '{name}' provides option defaults. Missing files are ignored.",
        )(f)

    return decorator
