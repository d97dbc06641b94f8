# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
import logging
from dataclasses import dataclass
from itertools import repeat
from pathlib import Path
from typing import Dict, List

import click
import pytest

from mountinfo.exporters import discovered_plugins, registry
from mountinfo.exporters.file import File
from mountinfo.exporters.stdout import Stdout
from mountinfo.monitoring.decorators import Retry
from mountinfo.monitoring.monitor import init_logger, make_sink
from mountinfo.monitoring.sink import utils as sink_utils
from mountinfo.monitoring.sink.protocol import (
    DataIdentifier,
    SinkAdditionalParams,
    SinkImpl,
)
from mountinfo.monitoring.sink.utils import (
    Factory,
    format_factory_docstrings,
    get_message_for_sink_init_error,
    make_register,
    SinkOptionsMessage,
    write_to_sink_with_retries,
)
from mountinfo.schemas.log import Log


@dataclass
class Row:
    mount_point: str


class Recorder:
    """Keeps every write."""

    def __init__(self, *, name: str, verbose: bool = False) -> None:
        self.name = name
        self.logs: List[Log] = []

    def write(self, data: Log, additional_params: SinkAdditionalParams) -> None:
        self.logs.append(Log(ts=data.ts, message=list(data.message)))


class NotASink:
    pass


def test_builtin_sinks_are_registered() -> None:
    assert {"do_nothing", "file", "stdout"} <= set(registry)
    assert "mountinfo.exporters.stdout" in discovered_plugins


def test_register_twice_fails() -> None:
    local: Dict[str, Factory[SinkImpl]] = {}
    register = make_register(local)
    register("recorder")(Recorder)

    with pytest.raises(RuntimeError, match="'recorder' is already registered"):
        register("recorder")(Recorder)


def test_format_factory_docstrings() -> None:
    docs = format_factory_docstrings(
        {"recorder": Recorder, "not_a_sink": NotASink},
        default_docstring="nothing",
    )

    assert docs.index("not_a_sink") < docs.index("recorder")
    assert "Signature: (*, name: str, verbose: bool = False)" in docs
    assert "  Keeps every write." in docs
    assert "  nothing" in docs


@pytest.mark.parametrize(
    "kwargs, expected_unrecognized, expected_missing",
    [
        ({}, [], ["name"]),
        ({"name": "x", "colour": "red"}, ["colour"], []),
        ({"colour": "red"}, ["colour"], ["name"]),
    ],
)
def test_sink_options_message(
    kwargs: Dict[str, str],
    expected_unrecognized: List[str],
    expected_missing: List[str],
) -> None:
    msg = SinkOptionsMessage(
        sink_name="recorder", sink_factory=Recorder, sink_kwargs=kwargs
    )

    assert msg.unrecognized == expected_unrecognized
    assert msg.missing == expected_missing
    assert str(msg).startswith("Sink 'recorder' was given bad options.")
    assert "\tverbose" in str(msg)


def test_get_message_for_unrelated_type_error() -> None:
    msg = get_message_for_sink_init_error(
        TypeError("unsupported operand"), "recorder", Recorder, {}
    )

    assert msg is None


class TestMakeSink:
    registry: Dict[str, Factory[SinkImpl]] = {
        "recorder": Recorder,
        "not_a_sink": NotASink,
    }

    def test_options_are_passed(self) -> None:
        sink = make_sink("recorder", ["name=abc", "verbose=true"], self.registry)

        assert isinstance(sink, Recorder)
        assert sink.name == "abc"

    def test_unknown_sink(self) -> None:
        with pytest.raises(click.UsageError, match="could not be found"):
            make_sink("nope", [], self.registry)

    def test_missing_option(self) -> None:
        with pytest.raises(click.UsageError) as exc_info:
            make_sink("recorder", [], self.registry)

        assert "The following required options are missing:\n\tname" in str(
            exc_info.value
        )

    def test_not_a_sink(self) -> None:
        with pytest.raises(click.ClickException, match="does not appear to implement"):
            make_sink("not_a_sink", [], self.registry)


class TestWriteToSinkWithRetries:
    @staticmethod
    @pytest.mark.parametrize(
        "chunk_size, expected_chunks",
        [
            (0, [["/a", "/b", "/c"]]),
            (1_000_000, [["/a", "/b", "/c"]]),
            # [{"mount_point":"/a"}] is 22 bytes
            (22, [["/a"], ["/b"], ["/c"]]),
            (43, [["/a", "/b"], ["/c"]]),
        ],
    )
    def test_chunks(chunk_size: int, expected_chunks: List[List[str]]) -> None:
        sink = Recorder(name="test")

        write_to_sink_with_retries(
            write=sink.write,
            sink="recorder",
            records=(Row(p) for p in ["/a", "/b", "/c"]),
            chunk_size=chunk_size,
            retries=0,
            verbose=False,
            log_time=1700000000,
            additional_params=SinkAdditionalParams(),
        )

        assert [[r.mount_point for r in log.message] for log in sink.logs] == (
            expected_chunks
        )
        assert {log.ts for log in sink.logs} == {1700000000}

    @staticmethod
    def test_retry_writes_the_same_chunk_again(
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(sink_utils, "exponential_backoff", lambda: repeat(0))
        attempts: List[Log] = []

        def write(data: Log, additional_params: SinkAdditionalParams) -> None:
            attempts.append(data)
            if len(attempts) == 1:
                raise Retry()

        write_to_sink_with_retries(
            write=write,
            sink="flaky",
            records=[Row("/a"), Row("/b")],
            chunk_size=0,
            retries=1,
            verbose=False,
            log_time=0,
            additional_params=SinkAdditionalParams(),
        )

        assert len(attempts) == 2
        assert attempts[0] == attempts[1]

    @staticmethod
    def test_value_error_is_a_usage_error() -> None:
        def write(data: Log, additional_params: SinkAdditionalParams) -> None:
            raise ValueError("no route")

        with pytest.raises(click.UsageError, match="no route"):
            write_to_sink_with_retries(
                write=write,
                sink="broken",
                records=[Row("/")],
                chunk_size=0,
                retries=0,
                verbose=False,
                log_time=0,
                additional_params=SinkAdditionalParams(),
            )


class TestFileSink:
    @staticmethod
    def test_routes_by_table(tmp_path: Path) -> None:
        generic = tmp_path / "all.json"
        mounts = tmp_path / "mounts" / "mounts.json"
        sink = File(file_path=str(generic), mounts_file_path=str(mounts))

        sink.write(
            Log(ts=0, message=[Row("/a")]),
            SinkAdditionalParams(data_identifier=DataIdentifier.MOUNTS),
        )
        sink.write(
            Log(ts=0, message=[Row("/b")]),
            SinkAdditionalParams(data_identifier=DataIdentifier.MOUNTINFO),
        )

        assert json.loads(mounts.read_text()) == {"mount_point": "/a"}
        assert json.loads(generic.read_text()) == {"mount_point": "/b"}

    @staticmethod
    def test_no_fallback(tmp_path: Path) -> None:
        sink = File(mounts_file_path=str(tmp_path / "mounts.json"))

        with pytest.raises(ValueError, match="no file_path fallback"):
            sink.write(
                Log(ts=0, message=[Row("/")]),
                SinkAdditionalParams(data_identifier=DataIdentifier.MOUNTINFO),
            )

    @staticmethod
    def test_needs_a_path() -> None:
        with pytest.raises(ValueError):
            File()


@pytest.mark.parametrize(
    "indent, expected",
    [
        (0, '[{"mount_point": "/"}]\n'),
        (1, '[\n {\n  "mount_point": "/"\n }\n]\n'),
    ],
)
def test_stdout_sink(
    capsys: pytest.CaptureFixture[str], indent: int, expected: str
) -> None:
    Stdout(indent=indent).write(Log(ts=0, message=[Row("/")]), SinkAdditionalParams())

    assert capsys.readouterr().out == expected


@pytest.mark.parametrize("log_stdout", [False, True])
def test_init_logger(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], log_stdout: bool
) -> None:
    name = f"test_init_logger_{log_stdout}"
    logger, handler = init_logger(
        logger_name=name,
        log_dir=str(tmp_path / "logs"),
        log_name="test.log",
        log_level=logging.DEBUG,
        log_stdout=log_stdout,
    )
    try:
        logger.debug("hello")
    finally:
        logger.removeHandler(handler)
        handler.close()

    log_file = tmp_path / "logs" / "test.log"
    if log_stdout:
        assert not log_file.exists()
        assert f"[DEBUG] - [{name}] - hello" in capsys.readouterr().out
    else:
        assert f"[DEBUG] - [{name}] - hello" in log_file.read_text()
