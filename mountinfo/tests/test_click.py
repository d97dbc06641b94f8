# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path
from typing import Optional, Sequence

import click
import pytest
from click.testing import CliRunner

from mountinfo.monitoring.click import (
    get_docs_for_references,
    IntWithSISymbol,
    toml_config_option,
)
from typeguard import TypeCheckError, typechecked


def _write_config(path: Path, contents: str) -> Path:
    path.write_text(contents)
    return path


def _make_command(config_path: Path) -> click.Command:
    @click.command()
    @toml_config_option("mountinfo", default_config_path=config_path)
    @click.option("--sink", default="stdout")
    @click.option("--retries", type=int)
    def main(sink: str, retries: Optional[int]) -> None:
        print(sink)
        print(retries)

    return main


class TestTomlConfigOption:
    @staticmethod
    @pytest.mark.parametrize(
        "args, expected_stdout",
        [
            # the default config applies when nothing is passed
            ([], "do_nothing\nNone\n"),
            # the command line wins over the config
            (["--sink", "file"], "file\nNone\n"),
            # a nonexistent config is an empty table
            (["--config", "/nonexistent/config.toml"], "stdout\nNone\n"),
            (["--config", "/dev/null"], "stdout\nNone\n"),
        ],
    )
    @typechecked
    def test_uses_correct_value(
        tmp_path: Path, args: Sequence[str], expected_stdout: str
    ) -> None:
        config_path = _write_config(
            tmp_path / "config.toml",
            """
            [mountinfo]
            sink = "do_nothing"
            not_an_option = 42

            [other]
            sink = "oops"
            """,
        )

        r = CliRunner().invoke(
            _make_command(config_path), args, catch_exceptions=False
        )

        assert r.exit_code == 0
        assert r.stdout == expected_stdout

    @staticmethod
    def test_other_config_path(tmp_path: Path) -> None:
        default = _write_config(tmp_path / "default.toml", "[mountinfo]\nretries = 1\n")
        other = _write_config(tmp_path / "other.toml", "[mountinfo]\nretries = 5\n")

        r = CliRunner().invoke(
            _make_command(default), ["--config", str(other)], catch_exceptions=False
        )

        assert r.exit_code == 0
        assert r.stdout == "stdout\n5\n"

    @staticmethod
    def test_invalid_toml_errors(tmp_path: Path) -> None:
        config_path = _write_config(tmp_path / "not_toml", "]] oops")

        r = CliRunner().invoke(_make_command(config_path), catch_exceptions=False)

        assert r.exit_code != 0
        assert r.stdout == ""
        assert f"{config_path} does not contain valid TOML." in r.stderr

    @staticmethod
    def test_missing_table_errors(tmp_path: Path) -> None:
        config_path = _write_config(tmp_path / "config.toml", '[other]\nsink = "file"\n')

        r = CliRunner().invoke(_make_command(config_path), catch_exceptions=False)

        assert r.exit_code != 0
        assert (
            f"'mountinfo' is not a top-level table name in {config_path}. Valid names: ['other']"
            in r.stderr
        )

    @staticmethod
    def test_table_must_be_a_table(tmp_path: Path) -> None:
        config_path = _write_config(tmp_path / "config.toml", "mountinfo = 3\n")

        with pytest.raises(TypeCheckError):
            CliRunner().invoke(_make_command(config_path), catch_exceptions=False)

    @staticmethod
    def test_config_propagates_to_subcommands(tmp_path: Path) -> None:
        config_path = _write_config(
            tmp_path / "config.toml",
            """
            [mountinfo.show]
            sink = "file"

            [mountinfo.mounts]
            sink = "do_nothing"
            """,
        )

        @click.group()
        @toml_config_option("mountinfo", default_config_path=config_path)
        def group() -> None:
            pass

        @group.command()
        @click.option("--sink", default="stdout")
        def show(sink: str) -> None:
            print(sink)

        @group.command()
        @click.option("--sink", default="stdout")
        def mounts(sink: str) -> None:
            print(sink)

        runner = CliRunner()
        r1 = runner.invoke(group, ["show"], catch_exceptions=False)
        r2 = runner.invoke(group, ["mounts"], catch_exceptions=False)

        assert r1.stdout == "file\n"
        assert r2.stdout == "do_nothing\n"


class TestIntWithSISymbol:
    @staticmethod
    @pytest.mark.parametrize(
        "value, expected",
        [("0", 0), ("512", 512), ("2k", 2000), ("1M", 1_000_000), (7, 7)],
    )
    def test_convert(value: object, expected: int) -> None:
        assert IntWithSISymbol().convert(value, None, None) == expected

    @staticmethod
    @pytest.mark.parametrize("value", ["", "1G", "k", "1.5M", None])
    def test_convert_fails(value: object) -> None:
        with pytest.raises(click.BadParameter):
            IntWithSISymbol().convert(value, None, None)


def test_get_docs_for_references() -> None:
    assert get_docs_for_references(["https://example.com"]) == (
        "\b\nReferences:\n  [1]: https://example.com"
    )
