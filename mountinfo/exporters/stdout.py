# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
from dataclasses import asdict

from mountinfo.exporters import register
from mountinfo.monitoring.sink.protocol import SinkAdditionalParams
from mountinfo.schemas.log import Log


@register("stdout")
class Stdout:
    """Print each chunk of rows to stdout as a JSON list."""

    def __init__(self, *, indent: int = 0):
        self.indent = indent or None

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None:
        print(json.dumps([asdict(row) for row in data.message], indent=self.indent))
