# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""What the publishing loop expects of a sink."""
from dataclasses import dataclass
from enum import auto, Enum
from typing import Optional, Protocol, runtime_checkable

from mountinfo.schemas.log import Log


class DataIdentifier(Enum):
    """Which table a batch of rows was read from."""

    MOUNTINFO = auto()
    MOUNTS = auto()
    GENERIC = auto()


@dataclass
class SinkAdditionalParams:
    """Context handed to every write, e.g. so the file sink can keep one file
    per table.
    """

    data_identifier: Optional[DataIdentifier] = None


class SinkWrite(Protocol):
    def __call__(self, data: Log, additional_params: SinkAdditionalParams) -> None: ...


@runtime_checkable
class SinkImpl(Protocol):
    """A destination for published rows, see `mountinfo.exporters`.

    `write` may raise `Retry` to have the same chunk written again later.
    """

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None: ...
