# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import json
import logging
import os
from dataclasses import asdict
from typing import Dict, Optional

from mountinfo.exporters import register
from mountinfo.monitoring.monitor import init_logger
from mountinfo.monitoring.sink.protocol import DataIdentifier, SinkAdditionalParams
from mountinfo.schemas.log import Log


@register("file")
class File:
    """Append one JSON object per row to a (rotated) file.

    `file_path` receives every table unless a table specific path
    (`mountinfo_file_path`, `mounts_file_path`) is given.
    """

    def __init__(
        self,
        *,
        file_path: Optional[str] = None,
        mountinfo_file_path: Optional[str] = None,
        mounts_file_path: Optional[str] = None,
    ):
        paths = {
            DataIdentifier.GENERIC: file_path,
            DataIdentifier.MOUNTINFO: mountinfo_file_path,
            DataIdentifier.MOUNTS: mounts_file_path,
        }
        if all(path is None for path in paths.values()):
            raise ValueError(
                "When using the file sink at least one file path needs to be specified. See mountinfo <command> --help"
            )

        self.loggers: Dict[DataIdentifier, logging.Logger] = {}
        for data_identifier, path in paths.items():
            if path is None:
                continue
            self.loggers[data_identifier], _ = init_logger(
                logger_name=__name__ + path,
                log_dir=os.path.dirname(path),
                log_name=os.path.basename(path),
                log_formatter=None,
            )
            # rows must not reach the handlers of the `mountinfo` logger
            self.loggers[data_identifier].propagate = False

    def _logger_for(self, data_identifier: Optional[DataIdentifier]) -> logging.Logger:
        if data_identifier in self.loggers:
            return self.loggers[data_identifier]
        try:
            return self.loggers[DataIdentifier.GENERIC]
        except KeyError:
            raise ValueError(
                f"The file sink has no path for {data_identifier} and no file_path fallback"
            ) from None

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None:
        logger = self._logger_for(additional_params.data_identifier)
        for row in data.message:
            logger.info(json.dumps(asdict(row)))
