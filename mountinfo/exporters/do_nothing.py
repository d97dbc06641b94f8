# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging

from mountinfo.exporters import register
from mountinfo.monitoring.sink.protocol import SinkAdditionalParams
from mountinfo.schemas.log import Log

logger = logging.getLogger(__name__)


@register("do_nothing")
class DoNothing:
    """Discard all rows. Useful to only validate a table, e.g. with
    `mountinfo show --sink do_nothing`.
    """

    def write(
        self,
        data: Log,
        additional_params: SinkAdditionalParams,
    ) -> None:
        logger.debug(f"discarding {len(data.message)} rows")
