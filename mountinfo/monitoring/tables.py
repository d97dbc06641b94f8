# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
from pathlib import Path
from typing import BinaryIO

import click

logger = logging.getLogger(__name__)


def open_table(path: Path) -> BinaryIO:
    """Open a mount table for reading.

    Raises:
        click.FileError: If the table could not be opened, e.g. because the
            process does not exist or we may not inspect it.
    """
    logger.debug(f"opening {path}")
    try:
        return open(path, "rb")
    except OSError as e:
        raise click.FileError(
            str(path), hint=os.strerror(e.errno) if e.errno else str(e)
        ) from e
