# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_FILE = Path(__file__).absolute().parent / "version.txt"


def get_version() -> str:
    """`version.txt` next to this module, else `$MOUNTINFO_VERSION`, else
    "unknown".
    """
    try:
        return VERSION_FILE.read_text().strip()
    except OSError:
        logger.info(f"No version file at {VERSION_FILE}", exc_info=True)
    return os.environ.get("MOUNTINFO_VERSION", "unknown")


__version__ = get_version()
