# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""A single entrypoint into the mountinfo commands.

This file is intentionally lightweight and should not include any complex logic.
"""

import click

from mountinfo._version import __version__
from mountinfo.monitoring.cli import mounts, show
from mountinfo.monitoring.click import toml_config_option


@click.group(epilog=f"mountinfo Version: {__version__}")
@toml_config_option("mountinfo")
@click.version_option(__version__)
def main() -> None:
    """Parse Linux mount tables (/proc/<pid>/mountinfo, /proc/<pid>/mounts)."""


main.add_command(show.main, name="show")
main.add_command(mounts.main, name="mounts")

if __name__ == "__main__":
    main()
