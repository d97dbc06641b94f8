# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def sample_mountinfo() -> Path:
    return DATA_DIR / "sample-proc-self-mountinfo-output.txt"


@pytest.fixture
def sample_mounts() -> Path:
    return DATA_DIR / "sample-proc-self-mounts-output.txt"


def pytest_configure(config: "pytest.Config") -> None:
    config.addinivalue_line(
        "markers", "linux: the test reads the live mount table under /proc"
    )
