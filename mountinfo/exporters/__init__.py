# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Sink plugins. Every module in this namespace is imported on startup and
registers its sinks with `register`.
"""

import sys
from types import ModuleType
from typing import Dict

from mountinfo.monitoring.sink.protocol import SinkImpl
from mountinfo.monitoring.sink.utils import discover, Factory, make_register, Register

registry: Dict[str, Factory[SinkImpl]] = {}
register: Register[SinkImpl] = make_register(registry)

discovered_plugins: Dict[str, ModuleType] = discover(sys.modules[__name__])
