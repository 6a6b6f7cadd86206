# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from flysession.core.config import Config

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


class StructlogAdapter:
    """Configures structlog for session lifecycle events.

    The lifecycle manager logs snake_case events with key-value context
    (``session_committed action=saved session=1a2b3c4d``). The store
    adapters log through the stdlib; a ``ProcessorFormatter`` on the root
    handler renders those records with the same processors and renderer,
    so one stream carries both.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Apply ``flysession.logging.level`` and ``flysession.logging.format``."""
        levels = {k: str(v).upper() for k, v in config.get_section("flysession.logging.level").items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels
        self._format = str(config.get("flysession.logging.format", "console")).lower()

        structlog.configure(
            processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self._install_handler()
        for module, level in self._module_levels.items():
            self.set_level(module, level)

    def get_logger(self, name: str) -> Any:
        """Get a structlog BoundLogger by name."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of one stdlib logger; unknown names mean INFO."""
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _renderer(self) -> structlog.types.Processor:
        if self._format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()

    def _install_handler(self) -> None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_SHARED_PROCESSORS,
                processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, self._renderer()],
            )
        )
        logging.basicConfig(
            handlers=[handler],
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )
