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
"""Tests for StructlogAdapter — default LoggingPort implementation."""

import json
import logging

import pytest
import structlog

from flysession.core.config import Config
from flysession.logging.port import LoggingPort
from flysession.logging.structlog_adapter import StructlogAdapter


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def _root_renderer():
    return logging.getLogger().handlers[0].formatter.processors[-1]


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        adapter = StructlogAdapter()
        assert isinstance(adapter, LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        config = Config({"flysession": {"logging": {"level": {"root": "debug"}}}})
        adapter.configure(config)
        assert adapter._root_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_reads_format(self):
        adapter = StructlogAdapter()
        config = Config({"flysession": {"logging": {"format": "json"}}})
        adapter.configure(config)
        assert adapter._format == "json"
        assert isinstance(_root_renderer(), structlog.processors.JSONRenderer)

    def test_configure_defaults_console_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._format == "console"
        assert isinstance(_root_renderer(), structlog.dev.ConsoleRenderer)

    def test_configure_reads_packaged_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config.defaults())
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"

    def test_configure_reads_per_module_levels(self):
        adapter = StructlogAdapter()
        config = Config(
            {"flysession": {"logging": {"level": {"root": "INFO", "flysession.session.adapters": "warning"}}}}
        )
        adapter.configure(config)
        assert adapter._module_levels == {"flysession.session.adapters": "WARNING"}
        assert logging.getLogger("flysession.session.adapters").level == logging.WARNING


class TestStructlogAdapterGetLogger:
    def test_get_logger_returns_bound_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("flysession.session")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))


class TestStructlogAdapterSetLevel:
    def test_set_level_updates_module_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        adapter.set_level("flysession.session", "DEBUG")
        assert logging.getLogger("flysession.session").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        adapter = StructlogAdapter()
        adapter.set_level("flysession.other", "CHATTY")
        assert logging.getLogger("flysession.other").level == logging.INFO


class TestStructlogAdapterRendering:
    def test_stdlib_records_use_the_json_renderer(self, capsys):
        adapter = StructlogAdapter()
        adapter.configure(Config({"flysession": {"logging": {"format": "json"}}}))
        logging.getLogger("flysession.session.adapters.redis").warning("Redis %s failed", "GET")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Redis GET failed"
        assert record["logger"] == "flysession.session.adapters.redis"
        assert record["level"] == "warning"
