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
"""Session configuration — properties model and filter wiring."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from flysession.core.config import Config, config_properties
from flysession.logging.port import LoggingPort
from flysession.logging.structlog_adapter import StructlogAdapter
from flysession.session.adapters.redis import DEFAULT_SOCKET_TIMEOUT, create_session_store
from flysession.session.connection import DEFAULT_NAMESPACE
from flysession.session.cookie import DEFAULT_COOKIE_NAME, CookieCodec
from flysession.session.filter import SessionFilter
from flysession.session.manager import SessionLifecycleManager
from flysession.session.ports.outbound import SessionStore


@config_properties(prefix="flysession.session")
class SessionProperties(BaseModel):
    """Settings under ``flysession.session``.

    ``redis_server`` takes any connection descriptor accepted by
    :func:`~flysession.session.connection.resolve_topology`; a list of two
    or more endpoints turns on distributed storage.
    """

    cookie_name: str = Field(default=DEFAULT_COOKIE_NAME, min_length=1)
    expire_after: float | None = Field(default=None, gt=0)
    redis_server: str | list[str | dict[str, Any]] | dict[str, Any] = f"localhost:6379/0/{DEFAULT_NAMESPACE}"
    socket_timeout: float = Field(default=DEFAULT_SOCKET_TIMEOUT, gt=0)
    cookie_path: str = "/"
    cookie_httponly: bool = True
    cookie_samesite: Literal["lax", "strict", "none"] | None = "lax"
    cookie_secure: bool = False

    @field_validator("expire_after", mode="before")
    @classmethod
    def _blank_means_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
            return None
        return value

    @property
    def ttl(self) -> timedelta | None:
        return timedelta(seconds=self.expire_after) if self.expire_after is not None else None

    def cookie_codec(self) -> CookieCodec:
        return CookieCodec(
            self.cookie_name,
            path=self.cookie_path,
            httponly=self.cookie_httponly,
            samesite=self.cookie_samesite,
            secure=self.cookie_secure,
        )


def session_filter_from_config(
    config: Config,
    *,
    store: SessionStore | None = None,
    configure_logging: bool = False,
    logging_port: LoggingPort | None = None,
) -> SessionFilter:
    """Build a :class:`SessionFilter` from ``flysession.session`` settings.

    Args:
        config: Application configuration.
        store: Use this store instead of building one from ``redis-server``.
        configure_logging: Also apply ``flysession.logging``.
        logging_port: Logging backend to configure; defaults to
            :class:`~flysession.logging.structlog_adapter.StructlogAdapter`.
    """
    if configure_logging:
        port: LoggingPort = logging_port or StructlogAdapter()
        port.configure(config)

    properties = config.bind(SessionProperties)
    if store is None:
        store = create_session_store(properties.redis_server, socket_timeout=properties.socket_timeout)
    manager = SessionLifecycleManager(store, expire_after=properties.ttl)
    return SessionFilter(manager, properties.cookie_codec())
