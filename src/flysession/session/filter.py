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
"""SessionFilter — loads and commits cookie-backed sessions around each request."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from flysession.session.cookie import CookieCodec
from flysession.session.manager import CommitResult, SessionLifecycleManager
from flysession.session.options import (
    OPTIONS_STATE_ATTR,
    SESSION_STATE_ATTR,
    RequestOptions,
    get_request_options,
)
from flysession.session.session import SessionEnvelope
from flysession.web.filters import OncePerRequestFilter
from flysession.web.ports.filter import CallNext


class SessionFilter(OncePerRequestFilter):
    """Attaches a session to ``request.state.session`` and commits it afterwards.

    Handlers read and write the session like a dict and steer the commit
    with :func:`~flysession.session.options.renew_session`,
    :func:`~flysession.session.options.drop_session` or
    :func:`~flysession.session.options.defer_session`.

    Handlers may also assign a new mapping to ``request.state.session``;
    it is committed under the same id.

    If the handler raises, nothing is committed and the exception
    propagates. If the commit itself fails, the store error propagates and
    no ``Set-Cookie`` header is added.
    """

    def __init__(
        self,
        manager: SessionLifecycleManager,
        codec: CookieCodec | None = None,
        *,
        url_patterns: Sequence[str] | None = None,
        exclude_patterns: Sequence[str] | None = None,
    ) -> None:
        super().__init__(url_patterns=url_patterns, exclude_patterns=exclude_patterns)
        self._manager = manager
        self._codec = codec or CookieCodec()

    @property
    def manager(self) -> SessionLifecycleManager:
        return self._manager

    @property
    def codec(self) -> CookieCodec:
        return self._codec

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        candidate_id = self._codec.decode(request.headers.get("cookie"))
        session = await self._manager.load(candidate_id)
        setattr(request.state, SESSION_STATE_ATTR, session)
        setattr(request.state, OPTIONS_STATE_ATTR, RequestOptions())

        response = await call_next(request)

        session = _session_after_handler(request, session)
        result = await self._manager.commit(session, get_request_options(request))
        self._write_cookie(response, result)
        return response

    def _write_cookie(self, response: Any, result: CommitResult) -> None:
        if result.cookie_id is None:
            return
        header = self._codec.encode(result.cookie_id, self._manager.expire_after)
        response.headers.append("set-cookie", header)


def _session_after_handler(request: Any, loaded: SessionEnvelope) -> SessionEnvelope:
    """The session to commit: whatever the handler left in ``request.state.session``.

    A plain mapping replaces the loaded bag under the same id.
    """
    current = getattr(request.state, SESSION_STATE_ATTR, None)
    if isinstance(current, SessionEnvelope):
        return current
    if isinstance(current, Mapping):
        loaded.replace(current)
        return loaded
    raise TypeError(
        f"request.state.{SESSION_STATE_ATTR} must be a mapping, not {type(current).__name__}"
    )
