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
"""WebFilterChainMiddleware — pure ASGI middleware wrapping a list of WebFilters."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from flysession.web.ports.filter import CallNext, WebFilter


class _ResponseRecorder:
    """ASGI ``send`` callable that collects a response instead of sending it."""

    def __init__(self) -> None:
        self.status_code: int | None = None
        self.raw_headers: list[tuple[bytes, bytes]] = []
        self._body = bytearray()

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            self.raw_headers = list(message.get("headers", []))
        elif message["type"] == "http.response.body":
            self._body.extend(message.get("body", b""))
        elif message["type"] == "http.response.pathsend":
            # zero-copy file extension (e.g. Granian); read it so filters see a body
            self._body.extend(Path(message["path"]).read_bytes())

    def to_response(self) -> Response:
        if self.status_code is None:
            raise RuntimeError("Downstream app finished without starting a response")
        response = Response(content=bytes(self._body), status_code=self.status_code)
        response.raw_headers[:] = self.raw_headers
        return response


class WebFilterChainMiddleware:
    """Runs *filters* in order around the downstream ASGI app.

    The first filter is the outermost. The downstream response is buffered
    into a Starlette ``Response`` so filters can add headers
    (``Set-Cookie``) after the handler has run and before anything reaches
    the client. Non-HTTP scopes pass straight through.

    Usage::

        app = Starlette(
            routes=[...],
            middleware=[Middleware(WebFilterChainMiddleware, filters=[session_filter])],
        )
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = tuple(filters)
        chain: CallNext = self._call_app
        for web_filter in reversed(self._filters):
            chain = _wrap(web_filter, chain)
        self._chain = chain

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response = cast(Response, await self._chain(Request(scope, receive)))
        await response(scope, receive, send)

    async def _call_app(self, request: Request) -> Response:
        recorder = _ResponseRecorder()
        await self.app(request.scope, request.receive, recorder)
        return recorder.to_response()


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    """Call *web_filter* around *next_call* unless it opts out for the request."""

    async def _inner(request: Request) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await next_call(request))
        return cast(Response, await web_filter.do_filter(request, next_call))

    return _inner
