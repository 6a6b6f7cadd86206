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
"""CookieCodec — reads the session id from ``Cookie`` and formats ``Set-Cookie``."""

from __future__ import annotations

import http.cookies
import math
from datetime import timedelta
from typing import Literal

from starlette.requests import cookie_parser

DEFAULT_COOKIE_NAME = "flysession"

SameSite = Literal["lax", "strict", "none"]


class CookieCodec:
    """Encodes and decodes the session cookie for one configured cookie name.

    Only the session id travels in the cookie. The remaining attributes are
    fixed at construction so two encodings of the same id and TTL are
    byte-identical.
    """

    def __init__(
        self,
        key: str = DEFAULT_COOKIE_NAME,
        *,
        path: str = "/",
        httponly: bool = True,
        samesite: SameSite | None = "lax",
        secure: bool = False,
    ) -> None:
        if not key:
            raise ValueError("Cookie name must not be empty")
        self._key = key
        self._path = path
        self._httponly = httponly
        self._samesite = samesite
        self._secure = secure

    @property
    def key(self) -> str:
        return self._key

    def decode(self, header: str | None) -> str | None:
        """Return the session id carried in a ``Cookie`` header, if any."""
        if not header:
            return None
        value = cookie_parser(header).get(self._key)
        return value or None

    def encode(self, session_id: str, ttl: timedelta | None = None) -> str:
        """Return a ``Set-Cookie`` header value assigning *session_id*."""
        cookie: http.cookies.BaseCookie[str] = http.cookies.SimpleCookie()
        cookie[self._key] = session_id
        morsel = cookie[self._key]
        morsel["path"] = self._path
        if ttl is not None:
            morsel["max-age"] = max(0, math.ceil(ttl.total_seconds()))
        if self._httponly:
            morsel["httponly"] = True
        if self._secure:
            morsel["secure"] = True
        if self._samesite is not None:
            morsel["samesite"] = self._samesite
        return cookie.output(header="").strip()
