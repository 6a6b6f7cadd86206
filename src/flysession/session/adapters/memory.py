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
"""In-memory session store with TTL-based expiry."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from flysession.kernel.exceptions import SessionSerializationException
from flysession.session.serializer import JsonSessionSerializer, SessionSerializer

_logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Process-local session store guarded by an ``asyncio.Lock``.

    Records are kept serialized, so a loaded session never shares objects
    with another request's copy, just as with Redis. Suitable for
    development, tests, and single-process applications.

    Args:
        serializer: Payload codec (JSON by default).
        clock: Monotonic clock in seconds; tests pass a fake to step past TTLs.
    """

    def __init__(
        self,
        serializer: SessionSerializer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._serializer = serializer or JsonSessionSerializer()
        self._clock = clock
        self._records: dict[str, tuple[bytes, float | None]] = {}
        self._lock = asyncio.Lock()

    def _expires_at(self, ttl: timedelta | None) -> float | None:
        return None if ttl is None else self._clock() + ttl.total_seconds()

    def _live(self, session_id: str) -> bytes | None:
        """Return the raw record if present and not expired. Caller holds the lock."""
        entry = self._records.get(session_id)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._records[session_id]
            return None
        return raw

    async def load(self, session_id: str) -> dict[str, Any] | None:
        async with self._lock:
            raw = self._live(session_id)
        if raw is None:
            return None
        try:
            return self._serializer.loads(raw)
        except SessionSerializationException:
            _logger.warning("Failed to deserialize session %s...", session_id[:8])
            return None

    async def save(self, session_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        raw = self._serializer.dumps(data)
        async with self._lock:
            self._records[session_id] = (raw, self._expires_at(ttl))

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._records.pop(session_id, None)

    async def touch(self, session_id: str, ttl: timedelta | None) -> bool:
        async with self._lock:
            raw = self._live(session_id)
            if raw is None:
                return False
            self._records[session_id] = (raw, self._expires_at(ttl))
            return True

    async def rotate(self, old_id: str, new_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        raw = self._serializer.dumps(data)
        async with self._lock:
            self._records.pop(old_id, None)
            self._records[new_id] = (raw, self._expires_at(ttl))

    async def close(self) -> None:
        """Nothing to release; records stay readable until the store is dropped."""

    def __len__(self) -> int:
        return len(self._records)
