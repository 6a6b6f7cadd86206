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
"""Session store protocol."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Persistence interface for session data bags, keyed by session id.

    Every operation is a single round trip to the backend. Stores keep no
    per-session state in memory and are shared by all concurrent requests.
    A missing or expired record is ``None``, never an exception; transport
    failures raise :class:`~flysession.kernel.exceptions.BackendUnavailableException`.
    """

    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the stored data, or ``None`` if absent, expired, or unreadable."""
        ...

    async def save(self, session_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        """Upsert *data*; with a *ttl* the record expires on its own, without one it never does."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove the record. Deleting an unknown id is not an error."""
        ...

    async def touch(self, session_id: str, ttl: timedelta | None) -> bool:
        """Reset the expiry of an existing record. Returns ``False`` if it does not exist."""
        ...

    async def rotate(self, old_id: str, new_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        """Store *data* under *new_id* and remove *old_id*."""
        ...

    async def close(self) -> None:
        """Release backend connections."""
        ...
