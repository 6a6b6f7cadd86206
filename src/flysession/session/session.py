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
"""SessionEnvelope — the per-request session data bag."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any


class SessionEnvelope(MutableMapping[str, Any]):
    """A session's data bag plus the metadata the lifecycle manager needs.

    The envelope behaves like a ``dict`` so handlers can write
    ``request.state.session["counter"] = 1``. It belongs to exactly one
    request; concurrent requests for the same session each get their own
    envelope and only meet again in the store.

    Attributes:
        id: The session identifier the data is stored under.
        is_new: ``True`` if no record existed in the store at load time.
        modified: ``True`` once the bag has been changed during this request.
    """

    def __init__(
        self,
        session_id: str,
        data: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
    ) -> None:
        self._id = session_id
        self._data: dict[str, Any] = dict(data) if data is not None else {}
        self._is_new = is_new
        self._modified = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def data(self) -> dict[str, Any]:
        """The raw data bag, as handed to the store on commit."""
        return self._data

    def reassign(self, session_id: str) -> None:
        """Move the envelope to a new id (used when a session is renewed)."""
        self._id = session_id

    def replace(self, data: Mapping[str, Any]) -> None:
        """Swap the whole bag for a copy of *data*, keeping id and ``is_new``."""
        self._data = dict(data)
        self._modified = True

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SessionEnvelope(id={self._id!r}, is_new={self._is_new}, data={self._data!r})"
