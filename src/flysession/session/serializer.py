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
"""Session payload serializers."""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

from flysession.kernel.exceptions import SessionSerializationException


@runtime_checkable
class SessionSerializer(Protocol):
    """Turns a session data bag into bytes and back."""

    def dumps(self, data: dict[str, Any]) -> bytes: ...

    def loads(self, raw: bytes | str) -> dict[str, Any]: ...


class JsonSessionSerializer:
    """JSON serializer; values must be JSON-compatible."""

    def dumps(self, data: dict[str, Any]) -> bytes:
        try:
            return json.dumps(data, separators=(",", ":")).encode()
        except (TypeError, ValueError) as exc:
            raise SessionSerializationException(
                f"Session data is not JSON-serializable: {exc}",
                code="SESSION_ENCODE",
            ) from exc

    def loads(self, raw: bytes | str) -> dict[str, Any]:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
            raise SessionSerializationException(
                f"Stored session is not valid JSON: {exc}",
                code="SESSION_DECODE",
            ) from exc
        if not isinstance(data, dict):
            raise SessionSerializationException(
                f"Stored session must be a JSON object, got {type(data).__name__}",
                code="SESSION_DECODE",
            )
        return data
