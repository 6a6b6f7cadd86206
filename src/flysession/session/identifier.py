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
"""Session identifier generation and shape checks."""

from __future__ import annotations

import re
import secrets

from flysession.kernel.exceptions import MalformedIdentifierException

DEFAULT_ID_BYTES: int = 16
"""Entropy of a generated session id, in bytes (128 bits)."""

_MIN_ID_BYTES = 16


class IdentifierGenerator:
    """Produces unpredictable, fixed-length hexadecimal session ids.

    Ids come from :func:`secrets.token_hex` and are never derived from a
    previous id. The generator holds no mutable state and can be shared by
    concurrent requests.

    Args:
        nbytes: Random bytes per id; the id is ``2 * nbytes`` hex characters.
    """

    __slots__ = ("_nbytes", "_pattern")

    def __init__(self, nbytes: int = DEFAULT_ID_BYTES) -> None:
        if nbytes < _MIN_ID_BYTES:
            raise ValueError(f"Session ids need at least {_MIN_ID_BYTES} random bytes, got {nbytes}")
        self._nbytes = nbytes
        self._pattern = re.compile(rf"[0-9a-fA-F]{{{2 * nbytes}}}")

    @property
    def length(self) -> int:
        """Length in characters of every id this generator produces."""
        return 2 * self._nbytes

    def generate(self) -> str:
        """Return a new session id."""
        return secrets.token_hex(self._nbytes)

    def is_well_formed(self, value: str | None) -> bool:
        """Return ``True`` if *value* has the shape of an id from this generator."""
        return value is not None and self._pattern.fullmatch(value) is not None

    def require_well_formed(self, value: str | None) -> str:
        """Return *value* unchanged or raise :class:`MalformedIdentifierException`."""
        if value is None or not self.is_well_formed(value):
            raise MalformedIdentifierException(
                "Session id does not match the expected format",
                code="SESSION_MALFORMED_ID",
                context={"expected_length": self.length},
            )
        return value
