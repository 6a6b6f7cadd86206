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
"""Exception hierarchy for FlySession.

All session errors inherit from FlySessionException so that callers can
catch one type at the edge of their request pipeline.

Categories:
- BusinessException: bad input the session layer recovers from or rejects
  at construction time (malformed ids, bad connection descriptors, payloads
  that cannot be decoded)
- InfrastructureException: failures talking to the backing store
"""

from __future__ import annotations


class FlySessionException(Exception):
    """Base exception for all FlySession errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_BACKEND").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# ---------------------------------------------------------------------------
# Business
# ---------------------------------------------------------------------------


class BusinessException(FlySessionException):
    """Invalid input handed to the session layer."""


class MalformedIdentifierException(BusinessException):
    """An inbound session id does not have the shape this system issues."""


class InvalidConnectionDescriptorException(BusinessException):
    """A Redis connection descriptor could not be parsed."""


class SessionSerializationException(BusinessException):
    """A session payload could not be encoded or decoded."""


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class InfrastructureException(FlySessionException):
    """Infrastructure failures: store connections, timeouts, protocol errors."""


class BackendUnavailableException(InfrastructureException):
    """The session store could not be reached or did not answer in time.

    Always propagated to the caller; a commit that raises this did not
    happen and no session cookie is emitted for it.
    """
