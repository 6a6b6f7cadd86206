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
"""SessionLifecycleManager — loads a session at request start, commits it at request end.

The commit decision, in order of precedence:

====================  =============================  ==================
options               store                          ``Set-Cookie``
====================  =============================  ==================
``drop``              delete the record              none
``renew``             move data to a new id          new id
``defer``             untouched                      none
(none)                save with ``expire_after``     current id
====================  =============================  ==================

A brand-new session whose bag is still empty is not written and gets no
cookie, so anonymous traffic does not fill the store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import timedelta

import structlog

from flysession.session.identifier import IdentifierGenerator
from flysession.session.options import RequestOptions
from flysession.session.ports.outbound import SessionStore
from flysession.session.session import SessionEnvelope

logger = structlog.get_logger("flysession.session")


def _fingerprint(session_id: str) -> str:
    """Short prefix of a session id, safe to put in logs."""
    return session_id[:8]


class CommitAction(str, enum.Enum):
    """What a commit did to the store."""

    SAVED = "saved"
    RENEWED = "renewed"
    DROPPED = "dropped"
    DEFERRED = "deferred"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CommitResult:
    """Outcome of :meth:`SessionLifecycleManager.commit`.

    Attributes:
        action: What happened to the stored record.
        session_id: The id the session ended up under.
        cookie_id: The id to send in ``Set-Cookie``, or ``None`` for no cookie.
    """

    action: CommitAction
    session_id: str
    cookie_id: str | None = None


class SessionLifecycleManager:
    """Drives one session through load, application, and commit.

    Holds no per-request state; the envelope returned by :meth:`load`
    belongs to the caller's request alone. Store errors are never caught
    here, so a failed commit never produces a cookie.

    Args:
        store: Where session data lives between requests.
        expire_after: TTL applied on every write; ``None`` keeps records
            until they are dropped.
        generator: Source of new session ids.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        expire_after: timedelta | None = None,
        generator: IdentifierGenerator | None = None,
    ) -> None:
        if expire_after is not None and expire_after <= timedelta(0):
            raise ValueError("expire_after must be positive")
        self._store = store
        self._expire_after = expire_after
        self._generator = generator or IdentifierGenerator()

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def expire_after(self) -> timedelta | None:
        return self._expire_after

    async def load(self, candidate_id: str | None) -> SessionEnvelope:
        """Return the stored session for *candidate_id*, or a fresh one.

        Malformed ids never reach the store. A well-formed id with no live
        record (never issued, dropped, or expired) is not reused: the
        caller gets an empty session under a newly generated id.
        """
        if candidate_id is not None and not self._generator.is_well_formed(candidate_id):
            logger.debug("session_id_malformed", length=len(candidate_id))
            candidate_id = None

        if candidate_id is not None:
            data = await self._store.load(candidate_id)
            if data is not None:
                return SessionEnvelope(candidate_id, data)
            logger.debug("session_not_found", session=_fingerprint(candidate_id))

        return SessionEnvelope(self._generator.generate(), is_new=True)

    async def commit(self, envelope: SessionEnvelope, options: RequestOptions | None = None) -> CommitResult:
        """Persist, renew, drop, or skip *envelope* according to *options*."""
        options = options or RequestOptions()

        if options.drop:
            await self._store.delete(envelope.id)
            result = CommitResult(CommitAction.DROPPED, envelope.id)
        elif options.renew:
            old_id = envelope.id
            new_id = self._generator.generate()
            await self._store.rotate(old_id, new_id, envelope.data, self._expire_after)
            envelope.reassign(new_id)
            result = CommitResult(CommitAction.RENEWED, new_id, cookie_id=new_id)
        elif options.defer:
            result = CommitResult(CommitAction.DEFERRED, envelope.id)
        elif envelope.is_new and not envelope.data:
            result = CommitResult(CommitAction.SKIPPED, envelope.id)
        else:
            await self._store.save(envelope.id, envelope.data, self._expire_after)
            result = CommitResult(CommitAction.SAVED, envelope.id, cookie_id=envelope.id)

        logger.debug(
            "session_committed",
            action=result.action.value,
            session=_fingerprint(result.session_id),
            is_new=envelope.is_new,
            modified=envelope.modified,
        )
        return result
