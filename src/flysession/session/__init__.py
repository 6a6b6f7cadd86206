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
"""FlySession Session — cookie-backed server-side sessions with Redis storage.

Typical wiring::

    from flysession.session.adapters.redis import create_session_store

    store = create_session_store("localhost:6379/0/myapp:session")
    manager = SessionLifecycleManager(store, expire_after=timedelta(hours=1))
    app = Starlette(
        routes=routes,
        middleware=[Middleware(WebFilterChainMiddleware, filters=[SessionFilter(manager)])],
    )
"""

from flysession.session.cookie import CookieCodec
from flysession.session.filter import SessionFilter
from flysession.session.identifier import IdentifierGenerator
from flysession.session.manager import CommitAction, CommitResult, SessionLifecycleManager
from flysession.session.options import (
    RequestOptions,
    defer_session,
    drop_session,
    get_request_options,
    renew_session,
)
from flysession.session.ports.outbound import SessionStore
from flysession.session.session import SessionEnvelope

__all__ = [
    "CommitAction",
    "CommitResult",
    "CookieCodec",
    "IdentifierGenerator",
    "RequestOptions",
    "SessionEnvelope",
    "SessionFilter",
    "SessionLifecycleManager",
    "SessionStore",
    "defer_session",
    "drop_session",
    "get_request_options",
    "renew_session",
]
