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
"""Per-request session options and the helpers handlers use to set them."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

SESSION_STATE_ATTR = "session"
OPTIONS_STATE_ATTR = "session_options"


@dataclass(frozen=True)
class RequestOptions:
    """How the current request's session is committed.

    When several flags are set, ``drop`` wins over ``renew`` and ``renew``
    wins over ``defer``.

    Attributes:
        renew: Move the session to a freshly generated id.
        drop: Delete the session and send no cookie.
        defer: Neither write the session nor send a cookie for this request.
    """

    renew: bool = False
    drop: bool = False
    defer: bool = False

    def merge(self, **flags: bool) -> RequestOptions:
        """Return a copy with *flags* replaced."""
        return dataclasses.replace(self, **flags)

    @classmethod
    def from_mapping(cls, flags: Mapping[str, Any]) -> RequestOptions:
        """Build options from a plain ``{"renew": ..., "drop": ..., "defer": ...}`` mapping.

        Missing keys default to ``False``; values are read for truthiness.

        Raises:
            ValueError: if *flags* names an option that does not exist.
        """
        unknown = set(flags) - _FLAG_NAMES
        if unknown:
            raise ValueError(f"Unknown session options: {', '.join(sorted(unknown))}")
        return cls(**{name: bool(value) for name, value in flags.items()})


_FLAG_NAMES = frozenset(f.name for f in dataclasses.fields(RequestOptions))


def get_request_options(request: Any) -> RequestOptions:
    """Return the options currently attached to *request* (defaults if none).

    Handlers may also assign a plain mapping of flags to
    ``request.state.session_options``; it is read with
    :meth:`RequestOptions.from_mapping`.

    Raises:
        TypeError: if the attribute holds anything else.
    """
    options = getattr(request.state, OPTIONS_STATE_ATTR, None)
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    if isinstance(options, Mapping):
        return RequestOptions.from_mapping(options)
    raise TypeError(
        f"request.state.{OPTIONS_STATE_ATTR} must be RequestOptions or a mapping, not {type(options).__name__}"
    )


def _set_flag(request: Any, **flags: bool) -> RequestOptions:
    options = get_request_options(request).merge(**flags)
    setattr(request.state, OPTIONS_STATE_ATTR, options)
    return options


def renew_session(request: Any) -> RequestOptions:
    """Issue a new session id for this request's session when it is committed."""
    return _set_flag(request, renew=True)


def drop_session(request: Any) -> RequestOptions:
    """End this request's session: delete it and send no cookie."""
    return _set_flag(request, drop=True)


def defer_session(request: Any) -> RequestOptions:
    """Skip the store write and the cookie for this request only."""
    return _set_flag(request, defer=True)
