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
"""OncePerRequestFilter — WebFilter base class with path include/exclude globs."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from fnmatch import fnmatch
from typing import Any

from flysession.web.ports.filter import CallNext


class OncePerRequestFilter(abc.ABC):
    """Base class for filters that only apply to some request paths.

    Patterns can be given per instance or as class attributes. An empty
    ``url_patterns`` means every path; ``exclude_patterns`` are checked after
    the include patterns (e.g. keep sessions off ``/health``).
    """

    url_patterns: Sequence[str] = ()
    exclude_patterns: Sequence[str] = ()

    def __init__(
        self,
        *,
        url_patterns: Sequence[str] | None = None,
        exclude_patterns: Sequence[str] | None = None,
    ) -> None:
        if url_patterns is not None:
            self.url_patterns = tuple(url_patterns)
        if exclude_patterns is not None:
            self.exclude_patterns = tuple(exclude_patterns)

    def should_not_filter(self, request: Any) -> bool:
        """Return ``True`` if the request path falls outside this filter's patterns."""
        path: str = request.url.path

        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True

        return any(fnmatch(path, p) for p in self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Run the filter. Implementations must ``await call_next(request)`` to proceed."""
        ...
