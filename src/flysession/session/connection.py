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
"""Redis connection descriptors and topology resolution.

A descriptor names one or more Redis endpoints. Accepted shapes::

    "localhost:6380/1/theplaylist"        # host:port/db/namespace
    "redis://:secret@cache:6379/2/app"    # URL form, rediss:// for TLS
    {"host": "cache", "port": 6379, "db": 2, "namespace": "app"}
    ["cache-a:6379", "cache-b:6379"]      # two or more -> distributed

:func:`resolve_topology` turns a descriptor into exactly one of
:class:`DirectTopology` or :class:`DistributedTopology`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import unquote, urlsplit

from flysession.kernel.exceptions import InvalidConnectionDescriptorException

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379
DEFAULT_DB = 0
DEFAULT_NAMESPACE = "flysession:session"

EndpointInput = Union[str, Mapping[str, Any]]
ConnectionDescriptor = Union[EndpointInput, Sequence[EndpointInput]]


@dataclass(frozen=True)
class RedisEndpoint:
    """One Redis server plus the database and key namespace to use on it."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db: int = DEFAULT_DB
    namespace: str = DEFAULT_NAMESPACE
    password: str | None = None
    ssl: bool = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def node_id(self) -> str:
        """Stable name of this endpoint on a hash ring."""
        return f"{self.host}:{self.port}/{self.db}"

    def key_for(self, session_id: str) -> str:
        """Return the Redis key a session id is stored under."""
        return f"{self.namespace}:{session_id}" if self.namespace else session_id

    def __str__(self) -> str:
        return f"{self.address} against DB {self.db} with namespace {self.namespace}"


@dataclass(frozen=True)
class DirectTopology:
    """All sessions live on a single endpoint."""

    endpoint: RedisEndpoint


@dataclass(frozen=True)
class DistributedTopology:
    """Sessions are spread over several endpoints by consistent hashing."""

    endpoints: tuple[RedisEndpoint, ...]


Topology = Union[DirectTopology, DistributedTopology]


def resolve_topology(descriptor: ConnectionDescriptor | None) -> Topology:
    """Resolve *descriptor* into a direct or distributed topology.

    ``None`` selects a direct topology against the default endpoint.

    Raises:
        InvalidConnectionDescriptorException: if the descriptor is empty,
            malformed, or names the same endpoint twice.
    """
    if descriptor is None:
        return DirectTopology(RedisEndpoint())

    if isinstance(descriptor, (str, Mapping)):
        return DirectTopology(parse_endpoint(descriptor))

    endpoints = tuple(parse_endpoint(entry) for entry in descriptor)
    if not endpoints:
        raise InvalidConnectionDescriptorException(
            "Connection descriptor names no endpoints",
            code="SESSION_DESCRIPTOR",
        )
    if len(endpoints) == 1:
        return DirectTopology(endpoints[0])

    node_ids = [e.node_id for e in endpoints]
    duplicates = sorted({n for n in node_ids if node_ids.count(n) > 1})
    if duplicates:
        raise InvalidConnectionDescriptorException(
            f"Connection descriptor repeats endpoints: {', '.join(duplicates)}",
            code="SESSION_DESCRIPTOR",
            context={"duplicates": duplicates},
        )
    return DistributedTopology(endpoints)


def parse_endpoint(entry: EndpointInput) -> RedisEndpoint:
    """Parse a single endpoint given as a string or a mapping."""
    if isinstance(entry, Mapping):
        return _endpoint_from_mapping(entry)
    if not isinstance(entry, str) or not entry.strip():
        raise InvalidConnectionDescriptorException(
            f"Invalid Redis endpoint: {entry!r}",
            code="SESSION_DESCRIPTOR",
        )
    entry = entry.strip()
    if "://" in entry:
        return _endpoint_from_url(entry)
    return _endpoint_from_compact(entry)


def _endpoint_from_mapping(entry: Mapping[str, Any]) -> RedisEndpoint:
    return RedisEndpoint(
        host=str(entry.get("host") or DEFAULT_HOST),
        port=_to_int(entry.get("port", DEFAULT_PORT), "port", entry),
        db=_to_int(entry.get("db", DEFAULT_DB), "db", entry),
        namespace=str(entry.get("namespace") or DEFAULT_NAMESPACE),
        password=entry.get("password"),
        ssl=bool(entry.get("ssl", False)),
    )


def _endpoint_from_url(entry: str) -> RedisEndpoint:
    parts = urlsplit(entry)
    if parts.scheme not in ("redis", "rediss"):
        raise InvalidConnectionDescriptorException(
            f"Unsupported Redis URL scheme '{parts.scheme}' in {entry!r}",
            code="SESSION_DESCRIPTOR",
        )
    try:
        port = parts.port or DEFAULT_PORT
    except ValueError as exc:
        raise InvalidConnectionDescriptorException(
            f"Invalid port in Redis URL {entry!r}",
            code="SESSION_DESCRIPTOR",
        ) from exc
    db, namespace = _split_path(parts.path.lstrip("/"), entry)
    return RedisEndpoint(
        host=parts.hostname or DEFAULT_HOST,
        port=port,
        db=db,
        namespace=namespace,
        password=unquote(parts.password) if parts.password else None,
        ssl=parts.scheme == "rediss",
    )


def _endpoint_from_compact(entry: str) -> RedisEndpoint:
    address, _, path = entry.partition("/")
    host, sep, port_text = address.rpartition(":")
    if not sep:
        host, port_text = address, ""
    port = _to_int(port_text, "port", entry) if port_text else DEFAULT_PORT
    db, namespace = _split_path(path, entry)
    return RedisEndpoint(host=host or DEFAULT_HOST, port=port, db=db, namespace=namespace)


def _split_path(path: str, entry: object) -> tuple[int, str]:
    db_text, _, namespace = path.partition("/")
    db = _to_int(db_text, "db", entry) if db_text else DEFAULT_DB
    return db, namespace or DEFAULT_NAMESPACE


def _to_int(value: Any, field: str, entry: object) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConnectionDescriptorException(
            f"Invalid {field} {value!r} in Redis endpoint {entry!r}",
            code="SESSION_DESCRIPTOR",
            context={"field": field},
        ) from exc
    if number < 0:
        raise InvalidConnectionDescriptorException(
            f"Negative {field} {number} in Redis endpoint {entry!r}",
            code="SESSION_DESCRIPTOR",
            context={"field": field},
        )
    return number
