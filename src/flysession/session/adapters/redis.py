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
"""Redis-backed session stores: direct (one endpoint) and distributed (hash ring)."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from datetime import timedelta
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from flysession.kernel.exceptions import BackendUnavailableException, SessionSerializationException
from flysession.session.connection import (
    ConnectionDescriptor,
    DirectTopology,
    RedisEndpoint,
    resolve_topology,
)
from flysession.session.ring import ConsistentHashRing
from flysession.session.serializer import JsonSessionSerializer, SessionSerializer

_logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 5.0


def _ttl_seconds(ttl: timedelta | None) -> int | None:
    """Whole seconds for ``SET ... EX``; Redis rejects zero so round up to one."""
    if ttl is None:
        return None
    return max(1, math.ceil(ttl.total_seconds()))


@contextmanager
def _backend_call(operation: str, endpoint: RedisEndpoint) -> Iterator[None]:
    """Re-raise transport failures as :class:`BackendUnavailableException`."""
    try:
        yield
    except (RedisError, OSError, asyncio.TimeoutError) as exc:
        _logger.warning("Redis %s failed against %s: %s", operation, endpoint.address, exc)
        raise BackendUnavailableException(
            f"Session store {operation} failed against {endpoint.address}: {exc}",
            code="SESSION_BACKEND",
            context={"operation": operation, "endpoint": endpoint.address},
        ) from exc


class RedisSessionStore:
    """Session store on a single ``redis.asyncio.Redis`` client.

    Keys are ``{namespace}:{session_id}``. Renewal runs DEL+SET in one
    ``MULTI/EXEC`` transaction, so a racing reader sees either the old id or
    the new one, never both or neither.
    """

    def __init__(
        self,
        client: Any,
        endpoint: RedisEndpoint | None = None,
        serializer: SessionSerializer | None = None,
    ) -> None:
        self._client = client
        self._endpoint = endpoint or RedisEndpoint()
        self._serializer = serializer or JsonSessionSerializer()

    @property
    def endpoint(self) -> RedisEndpoint:
        return self._endpoint

    def _key(self, session_id: str) -> str:
        return self._endpoint.key_for(session_id)

    async def load(self, session_id: str) -> dict[str, Any] | None:
        with _backend_call("GET", self._endpoint):
            raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            return self._serializer.loads(raw)
        except SessionSerializationException:
            _logger.warning("Failed to deserialize session %s...", session_id[:8])
            return None

    async def save(self, session_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        raw = self._serializer.dumps(data)
        with _backend_call("SET", self._endpoint):
            await self._client.set(self._key(session_id), raw, ex=_ttl_seconds(ttl))

    async def delete(self, session_id: str) -> None:
        with _backend_call("DEL", self._endpoint):
            await self._client.delete(self._key(session_id))

    async def touch(self, session_id: str, ttl: timedelta | None) -> bool:
        key = self._key(session_id)
        seconds = _ttl_seconds(ttl)
        with _backend_call("EXPIRE" if seconds is not None else "PERSIST", self._endpoint):
            if seconds is not None:
                return bool(await self._client.expire(key, seconds))
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.persist(key)
                pipe.exists(key)
                _, count = await pipe.execute()
            return bool(count)

    async def rotate(self, old_id: str, new_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        raw = self._serializer.dumps(data)
        with _backend_call("MULTI", self._endpoint):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(old_id))
                pipe.set(self._key(new_id), raw, ex=_ttl_seconds(ttl))
                await pipe.execute()

    async def close(self) -> None:
        with _backend_call("CLOSE", self._endpoint):
            await self._client.aclose()

    def __str__(self) -> str:
        return f"Redis Client connected to {self._endpoint}"


class DistributedRedisSessionStore:
    """Session store sharded over several endpoints by consistent hashing.

    Each session id is routed to one node; every operation on that id talks
    to that node only. Renewal to an id on another node writes the new
    record first and then deletes the old one. Those are two round trips:
    a request racing the renewal can still read the old record until the
    delete lands. If the delete fails, the new record is removed again
    (best effort) before the error propagates.
    """

    def __init__(self, nodes: Mapping[str, RedisSessionStore]) -> None:
        if len(nodes) < 2:
            raise ValueError("A distributed session store needs at least two nodes")
        self._nodes = dict(nodes)
        self._ring = ConsistentHashRing(self._nodes)

    @property
    def nodes(self) -> dict[str, RedisSessionStore]:
        return dict(self._nodes)

    def node_for(self, session_id: str) -> RedisSessionStore:
        """Return the node store that owns *session_id*."""
        return self._nodes[self._ring.get_node(session_id)]

    async def load(self, session_id: str) -> dict[str, Any] | None:
        return await self.node_for(session_id).load(session_id)

    async def save(self, session_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        await self.node_for(session_id).save(session_id, data, ttl)

    async def delete(self, session_id: str) -> None:
        await self.node_for(session_id).delete(session_id)

    async def touch(self, session_id: str, ttl: timedelta | None) -> bool:
        return await self.node_for(session_id).touch(session_id, ttl)

    async def rotate(self, old_id: str, new_id: str, data: dict[str, Any], ttl: timedelta | None) -> None:
        old_node = self.node_for(old_id)
        new_node = self.node_for(new_id)
        if old_node is new_node:
            await old_node.rotate(old_id, new_id, data, ttl)
            return
        await new_node.save(new_id, data, ttl)
        try:
            await old_node.delete(old_id)
        except BackendUnavailableException:
            # the caller keeps the old cookie, so the new record would be orphaned
            with suppress(BackendUnavailableException):
                await new_node.delete(new_id)
            raise

    async def close(self) -> None:
        results = await asyncio.gather(
            *(node.close() for node in self._nodes.values()),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    def __str__(self) -> str:
        addresses = ", ".join(node.endpoint.address for node in self._nodes.values())
        return f"Redis Distributed Store over {addresses}"


def _client_for(endpoint: RedisEndpoint, socket_timeout: float) -> Any:
    return aioredis.Redis(
        host=endpoint.host,
        port=endpoint.port,
        db=endpoint.db,
        password=endpoint.password,
        ssl=endpoint.ssl,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


def create_session_store(
    descriptor: ConnectionDescriptor | None = None,
    *,
    socket_timeout: float = DEFAULT_SOCKET_TIMEOUT,
    serializer: SessionSerializer | None = None,
) -> RedisSessionStore | DistributedRedisSessionStore:
    """Build a Redis session store for *descriptor*.

    One endpoint gives a :class:`RedisSessionStore`; two or more give a
    :class:`DistributedRedisSessionStore`. No connection is opened until
    the first command.
    """
    topology = resolve_topology(descriptor)
    if isinstance(topology, DirectTopology):
        endpoint = topology.endpoint
        return RedisSessionStore(_client_for(endpoint, socket_timeout), endpoint, serializer)

    nodes = {
        endpoint.node_id: RedisSessionStore(_client_for(endpoint, socket_timeout), endpoint, serializer)
        for endpoint in topology.endpoints
    }
    return DistributedRedisSessionStore(nodes)
