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
"""Shared fixtures for session tests: a steppable clock and a FakeRedis stub."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from flysession.session.adapters.memory import InMemorySessionStore
from flysession.session.adapters.redis import RedisSessionStore
from flysession.session.connection import RedisEndpoint


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """Queues commands and replays them against FakeRedis on ``execute()``."""

    def __init__(self, redis: FakeRedis, transaction: bool) -> None:
        self._redis = redis
        self._transaction = transaction
        self._queued: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._queued.clear()

    def _queue(self, name: str, *args: Any, **kwargs: Any) -> FakePipeline:
        self._queued.append((name, args, kwargs))
        return self

    def set(self, key: str, value: bytes, ex: int | None = None) -> FakePipeline:
        return self._queue("set", key, value, ex=ex)

    def delete(self, *keys: str) -> FakePipeline:
        return self._queue("delete", *keys)

    def persist(self, key: str) -> FakePipeline:
        return self._queue("persist", key)

    def exists(self, *keys: str) -> FakePipeline:
        return self._queue("exists", *keys)

    async def execute(self) -> list[Any]:
        self._redis.record("exec")
        if self._transaction:
            self._redis.transactions += 1
        results = []
        for name, args, kwargs in self._queued:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._queued.clear()
        return results


class FakeRedis:
    """Minimal in-memory stub matching the redis.asyncio.Redis interface.

    Honors ``ex`` expiry against a :class:`FakeClock`. Commands named in
    ``fail_on`` raise ``fail_with`` instead of running.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self._store: dict[str, tuple[bytes, float | None]] = {}
        self.calls: list[str] = []
        self.transactions = 0
        self.fail_on: set[str] = set()
        self.fail_with: Exception | None = None
        self.closed = False

    def record(self, command: str) -> None:
        self.calls.append(command)
        if self.fail_with is not None and command in self.fail_on:
            raise self.fail_with

    def _live(self, key: str) -> bytes | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def get(self, key: str) -> bytes | None:
        self.record("get")
        return self._live(key)

    async def set(self, key: str, value: bytes | str, ex: int | None = None) -> bool:
        self.record("set")
        raw = value.encode() if isinstance(value, str) else value
        self._store[key] = (raw, None if ex is None else self.clock() + ex)
        return True

    async def delete(self, *keys: str) -> int:
        self.record("delete")
        count = 0
        for k in keys:
            if self._live(k) is not None:
                del self._store[k]
                count += 1
        return count

    async def exists(self, *keys: str) -> int:
        self.record("exists")
        return sum(1 for k in keys if self._live(k) is not None)

    async def expire(self, key: str, seconds: int) -> bool:
        self.record("expire")
        raw = self._live(key)
        if raw is None:
            return False
        self._store[key] = (raw, self.clock() + seconds)
        return True

    async def persist(self, key: str) -> bool:
        self.record("persist")
        raw = self._live(key)
        if raw is None or self._store[key][1] is None:
            return False
        self._store[key] = (raw, None)
        return True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    async def aclose(self) -> None:
        self.closed = True

    # -- test helpers -----------------------------------------------------

    def keys(self) -> list[str]:
        return [k for k in list(self._store) if self._live(k) is not None]

    def raw(self, key: str) -> bytes | None:
        return self._live(key)

    def expires_in(self, key: str) -> float | None:
        entry = self._store.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self.clock()

    def put_raw(self, key: str, value: bytes) -> None:
        self._store[key] = (value, None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def endpoint() -> RedisEndpoint:
    return RedisEndpoint(host="localhost", port=6379, db=0, namespace="test:session")


@pytest.fixture
def redis_store(fake_redis: FakeRedis, endpoint: RedisEndpoint) -> RedisSessionStore:
    return RedisSessionStore(fake_redis, endpoint)


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemorySessionStore:
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def make_redis(clock: FakeClock) -> Callable[[], FakeRedis]:
    """Factory for extra FakeRedis nodes sharing the test clock."""
    return lambda: FakeRedis(clock)
