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
"""Consistent hash ring used to route session keys across Redis endpoints.

Each node is placed on a 32-bit ring at ``replicas`` virtual positions.
A key belongs to the first virtual node at or after its own hash, so
adding or removing one endpoint only moves the keys next to it.
"""

from __future__ import annotations

import bisect
import hashlib
from collections.abc import Iterable

DEFAULT_REPLICAS = 160


class ConsistentHashRing:
    """Maps string keys to node ids. Lookup is O(log n) via :mod:`bisect`.

    The ring is built once and only read afterwards, so lookups from
    concurrent requests need no locking.
    """

    __slots__ = ("_positions", "_owners", "_nodes", "_replicas")

    def __init__(self, nodes: Iterable[str] = (), replicas: int = DEFAULT_REPLICAS) -> None:
        if replicas < 1:
            raise ValueError("replicas must be at least 1")
        self._positions: list[int] = []
        self._owners: list[str] = []
        self._nodes: set[str] = set()
        self._replicas = replicas
        for node in nodes:
            self.add_node(node)

    @property
    def nodes(self) -> frozenset[str]:
        return frozenset(self._nodes)

    def add_node(self, node: str) -> int:
        """Place *node* on the ring. Returns the number of virtual nodes added."""
        if node in self._nodes:
            return 0
        self._nodes.add(node)
        for i in range(self._replicas):
            position = self._hash(f"{node}:{i}")
            idx = bisect.bisect_left(self._positions, position)
            self._positions.insert(idx, position)
            self._owners.insert(idx, node)
        return self._replicas

    def get_node(self, key: str) -> str:
        """Return the node responsible for *key*.

        Raises:
            LookupError: if the ring is empty.
        """
        if not self._positions:
            raise LookupError("Hash ring has no nodes")
        idx = bisect.bisect_left(self._positions, self._hash(key))
        if idx == len(self._positions):
            idx = 0
        return self._owners[idx]

    @staticmethod
    def _hash(key: str) -> int:
        digest = hashlib.md5(key.encode(), usedforsecurity=False).digest()
        return int.from_bytes(digest[:4], "big")
