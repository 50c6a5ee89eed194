"""Nearest-neighbour index over a collection's vectors.

``HNSWIndex`` keeps a hierarchical navigable small-world graph (Malkov &
Yashunin) once the collection outgrows ``exact_threshold``. Collections at or
below that size are scanned exhaustively, so their results are exact.

The index is not thread-safe; ``VectorRecordStore`` serialises access to it.
"""

from __future__ import annotations

import heapq
import logging
import math
import random
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import numpy as np

from vectorsearch.core.cancellation import CancellationToken, check
from vectorsearch.core.distance import Vector, get_distance_function
from vectorsearch.core.errors import DuplicateId, InvalidRecord, NotFound

if TYPE_CHECKING:
    from vectorsearch.core.config import IndexConfig
    from vectorsearch.core.models import VectorRecord

logger = logging.getLogger(__name__)

# Distance evaluations between cancellation checks.
_CANCEL_CHECK_INTERVAL = 256


class HNSWIndex:
    """Approximate k-NN index with an exact path for small collections.

    Example:
        index = HNSWIndex(metric="cosine", exact_threshold=1000)
        index.insert("a", [1.0, 0.0, 0.0])
        index.insert("b", [0.0, 1.0, 0.0])
        index.query([1.0, 0.1, 0.0], k=1)  # [("a", 0.005)]
    """

    def __init__(
        self,
        metric: str = "cosine",
        m: int = 16,
        ef_construction: int = 100,
        ef_search: int = 64,
        exact_threshold: int = 1000,
        seed: int | None = None,
    ) -> None:
        if m < 2:
            raise ValueError(f"m must be >= 2, got {m}")
        self.metric = metric
        self.m = m
        self.m_max0 = 2 * m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.exact_threshold = exact_threshold
        self.seed = seed
        self._distance = get_distance_function(metric)
        self._level_mult = 1.0 / math.log(m)
        self._rng = random.Random(seed)

        self._vectors: dict[str, np.ndarray] = {}
        self._levels: dict[str, int] = {}
        self._links: dict[str, list[set[str]]] = {}
        self._entry: str | None = None
        self._max_level = -1
        self._graph_active = False

    @classmethod
    def from_config(cls, config: "IndexConfig", metric: str) -> "HNSWIndex":
        return cls(
            metric=metric,
            m=config.m,
            ef_construction=config.ef_construction,
            ef_search=config.ef_search,
            exact_threshold=config.exact_threshold,
            seed=config.seed,
        )

    def spawn(self) -> "HNSWIndex":
        """Return an empty index with the same parameters."""
        return HNSWIndex(
            metric=self.metric,
            m=self.m,
            ef_construction=self.ef_construction,
            ef_search=self.ef_search,
            exact_threshold=self.exact_threshold,
            seed=self.seed,
        )

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._vectors

    def ids(self) -> Iterator[str]:
        yield from list(self._vectors)

    @property
    def graph_active(self) -> bool:
        """Whether queries currently go through the HNSW graph."""
        return self._graph_active

    # -- mutations -------------------------------------------------------

    def insert(self, record_id: str, vector: Vector) -> None:
        if record_id in self._vectors:
            raise DuplicateId(record_id)
        self._vectors[record_id] = _to_array(vector)
        if self._graph_active:
            self._link(record_id)
        elif len(self._vectors) > self.exact_threshold:
            self._build_graph()

    def update(self, record_id: str, vector: Vector) -> None:
        if record_id not in self._vectors:
            raise NotFound([record_id])
        array = _to_array(vector)
        if self._graph_active:
            self._unlink(record_id)
            self._vectors[record_id] = array
            self._link(record_id)
        else:
            self._vectors[record_id] = array

    def delete(self, record_id: str) -> None:
        if record_id not in self._vectors:
            raise NotFound([record_id])
        if self._graph_active:
            self._unlink(record_id)
        del self._vectors[record_id]
        if self._graph_active and len(self._vectors) <= self.exact_threshold // 2:
            self._drop_graph()

    def rebuild_from(
        self,
        records: Iterable["VectorRecord"],
        cancel: CancellationToken | None = None,
    ) -> None:
        """Reconstruct the index from scratch.

        The new structure is built separately and adopted only once complete,
        so a cancelled or failed rebuild leaves the current state untouched.
        """
        fresh = self.spawn()
        for position, record in enumerate(records):
            if position % _CANCEL_CHECK_INTERVAL == 0:
                check(cancel)
            if record.id in fresh._vectors:
                raise DuplicateId(record.id)
            fresh._vectors[record.id] = _to_array(record.vector)
        if len(fresh._vectors) > fresh.exact_threshold:
            fresh._build_graph(cancel)

        self._vectors = fresh._vectors
        self._levels = fresh._levels
        self._links = fresh._links
        self._entry = fresh._entry
        self._max_level = fresh._max_level
        self._graph_active = fresh._graph_active
        self._rng = fresh._rng
        logger.debug("Rebuilt %s index with %d vectors", self.metric, len(self._vectors))

    # -- queries ---------------------------------------------------------

    def query(
        self,
        vector: Vector,
        k: int,
        cancel: CancellationToken | None = None,
    ) -> list[tuple[str, float]]:
        """Return up to k ``(id, distance)`` pairs, closest first.

        Ties are broken by ascending id.
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        if not self._vectors:
            return []
        query = _to_array(vector)
        if not self._graph_active or len(self._vectors) <= self.exact_threshold:
            return self._exact_query(query, k, cancel)
        return self._graph_query(query, k, cancel)

    def _exact_query(
        self, query: np.ndarray, k: int, cancel: CancellationToken | None
    ) -> list[tuple[str, float]]:
        scored: list[tuple[float, str]] = []
        for position, (record_id, vector) in enumerate(self._vectors.items()):
            if position % _CANCEL_CHECK_INTERVAL == 0:
                check(cancel)
            scored.append((self._distance(query, vector), record_id))
        return [(record_id, distance) for distance, record_id in heapq.nsmallest(k, scored)]

    def _graph_query(
        self, query: np.ndarray, k: int, cancel: CancellationToken | None
    ) -> list[tuple[str, float]]:
        assert self._entry is not None
        entry = self._entry
        for layer in range(self._max_level, 0, -1):
            entry = self._search_layer(query, [entry], 1, layer, cancel)[0][1]
        found = self._search_layer(query, [entry], max(self.ef_search, k), 0, cancel)
        return [(record_id, distance) for distance, record_id in found[:k]]

    # -- graph internals -------------------------------------------------

    def _random_level(self) -> int:
        return int(-math.log(1.0 - self._rng.random()) * self._level_mult)

    def _cap(self, layer: int) -> int:
        return self.m_max0 if layer == 0 else self.m

    def _search_layer(
        self,
        query: np.ndarray,
        entry_points: list[str],
        ef: int,
        layer: int,
        cancel: CancellationToken | None = None,
    ) -> list[tuple[float, str]]:
        """Best-first search of one layer; returns ``(distance, id)`` ascending."""
        visited = set(entry_points)
        candidates: list[tuple[float, str]] = []
        best: list[tuple[float, str]] = []  # max-heap on distance via negation
        for point in entry_points:
            distance = self._distance(query, self._vectors[point])
            heapq.heappush(candidates, (distance, point))
            heapq.heappush(best, (-distance, point))
        while len(best) > ef:
            heapq.heappop(best)

        evaluations = 0
        while candidates:
            distance, current = heapq.heappop(candidates)
            if len(best) >= ef and distance > -best[0][0]:
                break
            for neighbour in self._links[current][layer]:
                if neighbour in visited:
                    continue
                visited.add(neighbour)
                evaluations += 1
                if evaluations % _CANCEL_CHECK_INTERVAL == 0:
                    check(cancel)
                neighbour_distance = self._distance(query, self._vectors[neighbour])
                if len(best) < ef or neighbour_distance < -best[0][0]:
                    heapq.heappush(candidates, (neighbour_distance, neighbour))
                    heapq.heappush(best, (-neighbour_distance, neighbour))
                    if len(best) > ef:
                        heapq.heappop(best)
        return sorted((-negated, point) for negated, point in best)

    def _link(self, record_id: str, cancel: CancellationToken | None = None) -> None:
        level = self._random_level()
        self._levels[record_id] = level
        self._links[record_id] = [set() for _ in range(level + 1)]

        if self._entry is None:
            self._entry = record_id
            self._max_level = level
            return

        query = self._vectors[record_id]
        entry = self._entry
        for layer in range(self._max_level, level, -1):
            entry = self._search_layer(query, [entry], 1, layer, cancel)[0][1]

        entry_points = [entry]
        for layer in range(min(level, self._max_level), -1, -1):
            found = self._search_layer(
                query, entry_points, self.ef_construction, layer, cancel
            )
            for _, neighbour in found[: self.m]:
                self._connect(record_id, neighbour, layer)
            entry_points = [point for _, point in found]

        if level > self._max_level:
            self._entry = record_id
            self._max_level = level

    def _connect(self, a: str, b: str, layer: int) -> None:
        self._links[a][layer].add(b)
        self._links[b][layer].add(a)
        self._shrink(a, layer)
        self._shrink(b, layer)

    def _shrink(self, node: str, layer: int) -> None:
        """Keep only the closest neighbours of node; links stay symmetric."""
        links = self._links[node][layer]
        cap = self._cap(layer)
        if len(links) <= cap:
            return
        origin = self._vectors[node]
        ranked = sorted(
            (self._distance(origin, self._vectors[other]), other) for other in links
        )
        for _, dropped in ranked[cap:]:
            links.discard(dropped)
            self._links[dropped][layer].discard(node)

    def _unlink(self, record_id: str) -> None:
        """Remove a node from the graph and reconnect its former neighbours."""
        layers = self._links.pop(record_id)
        del self._levels[record_id]

        for layer, former in enumerate(layers):
            for neighbour in former:
                self._links[neighbour][layer].discard(record_id)
            for neighbour in former:
                origin = self._vectors[neighbour]
                options = sorted(
                    (self._distance(origin, self._vectors[other]), other)
                    for other in former
                    if other != neighbour and other not in self._links[neighbour][layer]
                )
                for _, other in options:
                    if len(self._links[neighbour][layer]) >= self.m:
                        break
                    self._connect(neighbour, other, layer)

        if self._entry == record_id:
            if self._levels:
                self._entry = max(self._levels, key=lambda point: (self._levels[point], point))
                self._max_level = self._levels[self._entry]
            else:
                self._entry = None
                self._max_level = -1

    def _build_graph(self, cancel: CancellationToken | None = None) -> None:
        self._levels = {}
        self._links = {}
        self._entry = None
        self._max_level = -1
        for record_id in self._vectors:
            self._link(record_id, cancel)
        self._graph_active = True
        logger.debug("Built HNSW graph over %d vectors", len(self._vectors))

    def _drop_graph(self) -> None:
        self._levels = {}
        self._links = {}
        self._entry = None
        self._max_level = -1
        self._graph_active = False
        logger.debug("Dropped HNSW graph at %d vectors", len(self._vectors))


def _to_array(vector: Vector) -> np.ndarray:
    array = np.array(vector, dtype=np.float64)
    if array.ndim != 1 or array.size == 0:
        raise InvalidRecord("vector must be a non-empty one-dimensional sequence")
    return array
