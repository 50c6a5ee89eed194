"""Recall and latency benchmark for the HNSW index.

Generate vectors → build an index → compare graph results with exact search.
"""

import csv
import json
import random
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from vectorsearch.core.config import IndexConfig
from vectorsearch.core.index import HNSWIndex
from vectorsearch.core.models import VectorRecord


def generate_vectors(
    count: int, dimension: int, seed: int = 0, clusters: int = 0
) -> list[VectorRecord]:
    """Generate random records.

    Args:
        count: Number of records
        dimension: Vector dimension
        seed: Random seed
        clusters: Number of Gaussian clusters (0 for uniform vectors)

    Returns:
        Records with ids ``vec-00000`` upwards
    """
    rng = random.Random(seed)
    centres = [
        [rng.uniform(-1.0, 1.0) for _ in range(dimension)] for _ in range(clusters)
    ]
    records = []
    for i in range(count):
        if centres:
            centre = centres[i % len(centres)]
            vector = [c + rng.gauss(0.0, 0.1) for c in centre]
        else:
            vector = [rng.uniform(-1.0, 1.0) for _ in range(dimension)]
        records.append(VectorRecord(id=f"vec-{i:05d}", vector=vector))
    return records


def run_benchmark(
    count: int = 500,
    dimension: int = 16,
    num_queries: int = 20,
    k: int = 10,
    metric: str = "cosine",
    config: IndexConfig | None = None,
    seed: int = 0,
    quiet: bool = True,
) -> dict[str, Any]:
    """Measure recall@k of the graph path against exhaustive search.

    Returns:
        Result dict with recall, build time and per-query latencies
    """
    config = config or IndexConfig(m=12, ef_construction=64, ef_search=64, seed=seed)
    records = generate_vectors(count, dimension, seed=seed)
    queries = [r.vector for r in generate_vectors(num_queries, dimension, seed=seed + 1)]

    exact = HNSWIndex(metric=metric, exact_threshold=count)
    exact.rebuild_from(records)

    graph = HNSWIndex(
        metric=metric,
        m=config.m,
        ef_construction=config.ef_construction,
        ef_search=config.ef_search,
        exact_threshold=0,
        seed=config.seed,
    )
    start = time.perf_counter()
    graph.rebuild_from(records)
    build_seconds = time.perf_counter() - start

    hits = 0
    exact_ms = 0.0
    graph_ms = 0.0
    for i, query in enumerate(queries):
        start = time.perf_counter()
        truth = {record_id for record_id, _ in exact.query(query, k)}
        exact_ms += (time.perf_counter() - start) * 1000

        start = time.perf_counter()
        found = {record_id for record_id, _ in graph.query(query, k)}
        graph_ms += (time.perf_counter() - start) * 1000

        hits += len(truth & found)
        if not quiet:
            print(f"query {i + 1}/{len(queries)}: {len(truth & found)}/{k}")

    return {
        "timestamp": datetime.now().isoformat(),
        "metric": metric,
        "count": count,
        "dimension": dimension,
        "num_queries": len(queries),
        "k": k,
        "m": config.m,
        "ef_construction": config.ef_construction,
        "ef_search": config.ef_search,
        "recall": hits / (len(queries) * k) if queries else 0.0,
        "build_seconds": build_seconds,
        "avg_exact_ms": exact_ms / len(queries) if queries else 0.0,
        "avg_graph_ms": graph_ms / len(queries) if queries else 0.0,
    }


def print_result(result: dict[str, Any]) -> None:
    print(f"Metric:          {result['metric']}")
    print(f"Vectors:         {result['count']} x {result['dimension']}")
    print(f"Queries:         {result['num_queries']} (k={result['k']})")
    print(f"Recall@k:        {result['recall']:.3f}")
    print(f"Build time:      {result['build_seconds']:.2f}s")
    print(f"Exact latency:   {result['avg_exact_ms']:.2f}ms")
    print(f"Graph latency:   {result['avg_graph_ms']:.2f}ms")


def save_result(result: dict[str, Any], path: Path, format: str = "json") -> None:
    """Save a result as JSON or as a one-row CSV."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if format == "csv":
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(result))
            writer.writeheader()
            writer.writerow(result)
    else:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2)
