"""Pytest tests for the index recall benchmark."""

import csv
import json
from pathlib import Path

from benchmarks.benchmark import generate_vectors, print_result, run_benchmark, save_result
from vectorsearch.core.config import IndexConfig


def small_run() -> dict:
    return run_benchmark(
        count=120,
        dimension=8,
        num_queries=5,
        k=5,
        metric="euclidean",
        config=IndexConfig(m=8, ef_construction=32, ef_search=32, seed=1),
    )


class TestIndexBenchmark:
    """Tests for benchmark execution."""

    def test_run_benchmark(self) -> None:
        result = small_run()

        assert result["count"] == 120
        assert result["num_queries"] == 5
        assert 0.0 <= result["recall"] <= 1.0
        assert result["recall"] >= 0.6
        assert result["build_seconds"] >= 0
        assert result["avg_graph_ms"] >= 0

    def test_generate_vectors(self) -> None:
        records = generate_vectors(10, 4, seed=2, clusters=3)
        assert [r.id for r in records[:2]] == ["vec-00000", "vec-00001"]
        assert all(r.dimension == 4 for r in records)
        again = generate_vectors(10, 4, seed=2, clusters=3)
        assert [(r.id, r.vector) for r in again] == [(r.id, r.vector) for r in records]

    def test_print_result(self, capsys) -> None:
        print_result(small_run())
        assert "Recall@k" in capsys.readouterr().out


class TestResultSaving:
    """Tests for result saving."""

    def test_save_results(self, tmp_path: Path) -> None:
        result = small_run()

        json_path = tmp_path / "results" / "benchmark.json"
        save_result(result, json_path)
        with open(json_path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        assert saved["metric"] == "euclidean"
        assert "timestamp" in saved

        csv_path = tmp_path / "benchmark.csv"
        save_result(result, csv_path, format="csv")
        with open(csv_path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["k"] == "5"
