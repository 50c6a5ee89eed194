"""Benchmark module.

- generate_vectors: build synthetic records
- run_benchmark: compare HNSW results with exact search
- print_result / save_result: output results
"""

from benchmarks.benchmark import (
    generate_vectors,
    print_result,
    run_benchmark,
    save_result,
)

__all__ = [
    "generate_vectors",
    "run_benchmark",
    "print_result",
    "save_result",
]
