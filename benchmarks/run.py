#!/usr/bin/env python3
"""Benchmark command line tool.

Usage:
    python benchmarks/run.py --count 2000 --dimension 32 --k 10
    python benchmarks/run.py --metric euclidean --ef-search 128 --output-format csv
"""

import argparse
from pathlib import Path

from benchmarks.benchmark import print_result, run_benchmark, save_result
from vectorsearch.core.config import IndexConfig


def main():
    parser = argparse.ArgumentParser(description="Run the HNSW recall benchmark")
    parser.add_argument("--count", type=int, default=2000, help="Number of vectors")
    parser.add_argument("--dimension", type=int, default=32, help="Vector dimension")
    parser.add_argument("--num-queries", type=int, default=50, help="Number of queries")
    parser.add_argument("--k", type=int, default=10, help="Neighbours per query")
    parser.add_argument(
        "--metric",
        choices=["cosine", "euclidean", "inner_product"],
        default="cosine",
        help="Distance metric",
    )
    parser.add_argument("--m", type=int, default=16, help="HNSW neighbours per node")
    parser.add_argument(
        "--ef-construction", type=int, default=100, help="Candidate list size while building"
    )
    parser.add_argument(
        "--ef-search", type=int, default=64, help="Candidate list size while querying"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument(
        "--output-format", choices=["json", "csv"], default="json", help="Output format"
    )
    parser.add_argument("--output", help="Output file path")
    parser.add_argument("--quiet", action="store_true", help="Quiet mode")

    args = parser.parse_args()

    config = IndexConfig(
        m=args.m,
        ef_construction=args.ef_construction,
        ef_search=args.ef_search,
        seed=args.seed,
    )

    if not args.quiet:
        print(f"Building index over {args.count} vectors...\n")

    result = run_benchmark(
        count=args.count,
        dimension=args.dimension,
        num_queries=args.num_queries,
        k=args.k,
        metric=args.metric,
        config=config,
        seed=args.seed,
        quiet=args.quiet,
    )

    if not args.quiet:
        print_result(result)

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = (
            Path("benchmarks/results")
            / f"hnsw_{args.metric}_{args.count}.{args.output_format}"
        )

    save_result(result, output_path, format=args.output_format)

    if not args.quiet:
        print(f"\nResults saved to: {output_path}")


if __name__ == "__main__":
    main()
