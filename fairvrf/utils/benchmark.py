"""
Benchmarks for fairvrf core components.

Run with: python -m fairvrf.utils.benchmark
"""

import time
import statistics
from typing import Callable, List
from dataclasses import dataclass

from fairvrf.crypto import (
    sha512, keccak256, hash_to_curve,
    generate_keypair, prove, verify,
)
from fairvrf.core.selection import select_winners, shuffle
from fairvrf.core.resolution import OutcomeParams, resolve_match_outcome
from fairvrf.utils.logger import get_logger

logger = get_logger("benchmark")


# =============================================================================
# Benchmark Framework
# =============================================================================


@dataclass
class BenchmarkResult:
    """Result of a benchmark run."""
    name: str
    iterations: int
    total_time_ms: float
    avg_time_ms: float
    min_time_ms: float
    max_time_ms: float
    ops_per_sec: float

    def __str__(self) -> str:
        return (
            f"{self.name}: {self.ops_per_sec:.0f} ops/s "
            f"(avg={self.avg_time_ms:.3f}ms, min={self.min_time_ms:.3f}ms, max={self.max_time_ms:.3f}ms)"
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "iterations": self.iterations,
            "avg_time_ms": self.avg_time_ms,
            "min_time_ms": self.min_time_ms,
            "max_time_ms": self.max_time_ms,
            "ops_per_sec": self.ops_per_sec,
        }


def benchmark(
    name: str,
    func: Callable,
    iterations: int = 1000,
    warmup: int = 100,
) -> BenchmarkResult:
    """
    Run a benchmark.

    Args:
        name: Benchmark name
        func: Function to benchmark (no args)
        iterations: Number of iterations
        warmup: Warmup iterations

    Returns:
        BenchmarkResult
    """
    if iterations < 1:
        raise ValueError("iterations must be >= 1")

    # Warmup
    for _ in range(warmup):
        func()

    # Collect timings
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        end = time.perf_counter()
        times.append((end - start) * 1000)  # ms

    total = sum(times)
    avg = statistics.mean(times)

    return BenchmarkResult(
        name=name,
        iterations=iterations,
        total_time_ms=total,
        avg_time_ms=avg,
        min_time_ms=min(times),
        max_time_ms=max(times),
        ops_per_sec=1000 / avg if avg > 0 else float("inf"),
    )


# =============================================================================
# Hash Benchmarks
# =============================================================================


def benchmark_hashing(iterations: int = 10000) -> List[BenchmarkResult]:
    """Benchmark hash functions."""
    results = []
    data = b"x" * 64

    results.append(benchmark(
        "SHA-512 (64 bytes)",
        lambda: sha512(data),
        iterations=iterations,
    ))

    results.append(benchmark(
        "Keccak-256 (64 bytes)",
        lambda: keccak256(data),
        iterations=iterations,
    ))

    results.append(benchmark(
        "Hash to curve",
        lambda: hash_to_curve(data),
        iterations=max(1, iterations // 10),
        warmup=10,
    ))

    return results


# =============================================================================
# VRF Benchmarks
# =============================================================================


def benchmark_vrf(iterations: int = 200) -> List[BenchmarkResult]:
    """Benchmark key generation, proving and verification."""
    results = []
    kp = generate_keypair()
    alpha = b"match_42:player_a:player_b"
    output = prove(kp.secret_key, alpha)

    results.append(benchmark(
        "VRF Key Generation",
        generate_keypair,
        iterations=iterations,
        warmup=10,
    ))

    results.append(benchmark(
        "VRF Prove",
        lambda: prove(kp.secret_key, alpha),
        iterations=iterations,
        warmup=10,
    ))

    results.append(benchmark(
        "VRF Verify",
        lambda: verify(kp.public_key, output.proof, alpha),
        iterations=iterations,
        warmup=10,
    ))

    return results


# =============================================================================
# Selection Benchmarks
# =============================================================================


def benchmark_selection(iterations: int = 1000) -> List[BenchmarkResult]:
    """Benchmark winner selection, shuffling and outcome resolution."""
    results = []
    seed = sha512(b"benchmark seed")[:32]

    weights = [float(i + 1) for i in range(100)]
    results.append(benchmark(
        "Select 10 of 100",
        lambda: select_winners(weights, 10, seed),
        iterations=iterations,
    ))

    items = list(range(52))
    results.append(benchmark(
        "Shuffle 52 items",
        lambda: shuffle(items, seed),
        iterations=iterations,
    ))

    params = OutcomeParams(
        player1={"id": "alice", "score": 100, "confidence": 80},
        player2={"id": "bob", "score": 100, "confidence": 20},
    )
    results.append(benchmark(
        "Resolve match outcome",
        lambda: resolve_match_outcome("match_42", params, seed, resolved_at=0),
        iterations=iterations,
    ))

    return results


# =============================================================================
# Main
# =============================================================================


SECTIONS = [
    ("Hashing", benchmark_hashing),
    ("VRF", benchmark_vrf),
    ("Selection", benchmark_selection),
]


def run_all_benchmarks() -> None:
    """Run all benchmarks and print results."""
    print("=" * 60)
    print("fairvrf Performance Benchmarks")
    print("=" * 60)

    for section_name, bench_func in SECTIONS:
        print(f"\n{section_name}")
        print("-" * 40)
        results = bench_func()
        for r in results:
            print(f"  {r}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    run_all_benchmarks()
