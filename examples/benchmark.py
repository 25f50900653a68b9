#!/usr/bin/env python3
"""gesture-trainer benchmark: matching latency, recognition and frame throughput.

Measures performance on the current hardware using synthetic hand motion.
No device required.

Usage:
    python examples/benchmark.py
    python examples/benchmark.py --iterations 500 --gestures 20
"""

from __future__ import annotations

import argparse
import gc
import os
import sys
import time
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_trainer.controller import GestureController
from gesture_trainer.frames import Frame, Hand
from gesture_trainer.matcher import TemplateMatcher
from gesture_trainer.recognition import GeometricTemplateRecognition


def get_memory_mb() -> float:
    """Get current process RSS in MB."""
    try:
        import resource
        return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024  # Linux: KB → MB
    except ImportError:
        return 0.0


def generate_paths(rng: np.random.Generator, n: int, frames: int = 30) -> list[np.ndarray]:
    """Random smooth palm paths, flattened to recorded values."""
    paths = []
    for _ in range(n):
        steps = rng.normal(0.0, 10.0, (frames, 3))
        drift = rng.normal(0.0, 15.0, 3)
        path = np.cumsum(steps + drift, axis=0) + np.array([0.0, 200.0, 0.0])
        paths.append(path.ravel())
    return paths


def timings(times: list[float]) -> dict:
    times_ms = np.array(times) * 1000
    return {
        "mean_ms": float(np.mean(times_ms)),
        "median_ms": float(np.median(times_ms)),
        "p95_ms": float(np.percentile(times_ms, 95)),
        "max_ms": float(np.max(times_ms)),
        "throughput": 1000.0 / float(np.mean(times_ms)),
    }


def benchmark_matching(matcher: TemplateMatcher, paths: list[np.ndarray]) -> dict:
    """Benchmark normalize + match of one candidate against one template."""
    template = matcher.process(paths[0])
    for p in paths[:10]:
        matcher.match(matcher.process(p), template)

    gc.collect()
    times = []
    for p in paths:
        t0 = time.perf_counter()
        matcher.match(matcher.process(p), template)
        times.append(time.perf_counter() - t0)
    return timings(times)


def benchmark_recognition(controller: GestureController, paths: list[np.ndarray]) -> dict:
    """Benchmark a full recognition pass over every stored gesture."""
    gc.collect()
    times = []
    for p in paths:
        t0 = time.perf_counter()
        controller.recognize(p, frame_count=len(p) // 3)
        times.append(time.perf_counter() - t0)
    return timings(times)


def benchmark_frames(controller: GestureController, n: int) -> dict:
    """Benchmark per-frame segmentation on alternating motion and rest."""
    gc.collect()
    times = []
    for i in range(n):
        moving = (i // 20) % 2 == 0
        hand = Hand(
            palm_position=(float(i % 20) * 10.0, 200.0, 0.0),
            palm_velocity=(800.0 if moving else 0.0, 0.0, 0.0),
        )
        frame = Frame(hands=[hand], timestamp=i / 60.0, id=i)
        t0 = time.perf_counter()
        controller.on_frame(frame)
        times.append(time.perf_counter() - t0)
    return timings(times)


def print_table(title: str, rows: list[tuple[str, str]]):
    """Print a formatted table."""
    max_key = max(len(r[0]) for r in rows)
    max_val = max(len(r[1]) for r in rows)
    width = max_key + max_val + 7

    print()
    print(f"  ╭{'─' * width}╮")
    print(f"  │ {title:<{width-2}} │")
    print(f"  ├{'─' * width}┤")
    for key, val in rows:
        print(f"  │ {key:<{max_key}}   {val:>{max_val}} │")
    print(f"  ╰{'─' * width}╯")


def main():
    parser = argparse.ArgumentParser(description="gesture-trainer benchmark")
    parser.add_argument("-n", "--iterations", type=int, default=300, help="Number of iterations")
    parser.add_argument("--gestures", type=int, default=10, help="Stored gestures to recognize against")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    args = parser.parse_args()

    n = args.iterations
    rng = np.random.default_rng(args.seed)

    print()
    print("  ┌─────────────────────────────────────┐")
    print("  │   gesture-trainer benchmark 🚀       │")
    print("  └─────────────────────────────────────┘")
    print()

    mem_before = get_memory_mb()
    matcher = TemplateMatcher()
    controller = GestureController(training_countdown=0)
    strategy = GeometricTemplateRecognition(matcher)

    print(f"  Generating {n} synthetic paths and {args.gestures} gestures...")
    paths = generate_paths(rng, n)
    for i, sample in enumerate(generate_paths(rng, args.gestures)):
        template = controller.create(f"G{i}", skip_training=True)
        template.samples = strategy.train([sample])
    mem_after = get_memory_mb()

    print("  Running matching benchmark...")
    match_results = benchmark_matching(matcher, paths)

    print("  Running recognition benchmark...")
    recognize_results = benchmark_recognition(controller, paths)

    print("  Running frame benchmark...")
    frame_results = benchmark_frames(GestureController(), n * 10)

    print_table(f"Template Matching ({matcher.point_count} points)", [
        ("Mean latency", f"{match_results['mean_ms']:.3f} ms"),
        ("Median latency", f"{match_results['median_ms']:.3f} ms"),
        ("P95 latency", f"{match_results['p95_ms']:.3f} ms"),
        ("Max latency", f"{match_results['max_ms']:.3f} ms"),
        ("Throughput", f"{match_results['throughput']:.0f} matches/sec"),
    ])

    print_table(f"Recognition ({args.gestures} gestures)", [
        ("Mean latency", f"{recognize_results['mean_ms']:.3f} ms"),
        ("P95 latency", f"{recognize_results['p95_ms']:.3f} ms"),
        ("Throughput", f"{recognize_results['throughput']:.0f} segments/sec"),
    ])

    print_table("Frame Segmentation", [
        ("Mean latency", f"{frame_results['mean_ms']:.4f} ms"),
        ("Throughput", f"{frame_results['throughput']:.0f} frames/sec"),
    ])

    print_table("System", [
        ("Iterations", f"{n:,}"),
        ("Memory (data)", f"{mem_after - mem_before:.1f} MB"),
        ("Memory (total RSS)", f"{get_memory_mb():.1f} MB"),
        ("Platform", f"{sys.platform} / {os.uname().machine}"),
        ("Python", f"{sys.version.split()[0]}"),
        ("NumPy", f"{np.__version__}"),
    ])

    print()
    print(f"  ⚡ Recognition budget at 60 FPS: {recognize_results['mean_ms']:.2f} ms of 16.7 ms per segment")
    print()


if __name__ == "__main__":
    main()
