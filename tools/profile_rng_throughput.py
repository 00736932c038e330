from __future__ import annotations

import argparse
import json
import os
import statistics
import sys
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from time import perf_counter, process_time
from typing import Any

if __package__ is None or __package__ == "":
    REPO_ROOT = Path(__file__).resolve().parents[1]
    for _root in (REPO_ROOT / "python", REPO_ROOT):
        if str(_root) not in sys.path:
            sys.path.insert(0, str(_root))

from seeded_pcg import Pcg32Rng
from tools.jsonl_log import now_iso

OP_NEXT_U32 = "next_u32"
OP_NEXT_INT = "next_int"
OP_NEXT_INT_UNBIASED = "next_int_unbiased"
OP_NEXT_FLOAT = "next_float"
OP_SAMPLE_PERMUTATION = "sample_permutation"
OP_SHUFFLE = "shuffle"
OP_WEIGHTED_CHOICE = "weighted_choice"
SUPPORTED_OPERATIONS = (
    OP_NEXT_U32,
    OP_NEXT_INT,
    OP_NEXT_INT_UNBIASED,
    OP_NEXT_FLOAT,
    OP_SAMPLE_PERMUTATION,
    OP_SHUFFLE,
    OP_WEIGHTED_CHOICE,
)


def _default_run_id(prefix: str) -> str:
    return f"{prefix}-{datetime.now(UTC).strftime('%Y%m%dT%H%M%SZ')}"


def _percentile(values: list[float], q: float) -> float:
    if not values:
        return 0.0
    if len(values) == 1:
        return float(values[0])
    if q <= 0.0:
        return float(min(values))
    if q >= 1.0:
        return float(max(values))

    ordered = sorted(float(value) for value in values)
    pos = (len(ordered) - 1) * q
    lower = int(pos)
    upper = min(lower + 1, len(ordered) - 1)
    weight = pos - lower
    return ordered[lower] * (1.0 - weight) + ordered[upper] * weight


def _stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {
            "min": 0.0,
            "max": 0.0,
            "mean": 0.0,
            "p50": 0.0,
            "p95": 0.0,
            "p99": 0.0,
        }
    return {
        "min": float(min(values)),
        "max": float(max(values)),
        "mean": float(statistics.fmean(values)),
        "p50": _percentile(values, 0.50),
        "p95": _percentile(values, 0.95),
        "p99": _percentile(values, 0.99),
    }


def _parse_operations_csv(raw: str) -> tuple[str, ...]:
    text = raw.strip()
    if text == "":
        return tuple()

    operations: list[str] = []
    for item in text.split(","):
        op = item.strip().lower()
        if op == "":
            continue
        if op not in SUPPORTED_OPERATIONS:
            raise ValueError(
                f"Unsupported operation: {op!r}. "
                f"Supported: {', '.join(SUPPORTED_OPERATIONS)}"
            )
        operations.append(op)

    return tuple(dict.fromkeys(operations))


def _measure_call(callable_fn: Callable[[], Any]) -> dict[str, float]:
    start_wall = perf_counter()
    start_cpu = process_time()
    callable_fn()
    return {
        "wall_seconds": perf_counter() - start_wall,
        "cpu_seconds": process_time() - start_cpu,
    }


@dataclass(frozen=True)
class ThroughputProfileConfig:
    output_path: Path | None = None
    run_id: str | None = None
    run_id_prefix: str = "rng-throughput"

    seed: int = 17
    operations: tuple[str, ...] = SUPPORTED_OPERATIONS
    calls_per_sample: int = 20000
    repeats: int = 3

    int_low: int = 0
    int_high: int = 1000
    permutation_length: int = 32
    weights: tuple[float, ...] = (1.0, 2.0, 3.0, 4.0)

    min_calls_per_sec: float = 10000.0
    enforce_target: bool = False


def _validate_config(cfg: ThroughputProfileConfig) -> None:
    if not cfg.operations:
        raise ValueError("At least one operation must be selected.")
    unknown = [op for op in cfg.operations if op not in SUPPORTED_OPERATIONS]
    if unknown:
        raise ValueError(f"Unsupported operation(s): {unknown}")
    if cfg.calls_per_sample <= 0:
        raise ValueError("calls_per_sample must be positive.")
    if cfg.repeats <= 0:
        raise ValueError("repeats must be positive.")
    if cfg.int_high <= cfg.int_low:
        raise ValueError("int_high must be greater than int_low.")
    if cfg.permutation_length < 0:
        raise ValueError("permutation_length must be non-negative.")
    if not cfg.weights:
        raise ValueError("weights must not be empty.")
    if cfg.min_calls_per_sec <= 0.0:
        raise ValueError("min_calls_per_sec must be positive.")


def _operation_fn(cfg: ThroughputProfileConfig, op: str, rng: Pcg32Rng) -> Callable[[], Any]:
    if op == OP_NEXT_U32:
        return rng.next_u32
    if op == OP_NEXT_INT:
        return lambda: rng.next_int(cfg.int_low, cfg.int_high)
    if op == OP_NEXT_INT_UNBIASED:
        return lambda: rng.next_int_unbiased(cfg.int_low, cfg.int_high)
    if op == OP_NEXT_FLOAT:
        return rng.next_float
    if op == OP_SAMPLE_PERMUTATION:
        return lambda: rng.sample_permutation(cfg.permutation_length)
    if op == OP_SHUFFLE:
        array = list(range(cfg.permutation_length))
        return lambda: rng.shuffle(array)
    if op == OP_WEIGHTED_CHOICE:
        weights = list(cfg.weights)
        return lambda: rng.weighted_choice(weights)
    raise ValueError(f"Unsupported operation: {op!r}")


def _profile_operation(cfg: ThroughputProfileConfig, op: str) -> dict[str, Any]:
    samples_calls_per_sec: list[float] = []
    samples_wall_seconds: list[float] = []
    samples_cpu_seconds: list[float] = []

    for repeat_idx in range(cfg.repeats):
        rng = Pcg32Rng(seed=cfg.seed + repeat_idx * 1009)
        fn = _operation_fn(cfg, op, rng)
        calls = int(cfg.calls_per_sample)

        def _run_sample(*, _fn: Callable[[], Any] = fn, _calls: int = calls) -> None:
            for _ in range(_calls):
                _fn()

        perf = _measure_call(_run_sample)
        wall_seconds = float(perf["wall_seconds"])
        calls_per_sec = float(calls) / wall_seconds if wall_seconds > 0.0 else 0.0

        samples_calls_per_sec.append(calls_per_sec)
        samples_wall_seconds.append(wall_seconds)
        samples_cpu_seconds.append(float(perf["cpu_seconds"]))

    return {
        "operation": op,
        "samples": cfg.repeats,
        "calls_per_sample": cfg.calls_per_sample,
        "calls_per_sec_samples": samples_calls_per_sec,
        "calls_per_sec_stats": _stats(samples_calls_per_sec),
        "wall_seconds_stats": _stats(samples_wall_seconds),
        "cpu_seconds_stats": _stats(samples_cpu_seconds),
    }


def _serialize_config(cfg: ThroughputProfileConfig) -> dict[str, Any]:
    payload = asdict(cfg)
    payload["output_path"] = cfg.output_path.as_posix() if cfg.output_path is not None else None
    payload["operations"] = list(cfg.operations)
    payload["weights"] = list(cfg.weights)
    return payload


def run_rng_throughput_profile(cfg: ThroughputProfileConfig) -> dict[str, Any]:
    _validate_config(cfg)

    run_id = cfg.run_id or _default_run_id(cfg.run_id_prefix)
    op_reports = [_profile_operation(cfg, op) for op in cfg.operations]

    threshold_failures: list[str] = []
    if cfg.enforce_target:
        target = float(cfg.min_calls_per_sec)
        for op_report in op_reports:
            mean_calls = float(op_report["calls_per_sec_stats"]["mean"])
            if mean_calls < target:
                threshold_failures.append(
                    f"{op_report['operation']} mean calls/sec {mean_calls:.3f} "
                    f"below target {target:.3f}"
                )

    output_path = cfg.output_path
    if output_path is None:
        output_path = Path("artifacts/throughput") / f"{run_id}.json"

    report = {
        "generated_at": now_iso(),
        "run_id": run_id,
        "config": _serialize_config(cfg),
        "summary": {
            "pass": len(threshold_failures) == 0,
            "threshold_failures": threshold_failures,
            "min_calls_per_sec": float(cfg.min_calls_per_sec),
            "enforce_target": bool(cfg.enforce_target),
        },
        "system": {
            "python_version": sys.version.split()[0],
            "cpu_count_logical": int(os.cpu_count() or 0),
            "platform": sys.platform,
        },
        "operations": op_reports,
        "artifacts": {
            "report_path": output_path.as_posix(),
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return report


def _parse_weights_csv(raw: str) -> tuple[float, ...]:
    try:
        return tuple(float(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Weights must be comma-separated numbers.") from exc


def _parse_args() -> ThroughputProfileConfig:
    parser = argparse.ArgumentParser(
        description=(
            "Profile PCG32 operation throughput. "
            "Supports optional threshold enforcement against a calls/sec floor."
        )
    )

    parser.add_argument("--output-path", type=Path, default=None)
    parser.add_argument("--run-id", type=str, default=None)
    parser.add_argument("--run-id-prefix", type=str, default="rng-throughput")

    parser.add_argument("--seed", type=int, default=17)
    parser.add_argument("--operations", type=str, default=",".join(SUPPORTED_OPERATIONS))
    parser.add_argument("--calls-per-sample", type=int, default=20000)
    parser.add_argument("--repeats", type=int, default=3)

    parser.add_argument("--int-low", type=int, default=0)
    parser.add_argument("--int-high", type=int, default=1000)
    parser.add_argument("--permutation-length", type=int, default=32)
    parser.add_argument("--weights", type=_parse_weights_csv, default=(1.0, 2.0, 3.0, 4.0))

    parser.add_argument("--min-calls-per-sec", type=float, default=10000.0)
    parser.add_argument("--enforce-target", action="store_true")

    args = parser.parse_args()
    return ThroughputProfileConfig(
        output_path=args.output_path,
        run_id=args.run_id,
        run_id_prefix=args.run_id_prefix,
        seed=args.seed,
        operations=_parse_operations_csv(args.operations),
        calls_per_sample=args.calls_per_sample,
        repeats=args.repeats,
        int_low=args.int_low,
        int_high=args.int_high,
        permutation_length=args.permutation_length,
        weights=args.weights,
        min_calls_per_sec=args.min_calls_per_sec,
        enforce_target=args.enforce_target,
    )


def main() -> int:
    cfg = _parse_args()
    report = run_rng_throughput_profile(cfg)
    print(json.dumps(report, indent=2))
    summary = report.get("summary", {})
    return 0 if bool(summary.get("pass", True)) else 2


if __name__ == "__main__":
    raise SystemExit(main())
