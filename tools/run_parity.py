from __future__ import annotations

# ruff: noqa: E402
import argparse
import json
import sys
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

REPO_ROOT = Path(__file__).resolve().parents[1]
PYTHON_ROOT = REPO_ROOT / "python"
for _root in (PYTHON_ROOT, REPO_ROOT):
    if str(_root) not in sys.path:
        sys.path.insert(0, str(_root))

from seeded_pcg import Pcg32Rng
from tools.jsonl_log import JsonlRunLogger, now_iso

FIXTURE_SCHEMA_VERSION = 1
GENERATOR_NAME = "pcg32-xsh-rr"
DEFAULT_FIXTURE_PATH = REPO_ROOT / "tests" / "fixtures" / "pcg32_golden.json"

SUITE_RAW = "raw"
SUITE_SAMPLING = "sampling"
SUITE_PERMUTATION = "permutation"
SUPPORTED_SUITES = (SUITE_RAW, SUITE_SAMPLING, SUITE_PERMUTATION)

DEFAULT_SUITE_STEPS = {
    SUITE_RAW: 32,
    SUITE_SAMPLING: 4,
    SUITE_PERMUTATION: 4,
}
DEFAULT_SEEDS: tuple[int | None, ...] = (None, 0, 42, 12345)


class GoldenCase(BaseModel):
    suite: str
    seed: int | None = None
    steps: int = Field(gt=0)
    values: list[Any]


class GoldenFixture(BaseModel):
    schema_version: int = FIXTURE_SCHEMA_VERSION
    generator: str = GENERATOR_NAME
    cases: list[GoldenCase]


class ParityMismatch(RuntimeError):
    pass


def _make_rng(seed: int | None) -> Pcg32Rng:
    # None selects the default-state constructor, which never runs init().
    return Pcg32Rng() if seed is None else Pcg32Rng(seed=seed)


def _run_raw(rng: Pcg32Rng, steps: int) -> list[Any]:
    return [rng.next_u32() for _ in range(steps)]


def _run_sampling(rng: Pcg32Rng, steps: int) -> list[Any]:
    values: list[Any] = []
    for _ in range(steps):
        values.extend(
            [
                rng.next_int(10, 20),
                rng.next_int(-5),
                rng.next_int(6),
                rng.next_int(-3, 4),
                rng.next_int(),
                rng.next_float(2.5, 7.5),
                rng.next_float(10.0),
                rng.next_float(),
            ]
        )
    return values


def _run_permutation(rng: Pcg32Rng, steps: int) -> list[Any]:
    values: list[Any] = []
    for _ in range(steps):
        values.append(rng.sample_permutation(8))
        letters = list("abcdef")
        rng.shuffle(letters)
        values.append(letters)
        values.append(rng.weighted_choice([1, 2, 3]))
        values.append(rng.weighted_choice([0.5, 0, 1.5], ["x", "y", "z"]))
    return values


SUITE_RUNNERS = {
    SUITE_RAW: _run_raw,
    SUITE_SAMPLING: _run_sampling,
    SUITE_PERMUTATION: _run_permutation,
}


def run_suite(suite: str, seed: int | None, steps: int) -> list[Any]:
    runner = SUITE_RUNNERS.get(suite)
    if runner is None:
        raise ValueError(f"Unsupported suite: {suite}")
    if int(steps) <= 0:
        raise ValueError("steps must be positive")
    return runner(_make_rng(seed), int(steps))


def build_fixture(
    *,
    suites: tuple[str, ...] = SUPPORTED_SUITES,
    seeds: tuple[int | None, ...] = DEFAULT_SEEDS,
    steps: int | None = None,
) -> GoldenFixture:
    cases: list[GoldenCase] = []
    for suite in suites:
        suite_steps = int(steps) if steps is not None else DEFAULT_SUITE_STEPS[suite]
        for seed in seeds:
            cases.append(
                GoldenCase(
                    suite=suite,
                    seed=seed,
                    steps=suite_steps,
                    values=run_suite(suite, seed, suite_steps),
                )
            )
    return GoldenFixture(cases=cases)


def load_fixture(path: Path) -> GoldenFixture:
    fixture = GoldenFixture.model_validate_json(path.read_text(encoding="utf-8"))
    if fixture.schema_version != FIXTURE_SCHEMA_VERSION:
        raise ValueError(
            f"unsupported fixture schema version: {fixture.schema_version} "
            f"(expected {FIXTURE_SCHEMA_VERSION})"
        )
    if fixture.generator != GENERATOR_NAME:
        raise ValueError(f"fixture was recorded for {fixture.generator!r}, not {GENERATOR_NAME!r}")
    return fixture


def write_fixture(path: Path, fixture: GoldenFixture) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(fixture.model_dump(), indent=2) + "\n", encoding="utf-8")


def _compare_values(expected: list[Any], actual: list[Any]) -> dict[str, Any] | None:
    for idx, (want, got) in enumerate(zip(expected, actual)):
        if want != got:
            return {"index": idx, "expected": want, "actual": got}

    if len(expected) != len(actual):
        return {
            "index": min(len(expected), len(actual)),
            "field": "length",
            "expected": len(expected),
            "actual": len(actual),
        }
    return None


def _default_run_id() -> str:
    return datetime.now(UTC).strftime("parity-%Y%m%dT%H%M%SZ")


def _serialize_config(cfg: ParityConfig) -> dict[str, Any]:
    payload = asdict(cfg)
    payload["fixture_path"] = cfg.fixture_path.as_posix()
    payload["output_path"] = cfg.output_path.as_posix() if cfg.output_path is not None else None
    payload["log_path"] = cfg.log_path.as_posix() if cfg.log_path is not None else None
    payload["suites"] = list(cfg.suites)
    payload["seeds"] = list(cfg.seeds)
    return payload


@dataclass(frozen=True)
class ParityConfig:
    fixture_path: Path = DEFAULT_FIXTURE_PATH
    write_fixture: bool = False
    suites: tuple[str, ...] = SUPPORTED_SUITES
    seeds: tuple[int | None, ...] = DEFAULT_SEEDS
    steps: int | None = None
    output_path: Path | None = None
    log_path: Path | None = None
    run_id: str | None = None
    strict: bool = False


def run_parity(cfg: ParityConfig) -> dict[str, Any]:
    unknown = [suite for suite in cfg.suites if suite not in SUPPORTED_SUITES]
    if unknown:
        raise ValueError(
            f"Unsupported suite(s): {unknown}. Supported: {', '.join(SUPPORTED_SUITES)}"
        )

    run_id = cfg.run_id or _default_run_id()
    logger = JsonlRunLogger(path=cfg.log_path, run_id=run_id) if cfg.log_path else None

    if cfg.write_fixture:
        fixture = build_fixture(suites=cfg.suites, seeds=cfg.seeds, steps=cfg.steps)
        write_fixture(cfg.fixture_path, fixture)
        cases = [
            {"suite": case.suite, "seed": case.seed, "steps": case.steps, "pass": True}
            for case in fixture.cases
        ]
        if logger is not None:
            logger.log("fixture_written", {"cases": len(cases)})
        failures: list[dict[str, Any]] = []
    else:
        fixture = load_fixture(cfg.fixture_path)
        cases = []
        failures = []
        for case in fixture.cases:
            if case.suite not in cfg.suites:
                continue
            actual = run_suite(case.suite, case.seed, case.steps)
            mismatch = _compare_values(case.values, actual)
            result = {
                "suite": case.suite,
                "seed": case.seed,
                "steps": case.steps,
                "pass": mismatch is None,
            }
            if mismatch is not None:
                result["mismatch"] = mismatch
                failures.append(result)
            cases.append(result)
            if logger is not None:
                logger.log("case", result)

    report: dict[str, Any] = {
        "generated_at": now_iso(),
        "run_id": run_id,
        "mode": "write" if cfg.write_fixture else "compare",
        "config": _serialize_config(cfg),
        "cases": cases,
        "summary": {
            "cases_total": len(cases),
            "cases_failed": len(failures),
            "pass": not failures,
        },
    }

    if cfg.output_path is not None:
        cfg.output_path.parent.mkdir(parents=True, exist_ok=True)
        cfg.output_path.write_text(json.dumps(report, indent=2), encoding="utf-8")

    if failures and cfg.strict:
        first = failures[0]
        raise ParityMismatch(
            f"suite={first['suite']} seed={first['seed']} mismatch={first['mismatch']}"
        )
    return report


def _parse_seed(value: str) -> int | None:
    if value.strip().lower() in {"default", "none"}:
        return None
    try:
        return int(value, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Expected an integer seed or 'default', received {value!r}."
        ) from exc


def _parse_args() -> tuple[ParityConfig, bool]:
    parser = argparse.ArgumentParser(description="Check PCG32 outputs against a golden fixture.")
    parser.add_argument("--fixture-path", type=Path, default=DEFAULT_FIXTURE_PATH)
    parser.add_argument(
        "--write-fixture",
        action="store_true",
        help="Record the current outputs as the fixture instead of comparing.",
    )
    parser.add_argument(
        "--suite",
        action="append",
        choices=SUPPORTED_SUITES,
        help="Suites to run (repeat flag for multiple). Defaults to all.",
    )
    parser.add_argument(
        "--seed",
        action="append",
        type=_parse_seed,
        help="Seeds used when writing a fixture; 'default' selects the unseeded constructor.",
    )
    parser.add_argument("--steps", type=int, default=None, help="Override steps per case.")
    parser.add_argument("--output-path", type=Path, default=None)
    parser.add_argument("--log-path", type=Path, default=None)
    parser.add_argument("--run-id", type=str, default=None)
    parser.add_argument("--strict", action="store_true", help="Raise on the first mismatch.")
    parser.add_argument("--allow-mismatch", action="store_true")

    args = parser.parse_args()
    cfg = ParityConfig(
        fixture_path=args.fixture_path,
        write_fixture=args.write_fixture,
        suites=tuple(args.suite) if args.suite else SUPPORTED_SUITES,
        seeds=tuple(args.seed) if args.seed else DEFAULT_SEEDS,
        steps=args.steps,
        output_path=args.output_path,
        log_path=args.log_path,
        run_id=args.run_id,
        strict=args.strict,
    )
    return cfg, bool(args.allow_mismatch)


def main() -> int:
    cfg, allow_mismatch = _parse_args()
    report = run_parity(cfg)
    print(json.dumps(report, indent=2))

    if not report["summary"]["pass"] and not allow_mismatch:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
