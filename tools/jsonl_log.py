from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def append_jsonl(path: Path, row: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(row, separators=(",", ":")))
        handle.write("\n")


def read_jsonl(path: Path) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            text = line.strip()
            if text:
                rows.append(json.loads(text))
    return rows


class JsonlRunLogger:
    """Appends one JSON object per line, stamped with the run id and time."""

    def __init__(self, *, path: Path, run_id: str) -> None:
        self.path = path
        self.run_id = run_id

    def log(self, event: str, payload: dict[str, Any]) -> None:
        row = {"run_id": self.run_id, "event": event, "logged_at": now_iso()}
        row.update(payload)
        append_jsonl(self.path, row)
