from __future__ import annotations

import csv
import json
import threading
import time
from dataclasses import asdict, dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any

from .utils import atomic_write


@dataclass(slots=True)
class StageTimings:
    read_ms: float
    convert_ms: float
    write_ms: float


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    source: str
    status: str
    error_code: str | None
    timings: StageTimings
    output_path: str
    link_count: int
    size_bytes: int

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timings"] = asdict(self.timings)
        return payload


class RunLogger:
    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file
        self._lock = threading.Lock()

    def append(self, entry: RunLogEntry) -> None:
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._lock:
            with self._log_file.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")


@dataclass(slots=True)
class BatchSummary:
    timestamp: float = field(default_factory=time.time)
    total: int = 0
    successes: int = 0
    failures: int = 0
    errors: dict[str, int] = field(default_factory=dict)

    def record_failure(self, code: str) -> None:
        self.failures += 1
        self.errors[code] = self.errors.get(code, 0) + 1

    def as_row(self, batch_id: str) -> list[str]:
        error_json = json.dumps(self.errors, sort_keys=True)
        return [
            batch_id,
            time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.timestamp)),
            str(self.total),
            str(self.successes),
            str(self.failures),
            error_json,
        ]


SUMMARY_HEADER = ["batch_id", "timestamp", "total", "successes", "failures", "errors"]


def write_summary_csv(path: Path, header: list[str], rows: list[list[str]]) -> None:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    atomic_write(path, buffer.getvalue())


def append_summary_row(path: Path, row: list[str]) -> None:
    header = SUMMARY_HEADER
    rows: list[list[str]] = []
    if path.exists():
        with path.open("r", encoding="utf-8", newline="") as handle:
            existing = list(csv.reader(handle))
        if existing:
            header, rows = existing[0], existing[1:]
    rows.append(row)
    write_summary_csv(path, header, rows)


__all__ = [
    "BatchSummary",
    "RunLogEntry",
    "RunLogger",
    "StageTimings",
    "append_summary_row",
    "write_summary_csv",
]
