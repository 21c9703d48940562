from __future__ import annotations

import hashlib
import os
import re
import tempfile
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from .config import AppConfig


SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")
HTML_SUFFIXES = frozenset({".html", ".htm"})


@dataclass(slots=True)
class RunPaths:
    run_id: str
    base_dir: Path
    log_file: Path
    _claimed: set[str] = field(default_factory=set, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def output_for(self, source: Path) -> Path:
        """Claim an output file for ``source``; repeated stems get ``-2``, ``-3`` suffixes."""

        stem = slugify(source.stem)
        with self._lock:
            name = stem
            counter = 1
            while name in self._claimed:
                counter += 1
                name = f"{stem}-{counter}"
            self._claimed.add(name)
        return self.base_dir / f"{name}.txt"


def slugify(value: str, max_length: int = 120) -> str:
    normalized = SAFE_FILENAME_RE.sub("-", value.strip())
    normalized = re.sub("-+", "-", normalized)
    normalized = normalized.replace("-.", ".")
    normalized = normalized.strip("-._")
    if not normalized:
        normalized = "file"
    if len(normalized) > max_length:
        normalized = normalized[:max_length]
    return normalized


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def ensure_run_paths(config: AppConfig, run_id: str) -> RunPaths:
    base = config.runtime.output_dir / run_id
    base.mkdir(parents=True, exist_ok=True)
    return RunPaths(run_id=run_id, base_dir=base, log_file=base / config.runtime.log_file)


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def iter_html_files(paths: Iterable[Path]) -> Iterator[Path]:
    for path in paths:
        if path.is_file():
            yield path
        elif path.is_dir():
            for file_path in sorted(path.rglob("*")):
                if file_path.is_file() and file_path.suffix.lower() in HTML_SUFFIXES:
                    yield file_path


def size_within_limit(path: Path, max_kb: int) -> bool:
    return path.stat().st_size <= max_kb * 1024


__all__ = [
    "RunPaths",
    "atomic_write",
    "ensure_run_paths",
    "generate_run_id",
    "iter_html_files",
    "size_within_limit",
    "slugify",
]
