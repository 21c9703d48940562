"""Per-conversion state and the failure raised when a conversion cannot finish."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from .links import LinkList


DEFAULT_MAX_QUOTE_DEPTH = 32


class ConversionFailure(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(slots=True)
class ConversionContext:
    """State owned by one top-level conversion and shared with its quote recursion."""

    deadline: float = float("inf")
    max_depth: int = DEFAULT_MAX_QUOTE_DEPTH
    depth: int = 0
    links: LinkList = field(default_factory=LinkList)

    @classmethod
    def start(cls, *, timeout_s: float = 0, max_depth: int = DEFAULT_MAX_QUOTE_DEPTH) -> ConversionContext:
        deadline = time.perf_counter() + timeout_s if timeout_s > 0 else float("inf")
        return cls(deadline=deadline, max_depth=max(0, max_depth))

    def ensure_deadline(self, stage: str) -> None:
        if time.perf_counter() > self.deadline:
            raise ConversionFailure("TIMEOUT", f"Conversion exceeded allotted time during {stage}")

    @contextmanager
    def nested(self) -> Iterator[None]:
        if self.depth >= self.max_depth:
            raise ConversionFailure(
                "QUOTE_DEPTH",
                f"Blockquote nesting exceeds the limit of {self.max_depth} levels",
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1


__all__ = ["ConversionContext", "ConversionFailure", "DEFAULT_MAX_QUOTE_DEPTH"]
