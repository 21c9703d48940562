"""Domain models for HTML to plaintext conversion."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import ConversionFailure


DEFAULT_WIDTH = 70
RULER_FALLBACK_WIDTH = 25
QUOTE_INDENT = 2


class LinkMode(str, Enum):
    OFF = "off"
    INLINE = "inline"
    TABLE = "table"
    NEXTLINE = "nextline"
    BBCODE = "bbcode"

    @classmethod
    def parse(cls, value: object) -> LinkMode:
        """Coerce configuration values; falsy values switch links off."""

        if isinstance(value, LinkMode):
            return value
        if value is None or value is False or value == "":
            return cls.OFF
        if value is True:
            return cls.INLINE
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported link mode: {value!r}") from exc


@dataclass(frozen=True, slots=True)
class ConversionOptions:
    """Options for a single top-level conversion."""

    links: LinkMode = LinkMode.INLINE
    width: int = DEFAULT_WIDTH
    image_alt_text: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "links", LinkMode.parse(self.links))
        width = int(self.width)
        if width < 0:
            raise ValueError(f"width must be non-negative, got {self.width!r}")
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "image_alt_text", bool(self.image_alt_text))

    @property
    def ruler_width(self) -> int:
        return self.width or RULER_FALLBACK_WIDTH

    @property
    def show_links(self) -> bool:
        return self.links is not LinkMode.OFF

    def narrowed(self, amount: int = QUOTE_INDENT) -> ConversionOptions:
        """Options for quoted content, which loses ``amount`` columns to the marker."""

        if self.width <= 0:
            return self
        return replace(self, width=max(self.width - amount, 0))


@dataclass(slots=True)
class ConversionResult:
    """Outcome of one conversion: either text or the failure that stopped it."""

    text: str
    links: list[str] = field(default_factory=list)
    error: ConversionFailure | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.text


__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "DEFAULT_WIDTH",
    "LinkMode",
    "RULER_FALLBACK_WIDTH",
]
