from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .models import ConversionOptions, ConversionResult


class OptionsPayload(BaseModel):
    links: Literal["off", "inline", "table", "nextline", "bbcode"] | None = None
    width: int | None = Field(default=None, ge=0)
    image_alt_text: bool | None = None

    def merge(self, defaults: ConversionOptions) -> ConversionOptions:
        return ConversionOptions(
            links=self.links if self.links is not None else defaults.links,
            width=self.width if self.width is not None else defaults.width,
            image_alt_text=self.image_alt_text if self.image_alt_text is not None else defaults.image_alt_text,
        )


class ConvertRequest(BaseModel):
    html: str
    options: OptionsPayload | None = None
    correlation_id: str | None = None


class ConvertResponse(BaseModel):
    text: str
    ok: bool
    error_code: str | None = None
    links: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ConversionResult) -> ConvertResponse:
        return cls(
            text=result.text,
            ok=result.ok,
            error_code=result.error.code if result.error else None,
            links=result.links,
        )


class HealthStatus(BaseModel):
    status: str


__all__ = ["ConvertRequest", "ConvertResponse", "HealthStatus", "OptionsPayload"]
