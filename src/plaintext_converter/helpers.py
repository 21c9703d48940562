"""Expression-context entry point for templates that need a plaintext body."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from .core import ConversionService
from .models import ConversionOptions, LinkMode


_OPTION_KEYS = {
    "links": "links",
    "width": "width",
    "imageAltText": "image_alt_text",
    "image_alt_text": "image_alt_text",
}


def options_from_mapping(
    values: Mapping[str, object] | None,
    defaults: ConversionOptions | None = None,
) -> ConversionOptions:
    """Merge template-style option keys over ``defaults``; unknown keys are ignored."""

    base = defaults or ConversionOptions()
    if not values:
        return base
    overrides: dict[str, object] = {}
    for key, value in values.items():
        field_name = _OPTION_KEYS.get(key)
        if field_name is None:
            continue
        if field_name == "links":
            value = LinkMode.parse(value)
        elif field_name == "width":
            value = int(value or 0)
        overrides[field_name] = value
    return replace(base, **overrides)


class PlaintextHelper:
    def __init__(self, service: ConversionService | None = None) -> None:
        self._service = service or ConversionService()

    def convert(
        self,
        html: str,
        options: Mapping[str, object] | None = None,
        url: str | None = None,
    ) -> str:
        """Create a plaintext version of ``html``; ``url`` only labels log output."""

        merged = options_from_mapping(options, self._service.default_options)
        return self._service.convert(html, merged, url)

    def allows_call_of_method(self, method_name: str) -> bool:
        return True


__all__ = ["PlaintextHelper", "options_from_mapping"]
