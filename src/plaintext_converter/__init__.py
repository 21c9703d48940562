"""HTML to plaintext conversion for email alternatives and text-only views."""

from .config import AppConfig, load_config
from .context import ConversionFailure
from .core import ConversionService, convert
from .helpers import PlaintextHelper
from .models import ConversionOptions, ConversionResult, LinkMode

__all__ = [
    "AppConfig",
    "ConversionFailure",
    "ConversionOptions",
    "ConversionResult",
    "ConversionService",
    "LinkMode",
    "PlaintextHelper",
    "convert",
    "load_config",
]
