from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .models import DEFAULT_WIDTH, ConversionOptions, LinkMode


CONFIG_FILE = Path("config.toml")


@dataclass(slots=True)
class ConversionDefaults:
    links: str = LinkMode.INLINE.value
    width: int = DEFAULT_WIDTH
    image_alt_text: bool = True

    def to_options(self) -> ConversionOptions:
        return ConversionOptions(links=LinkMode.parse(self.links), width=self.width, image_alt_text=self.image_alt_text)


@dataclass(slots=True)
class LimitConfig:
    max_quote_depth: int = 32
    convert_timeout_s: int = 10
    max_input_kb: int = 2048


@dataclass(slots=True)
class RuntimeConfig:
    output_dir: Path = Path("runs")
    log_file: str = "log.jsonl"
    summary_csv: str = "summary.csv"
    enable_local_api: bool = False
    parallelism: int = 1
    limits: LimitConfig = field(default_factory=LimitConfig)


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    conversion: ConversionDefaults = field(default_factory=ConversionDefaults)
    api: APIConfig = field(default_factory=APIConfig)

    @property
    def default_options(self) -> ConversionOptions:
        return self.conversion.to_options()


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(data: Mapping[str, object] | None, key: str) -> Mapping[str, object] | None:
    if not isinstance(data, Mapping):
        return None
    value = data.get(key)
    return value if isinstance(value, Mapping) else None


def _build_links(value: object) -> str:
    # TOML has no null; ``links = false`` switches links off.
    return LinkMode.parse(value).value


def _build_conversion(data: Mapping[str, object] | None) -> ConversionDefaults:
    if not data:
        return ConversionDefaults()
    defaults = ConversionDefaults(
        links=_build_links(data.get("links", LinkMode.INLINE.value)),
        width=int(data.get("width", DEFAULT_WIDTH)),
        image_alt_text=bool(data.get("image_alt_text", True)),
    )
    # Validates the values.
    defaults.to_options()
    return defaults


def _build_limits(data: Mapping[str, object] | None) -> LimitConfig:
    if not data:
        return LimitConfig()
    return LimitConfig(
        max_quote_depth=int(data.get("max_quote_depth", 32)),
        convert_timeout_s=int(data.get("convert_timeout_s", 10)),
        max_input_kb=int(data.get("max_input_kb", 2048)),
    )


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        output_dir=Path(str(data.get("output_dir", "runs"))),
        log_file=str(data.get("log_file", "log.jsonl")),
        summary_csv=str(data.get("summary_csv", "summary.csv")),
        enable_local_api=bool(data.get("enable_local_api", False)),
        parallelism=int(data.get("parallelism", 1)),
        limits=_build_limits(_section(data, "limits")),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        conversion=_build_conversion(_section(raw, "conversion")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "output_dir": str(config.runtime.output_dir),
            "log_file": config.runtime.log_file,
            "summary_csv": config.runtime.summary_csv,
            "enable_local_api": config.runtime.enable_local_api,
            "parallelism": config.runtime.parallelism,
            "limits": {
                "max_quote_depth": config.runtime.limits.max_quote_depth,
                "convert_timeout_s": config.runtime.limits.convert_timeout_s,
                "max_input_kb": config.runtime.limits.max_input_kb,
            },
        },
        "conversion": {
            "links": config.conversion.links,
            "width": config.conversion.width,
            "image_alt_text": config.conversion.image_alt_text,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "APIConfig",
    "AppConfig",
    "ConversionDefaults",
    "LimitConfig",
    "RuntimeConfig",
    "dump_config",
    "load_config",
]
