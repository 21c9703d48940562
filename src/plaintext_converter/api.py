from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import FastAPI, HTTPException

from .config import AppConfig, load_config
from .core import ConversionService
from .schemas import ConvertRequest, ConvertResponse, HealthStatus
from .settings import get_settings


def _prepare_config(config_path: Path | None) -> AppConfig:
    settings = get_settings()
    config = load_config(config_path or settings.config_path)
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


def create_app(
    config_path: Path | None = None,
    *,
    config: AppConfig | None = None,
    require_enabled: bool = True,
) -> FastAPI:
    config = config or _prepare_config(config_path)
    if require_enabled and not config.runtime.enable_local_api:
        raise RuntimeError("Local API is disabled. Enable it via config.runtime.enable_local_api")
    service = ConversionService(config)
    max_bytes = config.runtime.limits.max_input_kb * 1024
    app = FastAPI(title="HTML Plaintext Converter", version="0.1.0")
    app.state.config = config
    app.state.service = service

    @app.get("/health", summary="Health check")
    async def health() -> HealthStatus:
        return HealthStatus(status="ok")

    @app.post("/convert", summary="Convert an HTML fragment to plaintext")
    async def convert(request: ConvertRequest) -> ConvertResponse:
        if len(request.html.encode("utf-8")) > max_bytes:
            raise HTTPException(status_code=413, detail="SIZE_LIMIT")
        options = service.default_options
        if request.options is not None:
            options = request.options.merge(options)
        result = await asyncio.to_thread(service.convert_result, request.html, options, request.correlation_id)
        return ConvertResponse.from_result(result)

    return app


__all__ = ["create_app"]
