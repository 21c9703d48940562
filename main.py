"""ASGI entry point, e.g. ``uvicorn main:app``."""

import logging

from fastapi import FastAPI, HTTPException

from plaintext_converter.api import create_app
from plaintext_converter.settings import ENV_PREFIX

logger = logging.getLogger("plaintext_converter")

try:
    app = create_app(require_enabled=True)
except RuntimeError as exc:
    logger.warning("%s", exc)
    app = FastAPI(title="HTML Plaintext Converter (disabled)", version="0.1.0")

    @app.api_route("/{path:path}", methods=["GET", "POST"])
    async def api_disabled(path: str) -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail=(
                "Local API disabled. Set runtime.enable_local_api = true in config.toml "
                f"or {ENV_PREFIX}ENABLE_LOCAL_API=1"
            ),
        )
