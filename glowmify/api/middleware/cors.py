from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glowmify.core.config import settings


def _validate_origins(origins: list[str]) -> None:
    for origin in origins:
        parsed = urlparse(origin)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid CORS origin: {origin!r}")


def setup_cors(app: FastAPI) -> None:
    # The mock server is hit from emulators and devices on the LAN in debug.
    origins = ["*"] if settings.debug else settings.cors_origins_list
    if not settings.debug:
        _validate_origins(origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
