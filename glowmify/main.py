import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from glowmify.core.logging import setup_logging

setup_logging()

from glowmify.api.middleware.cors import setup_cors
from glowmify.api.middleware.request_id import RequestIdMiddleware
from glowmify.api.routes import auth, health
from glowmify.core.config import settings

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
        headers=headers,
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Glowmify Mock Auth Server", version="1.0.0")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")

    setup_cors(app)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1")
    return app


app = create_app()


def run() -> None:
    logger.info("Mock server listening on port %d", settings.mock_server_port)
    uvicorn.run(app, host="0.0.0.0", port=settings.mock_server_port, log_config=None)


if __name__ == "__main__":
    run()
