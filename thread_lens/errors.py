"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ThreadLensError(Exception):
    """Base exception with HTTP status code and an operator hint."""

    def __init__(self, message: str, status_code: int = 500, fix: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.fix = fix


class UpstreamError(ThreadLensError):
    """The Camofox browser or the Nitter page could not be fetched."""

    def __init__(self, message: str):
        super().__init__(
            message,
            status_code=502,
            fix="Start Camofox Browser: cd camofox-browser && npm start",
        )


class NitterUnavailableError(ThreadLensError):
    def __init__(self):
        super().__init__(
            "No reachable Nitter instance found.",
            status_code=503,
            fix="Set NITTER_INSTANCE in your .env or start a local Nitter instance.",
        )


class ReplyCycleError(ThreadLensError):
    """A reply back-reference chain loops back on itself."""

    def __init__(self, post_id: str):
        super().__init__(f"Reply chain revisits post {post_id}", status_code=500)
        self.post_id = post_id


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(ThreadLensError)
    async def handle_thread_lens_error(_request: Request, exc: ThreadLensError):
        return JSONResponse({"error": str(exc), "fix": exc.fix}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)
