"""FastAPI server exposing cached profiles, posts and threads."""
import logging
import secrets

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse

from thread_lens.config import settings
from thread_lens.errors import register_error_handlers
from thread_lens.platforms.x.source import XSource
from thread_lens.service import ThreadLensService

logger = logging.getLogger(__name__)


def get_service(request: Request) -> ThreadLensService:
    return request.app.state.service


def _clean_name(twitter_name: str) -> str:
    return twitter_name.lstrip("@")


def create_app(service: ThreadLensService | None = None) -> FastAPI:
    """Build the app around a single service instance.

    Without an explicit service one is built from ``settings``.
    """
    if service is None:
        service = ThreadLensService(
            XSource(settings.camofox_url, settings.nitter_instance),
            max_posts=settings.max_posts,
        )

    app = FastAPI(title="thread-lens API")
    app.state.service = service

    app.add_middleware(GZipMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request.state.request_id = secrets.token_hex(3)
        logger.info(
            "[%s] ↘ Request Received — %s %s",
            request.state.request_id, request.method, request.url.path,
        )
        return await call_next(request)

    register_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    def health():
        """Liveness check, no upstream calls."""
        return "\U0001f44d"

    @app.get("/profile/{twitter_name}")
    async def profile(twitter_name: str, svc: ThreadLensService = Depends(get_service)):
        result = await svc.get_cached_or_fetch("profile", _clean_name(twitter_name))
        return {"cache": result.cache, "profile": result.data}

    @app.get("/tweets/{twitter_name}")
    async def tweets(twitter_name: str, svc: ThreadLensService = Depends(get_service)):
        result = await svc.get_cached_or_fetch("tweets", _clean_name(twitter_name))
        return {"cache": result.cache, "tweets": result.data}

    @app.get("/threads/{twitter_name}")
    async def threads(twitter_name: str, svc: ThreadLensService = Depends(get_service)):
        result = await svc.get_cached_or_fetch("threads", _clean_name(twitter_name))
        return {"cache": result.cache, "threads": result.data}

    return app
