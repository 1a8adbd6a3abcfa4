"""FastAPI application for the committee tracker front-end."""

import hashlib
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from committee.api import contributions, members
from committee.config import Settings, get_settings
from committee.services.contribution_service import ContributionMatrixEngine
from committee.services.directory_client import MemberDirectoryClient
from committee.services.locale_service import configure_locale
from committee.services.localizer import get_translations, use_locale
from committee.services.member_service import MemberService

logger = logging.getLogger(__name__)

STATIC_PATH = Path(__file__).parent.parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the directory client on shutdown."""
    logger.info("Directory service at %s", app.state.directory_client.base_url)
    yield
    await app.state.directory_client.aclose()
    logger.info("Application shutting down")


def create_app(
    settings: Settings | None = None,
    client: MemberDirectoryClient | None = None,
) -> FastAPI:
    """Build the API app with its directory client and matrix engine.

    Args:
        settings: Configuration (default: read from environment)
        client: Directory client to use instead of one built from settings
    """
    settings = settings or get_settings()
    client = client or MemberDirectoryClient.from_settings(settings)
    use_locale(configure_locale(settings.locale))

    app = FastAPI(
        title=settings.api_title,
        description="Committee members and monthly contribution schedule",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.directory_client = client
    app.state.member_service = MemberService(client)
    app.state.engine = ContributionMatrixEngine(
        client,
        month=settings.default_month.value,
        concurrency=settings.reconcile_concurrency,
        max_batch=settings.reconcile_max_batch,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(members.router)
    app.include_router(contributions.router)

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint for monitoring."""
        return {"status": "ok"}

    @app.get("/api/translations")
    async def translations(request: Request) -> Response:
        """UI strings, cacheable by ETag."""
        body = json.dumps(get_translations(), ensure_ascii=False, sort_keys=True)
        etag = '"' + hashlib.sha256(body.encode("utf-8")).hexdigest()[:32] + '"'
        headers = {"Cache-Control": "public, max-age=3600", "ETag": etag}
        if request.headers.get("If-None-Match") == etag:
            return Response(status_code=304, headers=headers)
        return Response(content=body, media_type="application/json", headers=headers)

    if STATIC_PATH.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_PATH), html=True), name="static")
        logger.info(f"Mounted static files from {STATIC_PATH}")

    return app


__all__ = ["create_app", "lifespan"]
