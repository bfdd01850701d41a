"""
HTTP service for posting listings.

Endpoints:
- GET  /        Web form
- POST /post    Scrape a listing URL and post it
- POST /manual  Post manually entered listing details
- GET  /status  Platform readiness
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from pathlib import Path
import time

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, ConfigDict, Field

from .config import AppConfig
from .errors import FetchError
from .logging_utils import get_logger, log_event
from .platforms.base import PlatformClient
from .platforms.factory import create_clients
from .runner import close_clients, platform_status, process_listing, process_manual


class PostRequest(BaseModel):
    """Body of POST /post."""

    model_config = ConfigDict(populate_by_name=True)

    source_url: str = Field(alias="sourceUrl")
    custom_message: str = Field(default="", alias="customMessage")


class ManualRequest(BaseModel):
    """Body of POST /manual."""

    model_config = ConfigDict(populate_by_name=True)

    source_url: str = Field(alias="sourceUrl")
    title: str = ""
    description: str = ""
    price: str = ""
    custom_message: str = Field(default="", alias="customMessage")


def _render_index(cfg: AppConfig) -> str:
    env = Environment(
        loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("index.html")
    return template.render(categories=sorted(cfg.routing.mappings))


def create_app(
    cfg: AppConfig,
    clients: dict[str, PlatformClient] | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Platform clients are created from config unless given, connected at
    startup and closed at shutdown.
    """
    logger = logger or get_logger("server")
    platform_clients = clients if clients is not None else create_clients(cfg.platforms)
    started = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_event(logger, "Starting listing poster service", event="server_start")
        status = await platform_status(platform_clients)
        log_event(logger, f"Platform status: {status}", event="platform_status", status=status)
        try:
            yield
        finally:
            log_event(logger, "Shutting down listing poster service", event="server_stop")
            await close_clients(platform_clients)

    app = FastAPI(title="Listing Poster", lifespan=lifespan)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return _render_index(cfg)

    @app.post("/post")
    async def post(body: PostRequest):
        try:
            result = await process_listing(body.source_url, body.custom_message, cfg, platform_clients, logger=logger)
        except FetchError as exc:
            log_event(logger, f"Posting error: {exc}", level=logging.ERROR, event="post_failed", url=body.source_url)
            return JSONResponse(status_code=502, content={"success": False, "error": str(exc)})
        return {"success": True, "result": result.to_dict()}

    @app.post("/manual")
    async def manual(body: ManualRequest):
        result = await process_manual(
            body.source_url,
            body.title,
            body.description,
            body.price,
            body.custom_message,
            cfg,
            platform_clients,
            logger=logger,
        )
        return {"success": True, "result": result.to_dict()}

    @app.get("/status")
    async def status():
        return {
            "platforms": await platform_status(platform_clients),
            "uptime": round(time.monotonic() - started, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
