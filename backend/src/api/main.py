"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers
from .routes import graph, links, notes, system, topics
from ..services.config import get_config
from ..services.seed import init_and_seed

logger = logging.getLogger(__name__)

config = get_config()

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger().setLevel(config.log_level)
system.install_memory_handler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    logger.info("Running startup: initializing database...")
    try:
        init_and_seed(config=config)
        logger.info("Startup complete: database ready")
    except Exception as exc:
        logger.exception("Startup failed: %s", exc)
        logger.error("App starting without demo data due to initialization error")
    yield


app = FastAPI(
    title="Note Graph API",
    description="Topic-rooted prerequisite graphs over a personal knowledge base",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(topics.router, tags=["topics"])
app.include_router(notes.router, tags=["notes"])
app.include_router(links.router, tags=["links"])
app.include_router(graph.router, tags=["graph"])
app.include_router(system.router, tags=["system"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
