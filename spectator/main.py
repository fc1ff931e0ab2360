"""Spectator FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from spectator import config
from spectator.observability import initialize as initialize_observability, shutdown as shutdown_observability
from spectator.routers.api import file_history_router, health_router, sessions_router
from spectator.session_store import get_session_store

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("spectator")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Spectator starting up")
    initialize_observability(app)
    store = get_session_store()
    logger.info(f"Session roots: {store.settings.roots}")
    yield
    logger.info("Spectator shutting down")
    store.clear_cache()
    shutdown_observability(app)


app = FastAPI(
    title="Spectator API",
    description="Browse Claude Code session transcripts as a categorized timeline",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(sessions_router)
app.include_router(file_history_router)

_assets_dir = config.STATIC_DIR / "assets"
if _assets_dir.is_dir():
    app.mount("/assets", StaticFiles(directory=str(_assets_dir)), name="assets")


@app.get("/{full_path:path}", include_in_schema=False)
def serve_index(full_path: str):
    """Serve the built single-page app for every non-API route."""
    index_path = config.STATIC_DIR / "index.html"
    try:
        return HTMLResponse(index_path.read_text(encoding="utf-8"))
    except OSError:
        return PlainTextResponse("Build not found. Run `npm run build` first.", status_code=404)
