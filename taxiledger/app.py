"""
Taxi Ledger - FastAPI Application
Serves the backup, export and restore operations over HTTP.

Run with:
    uvicorn taxiledger.app:app --reload --host 0.0.0.0 --port 8001
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taxiledger import __version__, config
from taxiledger.core.logging import configure_logging
from taxiledger.database import init_db
from taxiledger.routers.backup import router as backup_router

configure_logging()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs once on startup, yields for the lifetime of the app."""
    logger.info("Initialising database...")
    init_db()
    logger.info("Database ready.")

    yield


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Taxi Ledger",
    version=__version__,
    description="Backup, export and restore for a taxi driver's trips, expenses and shifts",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "path": request.url.path,
        },
    )


app.include_router(backup_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}
