"""FastAPI application entry point."""

import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mailstock.api import categories, events, items, settings as settings_api, weekly
from mailstock.config import get_settings
from mailstock.database import init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Local SQLite databases are created on the fly; deployed ones use alembic
    if settings.is_development:
        init_db()
    # Single writer lock for this process: each ledger upsert and its
    # current-week recompute are applied as one unit
    app.state.write_lock = threading.RLock()
    yield


app = FastAPI(
    title="Mailstock API",
    description="Weekly mail inventory with ledger reconciliation and carried-over stock",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development dashboards
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routers
app.include_router(events.router)
app.include_router(items.router)
app.include_router(weekly.router)
app.include_router(categories.router)
app.include_router(settings_api.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
