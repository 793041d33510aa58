"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kbtracker import __version__
from kbtracker.config import get_settings
from kbtracker.api import api_router
from kbtracker.services.session_store import get_session_store

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name} (max {settings.max_live_sessions} live sessions)")
    yield
    store = get_session_store()
    logger.info(f"Shutting down {settings.app_name}, dropping {len(store)} live sessions")
    store.clear()


app = FastAPI(
    title=settings.app_name,
    description="""
    Kettlebell Velocity Tracker API
    
    Turns a per-frame stream of pose landmarks into classified kettlebell
    reps (clean, press, snatch, swing), each tagged with its peak velocity.
    
    ## Flow
    
    1. Open a session with the stream's frame height
    2. Post every frame's landmarks with a monotonic timestamp
    3. The first ~30 frames calibrate pixels-to-meters; stand still
    4. The lower hand is locked as the working side
    5. Each frame returns live velocity and, on lockout, the classified rep
    """,
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": __version__,
        "live_sessions": len(get_session_store())
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }
