"""
Bairro - FastAPI Application

Backend of the citizen occurrence reporting app.

- Occurrence submissions and status updates from the mobile app
- Historic and public-map queries
- Resolution links emailed to parish and municipality authorities
- Photo uploads
- Periodic duplicate sweep (repeated submissions, orphaned photos)
"""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from . import config
from .database import SessionLocal, engine, init_db
from .routers import occurrences_router, resolution_router, photos_router, scheduler_router
from .services.cleanup import (
    CleanupExecutor,
    DuplicateScanner,
    DuplicateSweep,
    OrphanPhotoSweeper,
    SweepScheduler,
)
from .services.photo_store import PhotoStore
from .services.repository import OccurrenceRepository


logger = logging.getLogger(__name__)


def build_sweep_scheduler(repository: OccurrenceRepository, photo_store: PhotoStore) -> SweepScheduler:
    """Wire the cleanup services from configuration."""
    orphan_sweeper = None
    if config.ORPHAN_PHOTO_GRACE_HOURS > 0:
        orphan_sweeper = OrphanPhotoSweeper(
            repository, photo_store, grace=timedelta(hours=config.ORPHAN_PHOTO_GRACE_HOURS),
        )
    sweep = DuplicateSweep(
        scanner=DuplicateScanner(repository, photo_store, include_deleted=config.SWEEP_INCLUDE_DELETED),
        executor=CleanupExecutor(repository, photo_store, max_workers=config.SWEEP_MAX_WORKERS),
        orphan_sweeper=orphan_sweeper,
    )
    return SweepScheduler(
        sweep,
        interval=timedelta(minutes=config.SWEEP_INTERVAL_MINUTES),
        run_on_start=config.SWEEP_ON_STARTUP,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and start the duplicate sweep; stop both on exit."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()

    repository = OccurrenceRepository(SessionLocal)
    photo_store = PhotoStore(config.PHOTO_DIRECTORY)
    photo_store.ensure_root()
    scheduler = build_sweep_scheduler(repository, photo_store)

    app.state.repository = repository
    app.state.photo_store = photo_store
    app.state.sweep_scheduler = scheduler

    logger.info("Initializing timers to cleanup database")
    scheduler.start()
    yield

    logger.info("Closing duplicate sweep and db connections")
    await scheduler.stop(grace_seconds=config.SHUTDOWN_GRACE_SECONDS)
    engine.dispose()
    logger.info("DB pool of connections closed successfully")


# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Bairro",
    description="""
    Bairro - Citizen Occurrence Reporting Backend

    Citizens report municipal issues (location, photos, anomaly) from the
    mobile app; parish and municipality authorities confirm resolution
    through emailed links.

    ## Cleanup
    Every sweep marks repeated submissions as deleted by the system and
    removes their photos, then removes photos no occurrence references.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # the app runs from a file:// webview
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(occurrences_router)
app.include_router(resolution_router)
app.include_router(photos_router)
app.include_router(scheduler_router)


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint - liveness for the app."""
    return "Server online"


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m bairro.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3045)
