"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from myhive import __version__
from myhive.config import get_settings
from myhive.db.database import Database, init_db
from myhive.errors import MyHiveError
from myhive.scheduler.triggers import start_maintenance_scheduler

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events.

    Opens the store handle, starts the maintenance scheduler, and releases
    both on shutdown.

    Args:
        app: FastAPI application instance.
    """
    # Startup
    database = Database.from_url(settings.database_url, echo=settings.debug)
    app.state.database = database
    init_db(database, settings)
    trigger = start_maintenance_scheduler(database, settings)
    yield
    # Shutdown
    if trigger is not None:
        trigger.stop()
    database.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant beekeeping management API",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MyHiveError)
async def myhive_error_handler(request: Request, exc: MyHiveError):
    """Map domain errors to JSON responses.

    Args:
        request: FastAPI request object.
        exc: The raised domain error.

    Returns:
        JSONResponse: ``{"detail": message}`` with the error's status code.
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Import and include routers
from myhive.activity.router import router as activity_router
from myhive.apiaries.router import router as apiaries_router
from myhive.hives.router import router as hives_router
from myhive.inspections.router import router as inspections_router
from myhive.maintenance.router import router as maintenance_router
from myhive.sync.router import router as sync_router
from myhive.tasks.router import router as tasks_router

app.include_router(apiaries_router, prefix="/api/apiaries", tags=["apiaries"])
app.include_router(hives_router, prefix="/api/hives", tags=["hives"])
app.include_router(inspections_router, prefix="/api/inspections", tags=["inspections"])
app.include_router(tasks_router, prefix="/api/tasks", tags=["tasks"])
app.include_router(maintenance_router, prefix="/api/maintenance", tags=["maintenance"])
app.include_router(sync_router, prefix="/api/sync", tags=["sync"])
app.include_router(activity_router, prefix="/api/activity", tags=["activity"])


@app.get("/health")
async def health_check():
    """Health check endpoint for Docker/Kubernetes.

    Returns:
        dict: Health status.
    """
    return {"status": "healthy", "app": settings.app_name}
