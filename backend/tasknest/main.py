"""
Tasknest - collaborative task management API with nested subtasks.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from tasknest.config import get_settings
from tasknest.database import init_db
from tasknest.routes import collaboration, subtasks, tasks
from tasknest.exceptions import register_exception_handlers
from tasknest.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info(f"Starting {settings.app_name} API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info(f"Shutting down {settings.app_name} API...")


app = FastAPI(
    title=settings.app_name,
    description="Collaborative task management with nested subtasks, sharing and activity history",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(subtasks.router, prefix="/tasks/{task_id}/subtasks", tags=["Subtasks"])
app.include_router(collaboration.router, prefix="/tasks/{task_id}", tags=["Collaboration"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
