"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timetracker.config import settings
from timetracker.database import database
from timetracker.routers import (
    activities,
    auth,
    customers,
    project_activities,
    projects,
    stats,
    ticket_systems,
    time_bookings,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    await database.connect()
    yield
    await database.disconnect()


app = FastAPI(
    title="Time Tracker API",
    description="Time bookings for customers and projects, synced with ticket system worklogs",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(customers.router)
app.include_router(activities.router)
app.include_router(ticket_systems.router)
app.include_router(projects.router)
app.include_router(project_activities.router)
app.include_router(time_bookings.router)
app.include_router(stats.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Time Tracker API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
