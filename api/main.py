"""
NGINX Registry API

Keeps a fleet's reverse-proxy configuration in step with a registry of
machines and sites: reconciles existing nginx files on disk against the
registry and generates new files from templates.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import (
    ensure_directories,
    get_output_dir_path,
    get_scan_dir_path,
    get_template_dir_path,
    settings,
)
from core.request_logger import RequestLoggerMiddleware
from endpoints import machines, nginx

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("NGINX Registry API starting up...")

    # Ensure required directories exist
    ensure_directories()

    # Initialize database
    from core.database import initialize_database

    await initialize_database()
    logger.info("Database initialized")

    yield

    logger.info("NGINX Registry API shutting down...")


app = FastAPI(
    title="NGINX Registry API",
    description="""
    ## Purpose

    Register the nginx virtual hosts running across a fleet of machines.

    - **Reconcile** a directory of existing nginx files against the registry
    - **Generate** new nginx files from templates and register them
    - **Inspect** registered files and the machines they point at
    """,
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Include API routers
app.include_router(machines.router)
app.include_router(nginx.router)

# Request logging middleware
app.add_middleware(RequestLoggerMiddleware)

# CORS middleware, restricted to configured origins outside debug mode
_cors_origins = (
    [o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip()]
    if settings.cors_allowed_origins
    else ["*"]
    if settings.api_debug
    else []
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(
    "/",
    summary="API Health Check",
    description="Basic health check endpoint to verify the API is running.",
    tags=["Health"],
)
async def root():
    return {
        "message": "NGINX Registry API is running",
        "version": API_VERSION,
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "docs_url": "/docs",
    }


@app.get(
    "/health",
    summary="Detailed Health Check",
    description="Registry counts and the state of the configured directories.",
    tags=["Health"],
)
async def health_check():
    """
    Detailed health check.

    Reports whether the scan and template directories exist and how many
    machines and nginx files are registered. A database failure marks the
    API as degraded instead of failing the request.
    """
    from core.database import get_database

    registry = {"status": "ok", "machines": 0, "nginx_files": 0}
    try:
        db = get_database()
        registry["machines"] = await db.count("machines")
        registry["nginx_files"] = await db.count("nginx_files")
    except Exception as e:
        logger.warning(f"Failed to read registry counts: {e}")
        registry = {"status": "error", "message": str(e)}

    directories = {
        name: {"path": str(path), "exists": path.is_dir()}
        for name, path in [
            ("scan_dir", get_scan_dir_path()),
            ("template_dir", get_template_dir_path()),
            ("sites_available_dir", get_output_dir_path("sites-available")),
            ("conf_d_dir", get_output_dir_path("conf.d")),
        ]
    }

    return {
        "status": "healthy" if registry["status"] == "ok" else "degraded",
        "timestamp": datetime.now().isoformat(),
        "api": {"status": "running", "version": API_VERSION},
        "registry": registry,
        "directories": directories,
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port, reload=True, log_level="info")
