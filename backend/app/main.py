"""
Jira Proxy API
FastAPI application that proxies Jira issue lookups with server-side credentials.
"""

import logging
import os
from datetime import datetime, timezone
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_jira_config, load_environment, log_jira_summary
from app.routers import jira
from app.services.jira_client import TARGET_URL_HEADER

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

load_environment()

DEFAULT_CORS_ORIGIN = "http://localhost:5173"

app = FastAPI(
    title="Jira Proxy API",
    description="Credential-injecting proxy for Jira issue lookups",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Read from the CORS_ORIGIN environment variable as a comma-separated list,
    e.g.:
        CORS_ORIGIN=http://localhost:5173,https://app.example.com

    Defaults to the Vite dev server (http://localhost:5173). "*" allows any
    origin. Duplicates are removed while preserving order.
    """
    raw = os.getenv("CORS_ORIGIN", "").strip() or DEFAULT_CORS_ORIGIN

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in raw.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


# CORS configuration: origins are resolved at startup from environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[TARGET_URL_HEADER],
)

# Include routers
app.include_router(jira.router, prefix="/api/jira", tags=["jira"])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return errors as {"error": ...} to match the proxy's error shape."""
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler. The exception is logged server side only; callers
    always get the generic message.
    """
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
async def log_startup_urls() -> None:
    """
    Log where the API is reachable and which Jira settings are present.

    Example output:

        Jira Proxy API running at:
          API:    http://localhost:8080/api
          Health: http://localhost:8080/api/health
    """
    port = os.getenv("PORT", "8080")
    logger.info(
        "Jira Proxy API running at:\n"
        "  API:    http://localhost:%s/api\n"
        "  Health: http://localhost:%s/api/health",
        port,
        port,
    )
    log_jira_summary(get_jira_config())


@app.get("/api/health")
async def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}
