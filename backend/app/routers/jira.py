"""
Jira proxy router.

Forwards single-issue lookups from the browser to the Jira REST API using
server-side credentials, so the browser never calls Jira directly.

Endpoints:
  GET /issue/{key}   relays GET {JIRA_BASE_URL}/rest/api/3/issue/{key}

The upstream status, body and content-type are passed through unchanged
(including Jira 4xx/5xx responses) so the client can read Jira's own error
payloads. The exact upstream URL is returned in X-Jira-Target-Url.
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, Response

from app.config import get_jira_config
from app.models.jira import JiraConfig
from app.services.jira_auth import JiraConfigError, resolve_authorization
from app.services.jira_client import (
    TARGET_URL_HEADER,
    UPSTREAM_TIMEOUT_SECONDS,
    fetch_upstream_issue,
    issue_url,
)

logger = logging.getLogger(__name__)

router = APIRouter()

FETCH_FAILED_MESSAGE = "Failed to fetch Jira issue"


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Per-request HTTP client for the upstream Jira call."""
    async with httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT_SECONDS) as client:
        yield client


@router.get(
    "/issue/{key}",
    responses={
        200: {"description": "Jira response relayed verbatim"},
        500: {
            "description": "Jira is not configured on the server, or the call failed",
            "content": {
                "application/json": {
                    "example": {"error": "JIRA_BASE_URL is not configured on the server"}
                }
            },
        },
    },
)
async def get_issue(
    key: str,
    authorization: Optional[str] = Header(None),
    config: JiraConfig = Depends(get_jira_config),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Proxy a single Jira issue.

    An Authorization header starting with "Basic " or "Bearer " is forwarded
    as-is when JIRA_ALLOW_CLIENT_AUTH is enabled; otherwise server-side
    credentials are used.
    """
    try:
        auth_header = resolve_authorization(config, authorization)
    except JiraConfigError as exc:
        logger.error("[jira proxy] %s: %s", exc.kind, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    url = issue_url(config.base_url, key)

    try:
        upstream = await fetch_upstream_issue(client, url, auth_header)
    except Exception as exc:
        logger.error("[jira proxy] error: %s", exc)
        return JSONResponse(status_code=500, content={"error": FETCH_FAILED_MESSAGE})

    # Passed as a header, not media_type, so Starlette does not add a charset.
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            "content-type": upstream.headers.get("content-type") or "application/json",
            TARGET_URL_HEADER: url,
        },
    )
