"""
Jira issue fetching.

Two halves:

  fetch_upstream_issue()  : server side: one GET against the Jira REST API,
                            used by the proxy router. The response is returned
                            untouched so the router can relay it.
  fetch_jira_issue()      : client side: fetches an issue through the proxy
                            and converts it to a JiraIssueResult with plain
                            text and an optional acceptance-criteria excerpt.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.models.jira import JiraIssueResult
from app.services.adf import adf_to_text, extract_acceptance_criteria
from app.services.jira_auth import basic_auth_header

logger = logging.getLogger(__name__)

UPSTREAM_TIMEOUT_SECONDS = 30.0
TARGET_URL_HEADER = "X-Jira-Target-Url"

# Same unreserved set as JavaScript's encodeURIComponent
_KEY_SAFE_CHARS = "-_.!~*'()"


class UpstreamUnreachable(Exception):
    """The Jira API could not be reached (DNS, connect, timeout, TLS...)."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Could not reach Jira at {url}: {cause}")


class JiraProxyError(Exception):
    """The proxy answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Jira error {status_code}: {body}")


def encode_issue_key(key: str) -> str:
    return quote(key, safe=_KEY_SAFE_CHARS)


def issue_url(base_url: str, key: str) -> str:
    """Return the Jira REST v3 URL for a single issue."""
    return f"{base_url.rstrip('/')}/rest/api/3/issue/{encode_issue_key(key)}"


# ---------------------------------------------------------------------------
# Server side
# ---------------------------------------------------------------------------

async def fetch_upstream_issue(
    client: httpx.AsyncClient,
    url: str,
    authorization: str,
) -> httpx.Response:
    """
    GET a Jira issue. Non-2xx responses are returned, not raised.

    Raises:
        UpstreamUnreachable: on any transport-level failure.
    """
    try:
        return await client.get(
            url,
            headers={
                "Authorization": authorization,
                "Accept": "application/json",
            },
        )
    except httpx.HTTPError as exc:
        raise UpstreamUnreachable(url, exc) from exc


# ---------------------------------------------------------------------------
# Client side
# ---------------------------------------------------------------------------

def issue_result_from_payload(
    data: Any,
    issue_key: str,
    acceptance_field: Optional[str] = None,
    target_url: Optional[str] = None,
) -> JiraIssueResult:
    """
    Convert a Jira issue JSON payload into a JiraIssueResult.

    The description may be ADF or (Jira Server) a plain string. When
    acceptance_field names a populated custom field, its value is used as
    the acceptance criteria; otherwise the description is searched for an
    "Acceptance Criteria" section.
    """
    data = data if isinstance(data, dict) else {}
    fields = data.get("fields")
    fields = fields if isinstance(fields, dict) else {}

    description = fields.get("description")
    description_text = description if isinstance(description, str) else adf_to_text(description)

    field_value = fields.get(acceptance_field) if acceptance_field else None
    acceptance = extract_acceptance_criteria(description_text, field_value)

    return JiraIssueResult(
        key=data.get("key") or issue_key,
        summary=fields.get("summary") or "",
        description_text=description_text,
        acceptance_criteria=acceptance,
        target_url=target_url,
    )


async def fetch_jira_issue(
    issue_key: str,
    *,
    api_base: str = "http://localhost:8080/api",
    http_client: Optional[httpx.AsyncClient] = None,
    forward_basic: bool = False,
    email: Optional[str] = None,
    api_token: Optional[str] = None,
    acceptance_field: Optional[str] = None,
) -> JiraIssueResult:
    """
    Fetch an issue through the proxy and flatten it to plain text.

    Args:
        issue_key: Jira issue key, e.g. "PROJ-123".
        api_base: Base URL of the proxy API (".../api").
        http_client: Optional client to reuse; one is created otherwise.
        forward_basic: Dev only. Send Basic credentials to the proxy for
            when the server has none configured.
        email, api_token: Credentials used when forward_basic is set.
        acceptance_field: Jira field id holding acceptance criteria.

    Raises:
        JiraProxyError: when the proxy answers with a non-2xx status.
    """
    url = f"{api_base.rstrip('/')}/jira/issue/{encode_issue_key(issue_key)}"
    logger.debug("[Jira] Fetch via backend proxy: %s", url)

    headers = {"Accept": "application/json"}
    if forward_basic and email and api_token:
        headers["Authorization"] = basic_auth_header(email, api_token)

    if http_client is None:
        async with httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT_SECONDS) as client:
            response = await client.get(url, headers=headers)
    else:
        response = await http_client.get(url, headers=headers)

    if not response.is_success:
        raise JiraProxyError(response.status_code, response.text or response.reason_phrase)

    return issue_result_from_payload(
        response.json(),
        issue_key,
        acceptance_field=acceptance_field,
        target_url=response.headers.get(TARGET_URL_HEADER),
    )
