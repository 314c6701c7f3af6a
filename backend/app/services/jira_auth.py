"""
Authorization resolution for the Jira proxy.

Decides, per request, which Authorization header to send upstream.

Precedence (first match wins):
  0. No JIRA_BASE_URL            -> MissingBaseUrl
  1. Caller-supplied header      -> used verbatim when it starts with
                                    "Basic " or "Bearer " and the config
                                    allows client overrides
  2. JIRA_AUTH_TYPE=basic        -> Basic base64(email:token)
     JIRA_AUTH_TYPE=bearer       -> Bearer <token>
     anything else               -> UnsupportedAuthScheme

Every failure is a JiraConfigError with a fixed, non-sensitive message that
the router returns as-is with HTTP 500.
"""

import base64
import logging
from typing import Optional

from app.models.jira import JiraConfig

logger = logging.getLogger(__name__)

_OVERRIDE_PREFIXES = ("Basic ", "Bearer ")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class JiraConfigError(Exception):
    """Server-side Jira configuration is missing or invalid."""

    kind = "JiraConfigError"
    status_code = 500
    message = "Jira is not configured on the server"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingBaseUrl(JiraConfigError):
    kind = "MissingBaseUrl"
    message = "JIRA_BASE_URL is not configured on the server"


class MissingBasicCredentials(JiraConfigError):
    kind = "MissingBasicCredentials"
    message = "JIRA_EMAIL/JIRA_API_TOKEN are not configured on the server"


class MissingBearerToken(JiraConfigError):
    kind = "MissingBearerToken"
    message = "JIRA_BEARER is not configured on the server"


class UnsupportedAuthScheme(JiraConfigError):
    kind = "UnsupportedAuthScheme"

    def __init__(self, scheme: str):
        self.scheme = scheme
        super().__init__(f"Unsupported JIRA_AUTH_TYPE: {scheme}")


# ---------------------------------------------------------------------------
# Header builders
# ---------------------------------------------------------------------------

def basic_auth_header(email: str, api_token: str) -> str:
    """Return "Basic " + base64 of the UTF-8 bytes of "email:token"."""
    creds = base64.b64encode(f"{email}:{api_token}".encode("utf-8")).decode("ascii")
    return f"Basic {creds}"


def bearer_auth_header(token: str) -> str:
    return f"Bearer {token}"


def is_override_header(value: Optional[str]) -> bool:
    """True when a caller header looks like a usable Basic/Bearer credential."""
    if not value:
        return False
    return value.strip().startswith(_OVERRIDE_PREFIXES)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def resolve_authorization(
    config: JiraConfig,
    client_authorization: Optional[str] = None,
) -> str:
    """
    Resolve the Authorization header for one upstream Jira call.

    Args:
        config: Server-side Jira configuration.
        client_authorization: Authorization header sent by the caller, if any.

    Returns:
        The header value to send to Jira.

    Raises:
        MissingBaseUrl, MissingBasicCredentials, MissingBearerToken,
        UnsupportedAuthScheme
    """
    if not config.base_url:
        raise MissingBaseUrl()

    if config.allow_client_auth and is_override_header(client_authorization):
        logger.warning("[jira proxy] Using client-provided Authorization header")
        return client_authorization.strip()

    scheme = (config.auth_type or "").lower()

    if scheme == "basic":
        if config.email and config.api_token:
            return basic_auth_header(config.email, config.api_token)
        raise MissingBasicCredentials()

    if scheme == "bearer":
        if config.bearer:
            return bearer_auth_header(config.bearer)
        raise MissingBearerToken()

    raise UnsupportedAuthScheme(scheme)
