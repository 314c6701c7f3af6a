"""
Environment configuration.

Values are loaded from .env files with python-dotenv. The project-root .env is
loaded first and backend/.env second, both with override=True, so backend
settings win over root settings and over anything already in the process
environment.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values, load_dotenv

from app.models.jira import JiraConfig

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BACKEND_DIR.parent

_TRUTHY = {"1", "true", "yes", "on"}


def load_environment(
    root_env: Optional[Path] = None,
    backend_env: Optional[Path] = None,
) -> None:
    """
    Load root and backend .env files into os.environ.

    If JIRA_API_TOKEN is still empty afterwards (e.g. the root file has a
    formatting quirk that load_dotenv skipped), try to recover it from the
    parsed values of the root .env.
    """
    root_env = root_env or PROJECT_ROOT / ".env"
    backend_env = backend_env or BACKEND_DIR / ".env"

    for path in (root_env, backend_env):
        logger.info("[env] %s exists=%s", path, path.exists())
        if path.exists():
            load_dotenv(path, override=True)

    if not os.environ.get("JIRA_API_TOKEN") and root_env.exists():
        token = (dotenv_values(root_env).get("JIRA_API_TOKEN") or "").strip()
        if token:
            os.environ["JIRA_API_TOKEN"] = token
            logger.info("[env] JIRA_API_TOKEN recovered from %s", root_env)


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def jira_config_from_mapping(env: Mapping[str, str]) -> JiraConfig:
    """Build a JiraConfig from a flat string mapping (os.environ by default)."""
    return JiraConfig(
        base_url=env.get("JIRA_BASE_URL") or "",
        auth_type=env.get("JIRA_AUTH_TYPE") or "basic",
        email=env.get("JIRA_EMAIL") or "",
        api_token=env.get("JIRA_API_TOKEN") or "",
        bearer=env.get("JIRA_BEARER") or "",
        allow_client_auth=_flag(env.get("JIRA_ALLOW_CLIENT_AUTH"), True),
        acceptance_field=env.get("JIRA_ACCEPTANCE_FIELD") or None,
    )


@lru_cache
def get_jira_config() -> JiraConfig:
    """
    FastAPI dependency returning the Jira configuration.

    Read once per process; tests override the dependency instead of
    touching os.environ.
    """
    return jira_config_from_mapping(os.environ)


def log_jira_summary(config: JiraConfig) -> None:
    """Log which Jira settings are present. Never logs secret values."""
    logger.info("[Jira env] JIRA_BASE_URL SET: %s", bool(config.base_url))
    logger.info("[Jira env] JIRA_AUTH_TYPE: %s", config.auth_type)
    logger.info("[Jira env] JIRA_EMAIL SET: %s", bool(config.email))
    logger.info("[Jira env] JIRA_API_TOKEN SET: %s", bool(config.api_token))
    logger.info("[Jira env] JIRA_BEARER SET: %s", bool(config.bearer))
    logger.info("[Jira env] client Authorization override: %s", config.allow_client_auth)
