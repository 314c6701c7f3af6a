"""
Pydantic models for the Jira proxy and issue client.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class JiraConfig(BaseModel):
    """
    Server-side Jira credentials, read once at startup.

    Empty strings mean "not configured". The model is frozen so a single
    instance can be shared across requests.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    auth_type: str = "basic"
    email: str = ""
    api_token: str = ""
    bearer: str = ""
    # Lets a caller supply its own Authorization header when server-side
    # credentials are intentionally absent (local development).
    allow_client_auth: bool = True
    acceptance_field: Optional[str] = None

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("auth_type")
    @classmethod
    def normalize_auth_type(cls, v: str) -> str:
        return (v or "basic").strip().lower()


class JiraIssueResult(BaseModel):
    """Plain-text view of a Jira issue, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    summary: str = ""
    description_text: str = ""
    acceptance_criteria: Optional[str] = None
    target_url: Optional[str] = None


class DescriptionCheck(BaseModel):
    """Smoke-check report for an issue description."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    summary: str = ""
    has_description: bool = False
    contains_user_story_section: bool = False
    contains_acceptance_criteria_section: bool = False
    description_preview: str = ""
