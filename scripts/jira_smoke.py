#!/usr/bin/env python3
"""
Dev helper: fetch one Jira issue directly and report on its description.

Calls the Jira REST API with the same credential rules the proxy uses, then
flattens the description and checks it for "User Story" and "Acceptance
Criteria" sections.

Usage
-----
# Issue key as a positional argument
python scripts/jira_smoke.py PROJ-123

# Or as a flag (wins over the positional argument)
python scripts/jira_smoke.py --issue PROJ-123

# Or via environment
ISSUE_KEY=PROJ-123 python scripts/jira_smoke.py

# Override the base URL
python scripts/jira_smoke.py PROJ-123 --base-url https://your-domain.atlassian.net

Environment / .env
------------------
JIRA_BASE_URL     Jira site, e.g. https://your-domain.atlassian.net (required)
JIRA_AUTH_TYPE    basic (default) or bearer
JIRA_EMAIL        Account email for basic auth
JIRA_API_TOKEN    API token for basic auth
JIRA_BEARER       Token for bearer auth
JIRA_ISSUE_KEY    Issue key (ISSUE_KEY is also accepted)

Values already in the environment win over those in the project-root .env.
Exits 0 on success, 1 on any failure.
"""

import argparse
import json
import os
import sys
import textwrap
from pathlib import Path
from typing import Mapping, Optional

import httpx
from dotenv import dotenv_values

from app.config import jira_config_from_mapping
from app.models.jira import DescriptionCheck
from app.services.adf import adf_to_text, has_acceptance_criteria, has_user_story
from app.services.jira_auth import JiraConfigError, resolve_authorization
from app.services.jira_client import UPSTREAM_TIMEOUT_SECONDS, issue_url

PREVIEW_CHARS = 400


def _fail(message: str) -> int:
    print(f"[jira-smoke] ERROR: {message}", file=sys.stderr)
    return 1


def _info(message: str) -> None:
    print(f"[jira-smoke] {message}")


def _merged_env(project_root: Path) -> dict:
    """Process environment layered over the project-root .env."""
    merged: dict = {}
    env_file = project_root / ".env"
    if env_file.exists():
        merged.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    merged.update(os.environ)
    return {k: v.strip() for k, v in merged.items()}


def _resolve_issue_key(cli_key: Optional[str], env: Mapping[str, str]) -> str:
    return (cli_key or env.get("JIRA_ISSUE_KEY") or env.get("ISSUE_KEY") or "").strip()


def build_check(data: dict, issue_key: str) -> DescriptionCheck:
    """Summarize an issue payload for the smoke report."""
    fields = data.get("fields")
    fields = fields if isinstance(fields, dict) else {}
    adf = fields.get("description")
    description_text = adf_to_text(adf)
    return DescriptionCheck(
        key=data.get("key") or issue_key,
        summary=fields.get("summary") or "",
        has_description=bool(adf),
        contains_user_story_section=has_user_story(description_text),
        contains_acceptance_criteria_section=has_acceptance_criteria(description_text),
        description_preview=description_text[:PREVIEW_CHARS],
    )


def run(
    issue_key: str,
    env: Mapping[str, str],
    client: Optional[httpx.Client] = None,
) -> int:
    config = jira_config_from_mapping(env)

    try:
        auth_header = resolve_authorization(config)
    except JiraConfigError as exc:
        return _fail(exc.message)

    if not issue_key:
        return _fail("ISSUE_KEY (or argv[1]) is required")

    url = issue_url(config.base_url, issue_key)
    _info(f"Fetching: {url}")

    try:
        if client is None:
            with httpx.Client(timeout=UPSTREAM_TIMEOUT_SECONDS) as owned:
                response = owned.get(url, headers={"Authorization": auth_header, "Accept": "application/json"})
        else:
            response = client.get(url, headers={"Authorization": auth_header, "Accept": "application/json"})
    except httpx.HTTPError as exc:
        return _fail(f"Request failed: {exc}")

    if not response.is_success:
        print(f"[jira-smoke] HTTP {response.status_code} {response.reason_phrase}", file=sys.stderr)
        print(response.text, file=sys.stderr)
        return 1

    try:
        data = response.json()
    except ValueError:
        return _fail(f"Response from {url} is not JSON")
    if not isinstance(data, dict):
        return _fail(f"Unexpected response from {url}: expected a JSON object")

    check = build_check(data, issue_key)
    _info(f"Success. key={check.key} summary={json.dumps(check.summary)}")
    print(json.dumps(check.model_dump(by_alias=True), indent=2))
    return 0


def main(argv: Optional[list] = None) -> int:
    script_dir = Path(__file__).resolve().parent
    project_root = script_dir.parent

    parser = argparse.ArgumentParser(
        prog="jira_smoke.py",
        description=textwrap.dedent("""\
            Fetch a Jira issue with server-side credentials and check its
            description for User Story / Acceptance Criteria sections.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/jira_smoke.py PROJ-123
              python scripts/jira_smoke.py --issue PROJ-123
              ISSUE_KEY=PROJ-123 python scripts/jira_smoke.py
        """),
    )
    parser.add_argument("issue_key", nargs="?", default=None, help="Jira issue key, e.g. PROJ-123")
    parser.add_argument(
        "--issue",
        default=None,
        metavar="KEY",
        help="Jira issue key; takes precedence over the positional argument",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Override JIRA_BASE_URL",
    )
    args = parser.parse_args(argv)

    env = _merged_env(project_root)
    if args.base_url:
        env["JIRA_BASE_URL"] = args.base_url

    return run(_resolve_issue_key(args.issue or args.issue_key, env), env)


if __name__ == "__main__":
    sys.exit(main())
