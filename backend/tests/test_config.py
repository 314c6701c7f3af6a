"""
Configuration loading tests.
Tests building JiraConfig from a flat mapping and .env file precedence.
"""

import logging
import os

import pytest

from app.config import (
    get_jira_config,
    jira_config_from_mapping,
    load_environment,
    log_jira_summary,
)

_JIRA_KEYS = (
    "JIRA_BASE_URL",
    "JIRA_AUTH_TYPE",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
    "JIRA_BEARER",
    "JIRA_ALLOW_CLIENT_AUTH",
    "JIRA_ACCEPTANCE_FIELD",
)


@pytest.fixture()
def clean_env(monkeypatch):
    """
    Remove Jira settings from the process environment for one test.

    setenv first so monkeypatch records the original state and also undoes
    anything load_dotenv writes during the test.
    """
    for key in _JIRA_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    get_jira_config.cache_clear()
    yield monkeypatch
    get_jira_config.cache_clear()


class TestJiraConfigFromMapping:

    def test_empty_mapping_gives_unconfigured_defaults(self):
        config = jira_config_from_mapping({})

        assert config.base_url == ""
        assert config.auth_type == "basic"
        assert config.email == ""
        assert config.api_token == ""
        assert config.bearer == ""
        assert config.allow_client_auth is True
        assert config.acceptance_field is None

    def test_values_are_read(self):
        config = jira_config_from_mapping({
            "JIRA_BASE_URL": "https://x.atlassian.net/",
            "JIRA_AUTH_TYPE": "Bearer",
            "JIRA_EMAIL": "a@b.com",
            "JIRA_API_TOKEN": "tok",
            "JIRA_BEARER": "pat",
            "JIRA_ACCEPTANCE_FIELD": "customfield_10034",
        })

        assert config.base_url == "https://x.atlassian.net"
        assert config.auth_type == "bearer"
        assert config.email == "a@b.com"
        assert config.api_token == "tok"
        assert config.bearer == "pat"
        assert config.acceptance_field == "customfield_10034"

    def test_empty_auth_type_defaults_to_basic(self):
        assert jira_config_from_mapping({"JIRA_AUTH_TYPE": ""}).auth_type == "basic"

    @pytest.mark.parametrize(
        "raw,expected",
        [("false", False), ("0", False), ("no", False), ("true", True), ("1", True), ("", True)],
    )
    def test_allow_client_auth_flag(self, raw, expected):
        config = jira_config_from_mapping({"JIRA_ALLOW_CLIENT_AUTH": raw})

        assert config.allow_client_auth is expected

    def test_config_is_immutable(self):
        config = jira_config_from_mapping({"JIRA_BASE_URL": "https://x"})

        with pytest.raises(Exception):
            config.base_url = "https://other"


class TestGetJiraConfig:

    def test_reads_process_environment(self, clean_env):
        clean_env.setenv("JIRA_BASE_URL", "https://env.atlassian.net")
        clean_env.setenv("JIRA_EMAIL", "env@b.com")

        config = get_jira_config()

        assert config.base_url == "https://env.atlassian.net"
        assert config.email == "env@b.com"

    def test_read_once_per_process(self, clean_env):
        clean_env.setenv("JIRA_BASE_URL", "https://first")
        first = get_jira_config()
        clean_env.setenv("JIRA_BASE_URL", "https://second")

        assert get_jira_config() is first


class TestLoadEnvironment:
    """Root .env is loaded first, backend .env second, both overriding."""

    def test_backend_env_overrides_root_env(self, clean_env, tmp_path):
        root = tmp_path / "root.env"
        backend = tmp_path / "backend.env"
        root.write_text("JIRA_BASE_URL=https://root\nJIRA_EMAIL=root@b.com\n")
        backend.write_text("JIRA_BASE_URL=https://backend\n")

        load_environment(root_env=root, backend_env=backend)

        assert os.environ["JIRA_BASE_URL"] == "https://backend"
        assert os.environ["JIRA_EMAIL"] == "root@b.com"

    def test_env_files_override_process_environment(self, clean_env, tmp_path):
        clean_env.setenv("JIRA_EMAIL", "process@b.com")
        root = tmp_path / "root.env"
        root.write_text("JIRA_EMAIL=file@b.com\n")

        load_environment(root_env=root, backend_env=tmp_path / "missing.env")

        assert os.environ["JIRA_EMAIL"] == "file@b.com"

    def test_missing_files_are_skipped(self, clean_env, tmp_path):
        load_environment(root_env=tmp_path / "a.env", backend_env=tmp_path / "b.env")

        assert "JIRA_BASE_URL" not in os.environ

    def test_quoted_token_is_unquoted(self, clean_env, tmp_path):
        root = tmp_path / "root.env"
        root.write_text('JIRA_API_TOKEN="abc=def"\n')

        load_environment(root_env=root, backend_env=tmp_path / "missing.env")

        assert os.environ["JIRA_API_TOKEN"] == "abc=def"

    def test_empty_backend_token_recovered_from_root(self, clean_env, tmp_path):
        """A blank JIRA_API_TOKEN in backend/.env is backfilled from the root file."""
        root = tmp_path / "root.env"
        backend = tmp_path / "backend.env"
        root.write_text("JIRA_API_TOKEN=from-root\n")
        backend.write_text("JIRA_API_TOKEN=\n")

        load_environment(root_env=root, backend_env=backend)

        assert os.environ["JIRA_API_TOKEN"] == "from-root"


class TestLogJiraSummary:

    def test_summary_never_logs_secrets(self, caplog):
        config = jira_config_from_mapping({
            "JIRA_BASE_URL": "https://x",
            "JIRA_EMAIL": "private@b.com",
            "JIRA_API_TOKEN": "very-secret-token",
            "JIRA_BEARER": "bearer-secret",
        })

        with caplog.at_level(logging.INFO, logger="app.config"):
            log_jira_summary(config)

        assert "JIRA_API_TOKEN SET: True" in caplog.text
        assert "very-secret-token" not in caplog.text
        assert "bearer-secret" not in caplog.text
        assert "private@b.com" not in caplog.text
