"""Tests for GitLab configuration."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from gitlab_mcp_bridge.config import DEFAULT_URL, TOKEN_VARIABLES, GitLabConfig


@pytest.fixture
def clean_env():
    names = ("GITLAB_URL", "GITLAB_READ_ONLY", "GITLAB_TIMEOUT", "GITLAB_SSL_VERIFY")
    env = {k: v for k, v in os.environ.items() if k not in names + TOKEN_VARIABLES}
    with patch.dict(os.environ, env, clear=True):
        yield


def test_config_from_env(clean_env):
    env = {"GITLAB_URL": "https://gitlab.example.com", "GITLAB_TOKEN": "glpat-abc123"}
    with patch.dict(os.environ, env):
        config = GitLabConfig.from_env()
    assert config.url == "https://gitlab.example.com"
    assert config.token == "glpat-abc123"
    assert config.read_only is False
    assert config.timeout == 30
    assert config.ssl_verify is True


def test_config_default_url(clean_env):
    with patch.dict(os.environ, {"GITLAB_TOKEN": "x"}):
        config = GitLabConfig.from_env()
    assert config.url == DEFAULT_URL
    assert config.api_url == "https://gitlab.com/api/v4"


@pytest.mark.parametrize("variable", TOKEN_VARIABLES)
def test_config_token_aliases(clean_env, variable):
    with patch.dict(os.environ, {variable: "glpat-alias"}):
        config = GitLabConfig.from_env()
    assert config.token == "glpat-alias"


def test_config_token_priority(clean_env):
    """GITLAB_TOKEN takes precedence over all other aliases."""
    env = {
        "GITLAB_TOKEN": "winner",
        "GITLAB_PAT": "loser1",
        "GITLAB_PERSONAL_ACCESS_TOKEN": "loser2",
        "GITLAB_API_TOKEN": "loser3",
    }
    with patch.dict(os.environ, env):
        config = GitLabConfig.from_env()
    assert config.token == "winner"


@pytest.mark.parametrize(("value", "expected"), [("true", True), ("1", True), ("no", False)])
def test_config_read_only(clean_env, value, expected):
    with patch.dict(os.environ, {"GITLAB_TOKEN": "x", "GITLAB_READ_ONLY": value}):
        config = GitLabConfig.from_env()
    assert config.read_only is expected


def test_config_ssl_verify_disabled(clean_env):
    with patch.dict(os.environ, {"GITLAB_TOKEN": "x", "GITLAB_SSL_VERIFY": "false"}):
        config = GitLabConfig.from_env()
    assert config.ssl_verify is False


def test_config_timeout(clean_env):
    with patch.dict(os.environ, {"GITLAB_TOKEN": "x", "GITLAB_TIMEOUT": "5"}):
        assert GitLabConfig.from_env().timeout == 5


def test_config_url_strips_trailing_slash(clean_env):
    env = {"GITLAB_URL": "https://gitlab.example.com/", "GITLAB_TOKEN": "x"}
    with patch.dict(os.environ, env):
        config = GitLabConfig.from_env()
    assert config.url == "https://gitlab.example.com"


def test_config_validate_missing_url():
    with pytest.raises(ValueError, match="GITLAB_URL"):
        GitLabConfig(url="", token="x").validate()


def test_config_validate_missing_token():
    with pytest.raises(ValueError, match="GITLAB_TOKEN"):
        GitLabConfig(url="https://gitlab.example.com", token="").validate()
