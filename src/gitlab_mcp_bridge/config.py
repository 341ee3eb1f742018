"""GitLab MCP bridge configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_URL = "https://gitlab.com"

TOKEN_VARIABLES = (
    "GITLAB_TOKEN",
    "GITLAB_PAT",
    "GITLAB_PERSONAL_ACCESS_TOKEN",
    "GITLAB_API_TOKEN",
)


def _flag(name: str, default: str, truthy: tuple[str, ...]) -> bool:
    return os.getenv(name, default).strip().lower() in truthy


@dataclass
class GitLabConfig:
    """Connection settings for the bridge, loaded from environment variables."""

    url: str = DEFAULT_URL
    token: str = ""
    read_only: bool = False
    timeout: int = 30
    ssl_verify: bool = True

    @classmethod
    def from_env(cls) -> GitLabConfig:
        url = (os.getenv("GITLAB_URL") or DEFAULT_URL).rstrip("/")
        token = next((os.environ[v] for v in TOKEN_VARIABLES if os.getenv(v)), "")
        return cls(
            url=url,
            token=token,
            read_only=_flag("GITLAB_READ_ONLY", "false", ("true", "1", "yes")),
            timeout=int(os.getenv("GITLAB_TIMEOUT", "30")),
            ssl_verify=not _flag("GITLAB_SSL_VERIFY", "true", ("false", "0", "no")),
        )

    @property
    def api_url(self) -> str:
        return f"{self.url}/api/v4"

    def validate(self) -> None:
        if not self.url:
            msg = "GITLAB_URL must not be empty"
            raise ValueError(msg)
        if not self.token:
            msg = "GitLab token is required. Set one of: " + ", ".join(TOKEN_VARIABLES)
            raise ValueError(msg)
