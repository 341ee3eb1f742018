"""Common GitLab models shared across domains."""

from __future__ import annotations

from .base import GitLabModel


class User(GitLabModel):
    id: int
    username: str = ""
    name: str = ""
    state: str = ""
    web_url: str = ""
