"""Issue models."""

from __future__ import annotations

from .base import GitLabModel
from .common import User


class Issue(GitLabModel):
    id: int
    iid: int
    project_id: int | None = None
    title: str = ""
    state: str = ""
    author: User | None = None
    confidential: bool = False
    discussion_locked: bool | None = None
