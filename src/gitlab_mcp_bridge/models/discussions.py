"""Discussion, note and diff position models."""

from __future__ import annotations

from typing import Any

from .base import GitLabModel
from .common import User


class Note(GitLabModel):
    id: int
    body: str = ""
    author: User | None = None
    internal: bool = False
    system: bool = False
    resolvable: bool = False
    resolved: bool | None = None


class Discussion(GitLabModel):
    id: str
    individual_note: bool = False
    notes: list[Note] = []


class Position(GitLabModel):
    """Anchor of a diff discussion.

    Line numbers are optional: zero or ``None`` leaves them out of the payload.
    """

    base_sha: str
    head_sha: str
    start_sha: str
    position_type: str
    old_path: str = ""
    new_path: str = ""
    old_line: int | None = None
    new_line: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
