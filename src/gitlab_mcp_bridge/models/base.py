"""Base model for GitLab API responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Base model for upstream payloads.

    Unknown fields are kept so a parsed payload re-encodes without loss.
    """

    model_config = {"extra": "allow", "populate_by_name": True}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
