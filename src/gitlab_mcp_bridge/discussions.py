"""Discussion threads on issues, merge requests, epics, snippets and commits.

GitLab serves discussions from a different endpoint for each kind of
noteable. The managers here hide those differences behind one set of
methods, plus two optional capabilities:

* :class:`Resolvable`: threads can be resolved (merge requests)
* :class:`Positioned`: threads can be anchored to a diff line
  (merge requests and commits)

A manager is bound to one noteable and lives for a single tool call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .client import GitLabClient
from .exceptions import InvalidArgumentError, operation
from .models.discussions import Discussion, Position
from .pagination import MAX_PER_PAGE, all_with_id, collect
from .scalars import ID


def filter_internal_notes(
    discussions: list[Discussion], include_confidential: bool
) -> list[Discussion]:
    """Remove internal notes unless *include_confidential* is set.

    Discussions left without any note are dropped. The input list and its
    discussions are not modified.
    """
    if include_confidential:
        return discussions
    visible: list[Discussion] = []
    for discussion in discussions:
        notes = [n for n in discussion.notes if not n.internal]
        if notes:
            visible.append(discussion.model_copy(update={"notes": notes}))
    return visible


class DiscussionManager:
    """Discussion operations shared by every kind of noteable."""

    kind = ""

    def __init__(self, client: GitLabClient, parent: str) -> None:
        self.client = client
        self.parent = parent

    async def list(self, include_confidential: bool = False) -> list[Discussion]:
        with operation(f"failed to list {self.kind} discussions"):
            raw = await collect(
                all_with_id(self.parent, self.client.list_discussions, {"per_page": MAX_PER_PAGE})
            )
        discussions = [Discussion.model_validate(d) for d in raw]
        return filter_internal_notes(discussions, include_confidential)

    async def new_discussion(self, body: str) -> Discussion:
        with operation(f"failed to create {self.kind} discussion"):
            data = await self.client.create_discussion(self.parent, {"body": body})
        return Discussion.model_validate(data)

    async def add_note(self, discussion_id: str, body: str) -> dict[str, Any]:
        with operation(f"failed to add note to {self.kind} discussion {discussion_id}"):
            return await self.client.add_discussion_note(
                self.parent, discussion_id, {"body": body}
            )

    async def modify_note(self, discussion_id: str, note_id: int, body: str) -> dict[str, Any]:
        name = f"failed to modify note {note_id} in {self.kind} discussion {discussion_id}"
        with operation(name):
            return await self.client.update_discussion_note(
                self.parent, discussion_id, note_id, {"body": body}
            )

    async def delete_note(self, discussion_id: str, note_id: int) -> None:
        name = f"failed to delete note {note_id} in {self.kind} discussion {discussion_id}"
        with operation(name):
            await self.client.delete_discussion_note(self.parent, discussion_id, note_id)


class Resolvable(ABC):
    """Capability: threads can be marked resolved or unresolved."""

    @abstractmethod
    async def resolve_discussion(self, discussion_id: str, resolved: bool) -> Discussion:
        raise NotImplementedError


class Positioned(ABC):
    """Capability: threads can be anchored to a position in a diff."""

    @abstractmethod
    async def new_position_discussion(
        self, body: str, position: Position, commit_id: str = ""
    ) -> Discussion:
        raise NotImplementedError


def _check_client(client: GitLabClient | None) -> GitLabClient:
    if client is None:
        raise InvalidArgumentError("client must not be None")
    return client


def _check_id(label: str, value: ID) -> None:
    if value.is_zero():
        raise InvalidArgumentError(f"{label} must not be empty")


class IssueDiscussions(DiscussionManager):
    kind = "issue"

    def __init__(self, client: GitLabClient | None, project_id: ID, issue_iid: int) -> None:
        client = _check_client(client)
        _check_id("project ID", project_id)
        if not issue_iid:
            raise InvalidArgumentError("issue IID must not be zero")
        enc = client.encode_id(project_id.value())
        super().__init__(client, f"/projects/{enc}/issues/{issue_iid}")


class MergeRequestDiscussions(DiscussionManager, Resolvable, Positioned):
    kind = "merge request"

    def __init__(self, client: GitLabClient | None, project_id: ID, mr_iid: int) -> None:
        client = _check_client(client)
        enc = client.encode_id(project_id.value())
        super().__init__(client, f"/projects/{enc}/merge_requests/{mr_iid}")

    async def resolve_discussion(self, discussion_id: str, resolved: bool) -> Discussion:
        action = "resolve" if resolved else "unresolve"
        with operation(f"failed to {action} merge request discussion {discussion_id}"):
            data = await self.client.resolve_discussion(self.parent, discussion_id, resolved)
        return Discussion.model_validate(data)

    async def new_position_discussion(
        self, body: str, position: Position, commit_id: str = ""
    ) -> Discussion:
        payload: dict[str, Any] = {"body": body, "position": position.to_payload()}
        if commit_id:
            payload["commit_id"] = commit_id
        with operation("failed to create merge request diff discussion"):
            data = await self.client.create_discussion(self.parent, payload)
        return Discussion.model_validate(data)


class EpicDiscussions(DiscussionManager):
    kind = "epic"

    def __init__(self, client: GitLabClient | None, group_id: ID, epic_id: int) -> None:
        client = _check_client(client)
        _check_id("group ID", group_id)
        if not epic_id:
            raise InvalidArgumentError("epic ID must not be zero")
        enc = client.encode_id(group_id.value())
        super().__init__(client, f"/groups/{enc}/epics/{epic_id}")


class SnippetDiscussions(DiscussionManager):
    kind = "snippet"

    def __init__(self, client: GitLabClient | None, project_id: ID, snippet_id: int) -> None:
        client = _check_client(client)
        _check_id("project ID", project_id)
        if not snippet_id:
            raise InvalidArgumentError("snippet ID must not be zero")
        enc = client.encode_id(project_id.value())
        super().__init__(client, f"/projects/{enc}/snippets/{snippet_id}")


class CommitDiscussions(DiscussionManager, Positioned):
    kind = "commit"

    def __init__(self, client: GitLabClient | None, project_id: ID, commit_sha: str) -> None:
        client = _check_client(client)
        _check_id("project ID", project_id)
        if not commit_sha:
            raise InvalidArgumentError("commit SHA must not be empty")
        enc = client.encode_id(project_id.value())
        super().__init__(client, f"/projects/{enc}/repository/commits/{commit_sha}")

    async def new_position_discussion(
        self, body: str, position: Position, commit_id: str = ""
    ) -> Discussion:
        payload = {"body": body, "position": position.to_payload()}
        with operation("failed to create commit diff discussion"):
            data = await self.client.create_discussion(self.parent, payload)
        return Discussion.model_validate(data)
