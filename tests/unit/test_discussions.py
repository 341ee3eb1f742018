"""Tests for discussion managers and internal-note filtering."""

from __future__ import annotations

import json

import httpx
import pytest

from gitlab_mcp_bridge.discussions import (
    CommitDiscussions,
    EpicDiscussions,
    IssueDiscussions,
    MergeRequestDiscussions,
    Positioned,
    Resolvable,
    SnippetDiscussions,
    filter_internal_notes,
)
from gitlab_mcp_bridge.exceptions import GitLabOperationError, InvalidArgumentError
from gitlab_mcp_bridge.models.discussions import Discussion, Note, Position
from gitlab_mcp_bridge.scalars import ID


def _discussion(id: str, *internal: bool) -> Discussion:
    notes = [Note(id=i, body=f"note {i}", internal=flag) for i, flag in enumerate(internal)]
    return Discussion(id=id, notes=notes)


class TestFilterInternalNotes:
    def test_include_confidential_returns_input(self):
        discussions = [_discussion("a", True), _discussion("b", False)]
        assert filter_internal_notes(discussions, True) is discussions

    def test_internal_notes_removed(self):
        discussions = [_discussion("a", False, True, False)]
        (result,) = filter_internal_notes(discussions, False)
        assert [n.id for n in result.notes] == [0, 2]

    def test_empty_discussions_dropped(self):
        discussions = [_discussion("a", True), _discussion("b", False)]
        result = filter_internal_notes(discussions, False)
        assert [d.id for d in result] == ["b"]

    def test_input_not_modified(self):
        discussion = _discussion("a", False, True)
        filter_internal_notes([discussion], False)
        assert len(discussion.notes) == 2

    def test_invariant(self):
        discussions = [
            _discussion("a", True, True),
            _discussion("b", False, True),
            _discussion("c"),
            _discussion("d", False),
        ]
        result = filter_internal_notes(discussions, False)
        assert result
        for discussion in result:
            assert discussion.notes
            assert not any(n.internal for n in discussion.notes)


class TestConstruction:
    def test_paths(self, client):
        assert IssueDiscussions(client, ID(integer=1), 5).parent == "/projects/1/issues/5"
        assert (
            MergeRequestDiscussions(client, ID(string="g/p"), 3).parent
            == "/projects/g%2Fp/merge_requests/3"
        )
        assert EpicDiscussions(client, ID(string="g"), 9).parent == "/groups/g/epics/9"
        assert SnippetDiscussions(client, ID(integer=1), 2).parent == "/projects/1/snippets/2"
        assert (
            CommitDiscussions(client, ID(integer=1), "abc123").parent
            == "/projects/1/repository/commits/abc123"
        )

    def test_capabilities(self, client):
        mr = MergeRequestDiscussions(client, ID(integer=1), 1)
        commit = CommitDiscussions(client, ID(integer=1), "abc")
        issue = IssueDiscussions(client, ID(integer=1), 1)
        assert isinstance(mr, Resolvable) and isinstance(mr, Positioned)
        assert isinstance(commit, Positioned) and not isinstance(commit, Resolvable)
        assert not isinstance(issue, Positioned)

    def test_capability_without_override_cannot_be_built(self, client):
        class Incomplete(IssueDiscussions, Positioned):
            pass

        with pytest.raises(TypeError, match="new_position_discussion"):
            Incomplete(client, ID(integer=1), 1)

    @pytest.mark.parametrize(
        "make",
        [
            lambda c: IssueDiscussions(None, ID(integer=1), 1),
            lambda c: IssueDiscussions(c, ID(), 1),
            lambda c: IssueDiscussions(c, ID(integer=1), 0),
            lambda c: EpicDiscussions(c, ID(), 1),
            lambda c: EpicDiscussions(c, ID(integer=1), 0),
            lambda c: SnippetDiscussions(c, ID(), 1),
            lambda c: SnippetDiscussions(c, ID(integer=1), 0),
            lambda c: CommitDiscussions(c, ID(), "abc"),
            lambda c: CommitDiscussions(c, ID(integer=1), ""),
            lambda c: MergeRequestDiscussions(None, ID(integer=1), 1),
        ],
    )
    def test_invalid(self, client, make):
        with pytest.raises(InvalidArgumentError):
            make(client)

    def test_merge_request_accepts_zero_parent(self, client):
        assert MergeRequestDiscussions(client, ID(), 1).parent == "/projects//merge_requests/1"


class TestManagers:
    async def test_list_walks_all_pages_then_filters(self, client, mock_api):
        route = mock_api.get("/projects/1/issues/5/discussions")
        route.side_effect = [
            httpx.Response(
                200,
                json=[{"id": "a", "notes": [{"id": 1, "body": "x", "internal": True}]}],
                headers={"x-next-page": "2"},
            ),
            httpx.Response(200, json=[{"id": "b", "notes": [{"id": 2, "body": "y"}]}]),
        ]
        manager = IssueDiscussions(client, ID(integer=1), 5)
        result = await manager.list()
        assert [d.id for d in result] == ["b"]
        assert route.call_count == 2
        assert route.calls[0].request.url.params["per_page"] == "100"
        assert route.calls[1].request.url.params["page"] == "2"

    async def test_list_failure_has_context(self, client, mock_api):
        mock_api.get("/groups/7/epics/3/discussions").mock(
            return_value=httpx.Response(500, text="boom")
        )
        manager = EpicDiscussions(client, ID(integer=7), 3)
        with pytest.raises(GitLabOperationError, match="failed to list epic discussions"):
            await manager.list()

    async def test_resolve(self, client, mock_api):
        route = mock_api.put("/projects/1/merge_requests/2/discussions/abc").mock(
            return_value=httpx.Response(200, json={"id": "abc", "notes": []})
        )
        manager = MergeRequestDiscussions(client, ID(integer=1), 2)
        discussion = await manager.resolve_discussion("abc", True)
        assert discussion.id == "abc"
        assert json.loads(route.calls.last.request.content) == {"resolved": True}

    async def test_merge_request_position_carries_commit_id(self, client, mock_api):
        route = mock_api.post("/projects/1/merge_requests/2/discussions").mock(
            return_value=httpx.Response(201, json={"id": "d1"})
        )
        position = Position(
            base_sha="b", head_sha="h", start_sha="s", position_type="text", new_line=4
        )
        manager = MergeRequestDiscussions(client, ID(integer=1), 2)
        await manager.new_position_discussion("look here", position, "c0ffee")
        body = json.loads(route.calls.last.request.content)
        assert body["commit_id"] == "c0ffee"
        assert body["position"]["new_line"] == 4
        assert "old_line" not in body["position"]

    async def test_commit_position_ignores_commit_id(self, client, mock_api):
        route = mock_api.post("/projects/1/repository/commits/abc/discussions").mock(
            return_value=httpx.Response(201, json={"id": "d1"})
        )
        position = Position(base_sha="b", head_sha="h", start_sha="s", position_type="file")
        manager = CommitDiscussions(client, ID(integer=1), "abc")
        await manager.new_position_discussion("body", position, "c0ffee")
        assert "commit_id" not in json.loads(route.calls.last.request.content)

    async def test_note_operations(self, client, mock_api):
        base = "/projects/1/snippets/4/discussions/d1/notes"
        added = mock_api.post(base).mock(return_value=httpx.Response(201, json={"id": 10}))
        modified = mock_api.put(f"{base}/10").mock(
            return_value=httpx.Response(200, json={"id": 10, "body": "new"})
        )
        deleted = mock_api.delete(f"{base}/10").mock(return_value=httpx.Response(204))
        manager = SnippetDiscussions(client, ID(integer=1), 4)
        assert (await manager.add_note("d1", "hi"))["id"] == 10
        assert (await manager.modify_note("d1", 10, "new"))["body"] == "new"
        assert await manager.delete_note("d1", 10) is None
        assert added.called and modified.called and deleted.called
