"""GitLab API client using httpx."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import httpx

from ._version import __version__
from .config import GitLabConfig
from .exceptions import GitLabApiError, GitLabAuthError, GitLabNotFoundError

Page = tuple[list[Any], int]


class GitLabClient:
    """Async HTTP client for the GitLab REST API v4."""

    def __init__(self, config: GitLabConfig | None = None) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "PRIVATE-TOKEN": self.config.token,
                "Content-Type": "application/json",
                "User-Agent": f"gitlab-mcp-bridge/{__version__}",
            },
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    @staticmethod
    def encode_id(resource_id: str | int) -> str:
        """Encode a project/group ID. Numeric IDs pass through; paths are URL-encoded."""
        if isinstance(resource_id, int):
            return str(resource_id)
        try:
            return str(int(resource_id))
        except ValueError:
            return quote(resource_id, safe="")

    @staticmethod
    def _next_page(resp: httpx.Response) -> int:
        try:
            return int(resp.headers.get("x-next-page") or 0)
        except ValueError:
            return 0

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {"params": params}
        if json_data is not None:
            kwargs["json"] = json_data

        resp = await self._client.request(method, path, **kwargs)

        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, resp.text)
        if resp.status_code == 404:
            raise GitLabNotFoundError(resp.text)
        if not resp.is_success:
            raise GitLabApiError(resp.status_code, resp.reason_phrase or "", resp.text)
        return resp

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response, check URL and authentication"
            raise GitLabApiError(resp.status_code, msg, resp.text[:500])

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GitLabApiError(
                resp.status_code,
                f"JSON parse error: {e}",
                resp.text[:500],
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> Any:
        """Make an API request and return parsed JSON (or text if raw=True)."""
        resp = await self._send(method, path, json_data=json_data, params=params)
        if raw:
            return resp.text
        return self._decode(resp)

    async def get(
        self, path: str, params: dict[str, Any] | None = None, *, raw: bool = False
    ) -> Any:
        return await self._request("GET", path, params=params, raw=raw)

    async def get_page(self, path: str, params: dict[str, Any] | None = None) -> Page:
        """GET one page of a list endpoint: ``(items, next_page)``."""
        resp = await self._send("GET", path, params=params)
        return self._decode(resp) or [], self._next_page(resp)

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, json_data=json_data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self._request("DELETE", path, **kwargs)

    # ── Users ─────────────────────────────────────────────────────

    async def get_current_user(self) -> dict:
        return await self.get("/user")

    async def get_user(self, user_id: int) -> dict:
        return await self.get(f"/users/{user_id}")

    async def list_users(self, params: dict[str, Any]) -> list[dict]:
        return await self.get("/users", params=params) or []

    async def get_user_status(self, user: str | int) -> dict:
        return await self.get(f"/users/{quote(str(user), safe='')}/status")

    async def set_user_status(self, payload: dict[str, Any]) -> dict:
        return await self.put("/user/status", payload)

    # ── Issues ────────────────────────────────────────────────────

    async def list_issues(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/issues", params)

    async def list_group_issues(self, group_id: str | int, params: dict[str, Any]) -> Page:
        enc = self.encode_id(group_id)
        return await self.get_page(f"/groups/{enc}/issues", params)

    async def list_project_issues(self, project_id: str | int, params: dict[str, Any]) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(f"/projects/{enc}/issues", params)

    async def get_issue(self, project_id: str | int, issue_iid: int) -> dict:
        enc = self.encode_id(project_id)
        return await self.get(f"/projects/{enc}/issues/{issue_iid}")

    async def create_issue(self, project_id: str | int, payload: dict[str, Any]) -> dict:
        enc = self.encode_id(project_id)
        return await self.post(f"/projects/{enc}/issues", payload)

    async def update_issue(
        self, project_id: str | int, issue_iid: int, payload: dict[str, Any]
    ) -> dict:
        enc = self.encode_id(project_id)
        return await self.put(f"/projects/{enc}/issues/{issue_iid}", payload)

    async def list_issue_related_merge_requests(
        self, project_id: str | int, issue_iid: int, params: dict[str, Any]
    ) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(
            f"/projects/{enc}/issues/{issue_iid}/related_merge_requests", params
        )

    # ── Merge requests ────────────────────────────────────────────

    async def list_merge_requests(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/merge_requests", params)

    async def list_project_merge_requests(
        self, project_id: str | int, params: dict[str, Any]
    ) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(f"/projects/{enc}/merge_requests", params)

    async def list_group_merge_requests(self, group_id: str | int, params: dict[str, Any]) -> Page:
        enc = self.encode_id(group_id)
        return await self.get_page(f"/groups/{enc}/merge_requests", params)

    def _mr_path(self, project_id: str | int, mr_iid: int) -> str:
        return f"/projects/{self.encode_id(project_id)}/merge_requests/{mr_iid}"

    async def get_merge_request(self, project_id: str | int, mr_iid: int) -> dict:
        return await self.get(self._mr_path(project_id, mr_iid))

    async def update_merge_request(
        self, project_id: str | int, mr_iid: int, payload: dict[str, Any]
    ) -> dict:
        return await self.put(self._mr_path(project_id, mr_iid), payload)

    async def list_merge_request_diffs(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> Page:
        return await self.get_page(f"{self._mr_path(project_id, mr_iid)}/diffs", params)

    async def list_merge_request_commits(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> Page:
        return await self.get_page(f"{self._mr_path(project_id, mr_iid)}/commits", params)

    async def list_merge_request_closes_issues(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> Page:
        return await self.get_page(f"{self._mr_path(project_id, mr_iid)}/closes_issues", params)

    async def list_draft_notes(
        self, project_id: str | int, mr_iid: int, params: dict[str, Any]
    ) -> Page:
        return await self.get_page(f"{self._mr_path(project_id, mr_iid)}/draft_notes", params)

    async def get_merge_request_approvals(self, project_id: str | int, mr_iid: int) -> dict:
        return await self.get(f"{self._mr_path(project_id, mr_iid)}/approvals")

    async def get_merge_request_participants(
        self, project_id: str | int, mr_iid: int
    ) -> list[dict]:
        return await self.get(f"{self._mr_path(project_id, mr_iid)}/participants")

    async def get_merge_request_reviewers(self, project_id: str | int, mr_iid: int) -> list[dict]:
        return await self.get(f"{self._mr_path(project_id, mr_iid)}/reviewers")

    async def list_merge_request_pipelines(
        self, project_id: str | int, mr_iid: int
    ) -> list[dict]:
        return await self.get(f"{self._mr_path(project_id, mr_iid)}/pipelines")

    async def get_merge_request_dependencies(
        self, project_id: str | int, mr_iid: int
    ) -> list[dict]:
        return await self.get(f"{self._mr_path(project_id, mr_iid)}/blocks")

    # ── Jobs ──────────────────────────────────────────────────────

    async def list_pipeline_jobs(
        self, project_id: str | int, pipeline_id: int, params: dict[str, Any]
    ) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(f"/projects/{enc}/pipelines/{pipeline_id}/jobs", params)

    async def list_pipeline_bridges(
        self, project_id: str | int, pipeline_id: int, params: dict[str, Any]
    ) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(f"/projects/{enc}/pipelines/{pipeline_id}/bridges", params)

    async def get_job(self, project_id: str | int, job_id: int) -> dict:
        enc = self.encode_id(project_id)
        return await self.get(f"/projects/{enc}/jobs/{job_id}")

    async def get_job_artifact(self, project_id: str | int, job_id: int, artifact_path: str) -> str:
        enc = self.encode_id(project_id)
        path = quote(artifact_path.lstrip("/"), safe="/")
        return await self.get(f"/projects/{enc}/jobs/{job_id}/artifacts/{path}", raw=True)

    async def get_job_trace(self, project_id: str | int, job_id: int) -> str:
        enc = self.encode_id(project_id)
        return await self.get(f"/projects/{enc}/jobs/{job_id}/trace", raw=True)

    async def retry_job(self, project_id: str | int, job_id: int) -> dict:
        enc = self.encode_id(project_id)
        return await self.post(f"/projects/{enc}/jobs/{job_id}/retry")

    async def play_job(self, project_id: str | int, job_id: int) -> dict:
        enc = self.encode_id(project_id)
        return await self.post(f"/projects/{enc}/jobs/{job_id}/play")

    # ── Epics ─────────────────────────────────────────────────────

    async def list_group_epics(self, group_id: str | int, params: dict[str, Any]) -> Page:
        enc = self.encode_id(group_id)
        return await self.get_page(f"/groups/{enc}/epics", params)

    async def get_epic(self, group_id: str | int, epic_iid: int) -> dict:
        enc = self.encode_id(group_id)
        return await self.get(f"/groups/{enc}/epics/{epic_iid}")

    async def list_epic_links(self, group_id: str | int, epic_iid: int) -> list[dict]:
        enc = self.encode_id(group_id)
        return await self.get(f"/groups/{enc}/epics/{epic_iid}/epics")

    async def list_epic_issues(
        self, group_id: str | int, epic_iid: int, params: dict[str, Any]
    ) -> Page:
        enc = self.encode_id(group_id)
        return await self.get_page(f"/groups/{enc}/epics/{epic_iid}/issues", params)

    # ── Snippets ──────────────────────────────────────────────────

    async def list_snippets(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/snippets", params)

    async def list_all_snippets(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/snippets/all", params)

    async def list_public_snippets(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/snippets/public", params)

    async def get_snippet(self, snippet_id: int) -> dict:
        return await self.get(f"/snippets/{snippet_id}")

    async def get_snippet_content(self, snippet_id: int) -> str:
        return await self.get(f"/snippets/{snippet_id}/raw", raw=True)

    async def create_snippet(self, payload: dict[str, Any]) -> dict:
        return await self.post("/snippets", payload)

    async def update_snippet(self, snippet_id: int, payload: dict[str, Any]) -> dict:
        return await self.put(f"/snippets/{snippet_id}", payload)

    async def delete_snippet(self, snippet_id: int) -> None:
        await self.delete(f"/snippets/{snippet_id}")

    # ── Todos ─────────────────────────────────────────────────────

    async def list_todos(self, params: dict[str, Any]) -> Page:
        return await self.get_page("/todos", params)

    async def mark_todo_done(self, todo_id: int) -> None:
        await self.post(f"/todos/{todo_id}/mark_as_done")

    async def mark_all_todos_done(self) -> None:
        await self.post("/todos/mark_as_done")

    # ── Events ────────────────────────────────────────────────────

    async def list_user_events(self, username: str, params: dict[str, Any]) -> Page:
        return await self.get_page(f"/users/{quote(username, safe='')}/events", params)

    # ── Repository ────────────────────────────────────────────────

    async def list_repository_tree(self, project_id: str | int, params: dict[str, Any]) -> Page:
        enc = self.encode_id(project_id)
        return await self.get_page(f"/projects/{enc}/repository/tree", params)

    async def get_raw_blob(self, project_id: str | int, sha: str) -> str:
        enc = self.encode_id(project_id)
        return await self.get(f"/projects/{enc}/repository/blobs/{sha}/raw", raw=True)

    async def get_raw_file(self, project_id: str | int, file_path: str, ref: str = "") -> str:
        enc = self.encode_id(project_id)
        params = {"ref": ref} if ref else None
        return await self.get(
            f"/projects/{enc}/repository/files/{quote(file_path, safe='')}/raw",
            params=params,
            raw=True,
        )

    # ── Discussions ───────────────────────────────────────────────
    # ``parent`` is the noteable's path, e.g. ``/projects/1/issues/5``.

    async def list_discussions(self, parent: str, params: dict[str, Any]) -> Page:
        return await self.get_page(f"{parent}/discussions", params)

    async def create_discussion(self, parent: str, payload: dict[str, Any]) -> dict:
        return await self.post(f"{parent}/discussions", payload)

    async def add_discussion_note(
        self, parent: str, discussion_id: str, payload: dict[str, Any]
    ) -> dict:
        return await self.post(f"{parent}/discussions/{discussion_id}/notes", payload)

    async def update_discussion_note(
        self, parent: str, discussion_id: str, note_id: int, payload: dict[str, Any]
    ) -> dict:
        return await self.put(f"{parent}/discussions/{discussion_id}/notes/{note_id}", payload)

    async def delete_discussion_note(self, parent: str, discussion_id: str, note_id: int) -> None:
        await self.delete(f"{parent}/discussions/{discussion_id}/notes/{note_id}")

    async def resolve_discussion(self, parent: str, discussion_id: str, resolved: bool) -> dict:
        return await self.put(f"{parent}/discussions/{discussion_id}", {"resolved": resolved})
