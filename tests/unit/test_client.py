"""Tests for GitLab API client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from gitlab_mcp_bridge import __version__
from gitlab_mcp_bridge.client import GitLabClient
from gitlab_mcp_bridge.config import GitLabConfig
from gitlab_mcp_bridge.exceptions import GitLabApiError, GitLabAuthError, GitLabNotFoundError

BASE = "https://gitlab.example.com/api/v4"


def _make_client() -> GitLabClient:
    return GitLabClient(GitLabConfig(url="https://gitlab.example.com", token="test-token"))


class TestEncodeId:
    def test_numeric_string(self):
        assert GitLabClient.encode_id("123") == "123"

    def test_integer(self):
        assert GitLabClient.encode_id(123) == "123"

    def test_path(self):
        assert GitLabClient.encode_id("my-group/my-project") == "my-group%2Fmy-project"


class TestRequest:
    async def test_headers(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.get("/user").mock(
                return_value=httpx.Response(200, json={"id": 1, "username": "alice"})
            )
            result = await _make_client().get_current_user()
            assert result["username"] == "alice"
            headers = route.calls.last.request.headers
            assert headers["PRIVATE-TOKEN"] == "test-token"
            assert headers["User-Agent"] == f"gitlab-mcp-bridge/{__version__}"

    async def test_auth_error_401(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123/jobs/1").mock(
                return_value=httpx.Response(401, text="Unauthorized")
            )
            with pytest.raises(GitLabAuthError) as exc_info:
                await _make_client().get_job(123, 1)
            assert exc_info.value.status_code == 401

    async def test_not_found_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/snippets/999").mock(return_value=httpx.Response(404, text="Not Found"))
            with pytest.raises(GitLabNotFoundError):
                await _make_client().get_snippet(999)

    async def test_server_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/groups/5/epics/1").mock(
                return_value=httpx.Response(500, text="Internal Server Error")
            )
            with pytest.raises(GitLabApiError) as exc_info:
                await _make_client().get_epic(5, 1)
            assert exc_info.value.status_code == 500

    async def test_html_response_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123/merge_requests/1").mock(
                return_value=httpx.Response(
                    200,
                    text="<html><body>Login</body></html>",
                    headers={"content-type": "text/html"},
                )
            )
            with pytest.raises(GitLabApiError, match="HTML"):
                await _make_client().get_merge_request(123, 1)

    async def test_empty_response(self):
        async with respx.mock(base_url=BASE) as router:
            router.delete("/snippets/3").mock(return_value=httpx.Response(204))
            assert await _make_client().delete_snippet(3) is None

    async def test_job_trace_is_text(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123/jobs/456/trace").mock(
                return_value=httpx.Response(200, text="line1\nline2\nline3")
            )
            result = await _make_client().get_job_trace(123, 456)
            assert result == "line1\nline2\nline3"

    async def test_artifact_path(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.get("/projects/1/jobs/2/artifacts/out/report.txt").mock(
                return_value=httpx.Response(200, text="ok")
            )
            assert await _make_client().get_job_artifact(1, 2, "/out/report.txt") == "ok"
            assert route.called

    async def test_path_encoding(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.get("/projects/my-group%2Fmy-project/issues/1").mock(
                return_value=httpx.Response(200, json={"id": 1, "iid": 1})
            )
            await _make_client().get_issue("my-group/my-project", 1)
            assert route.called

    async def test_raw_file_with_ref(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.get("/projects/1/repository/files/docs%2FREADME.md/raw").mock(
                return_value=httpx.Response(200, text="# Title")
            )
            assert await _make_client().get_raw_file(1, "docs/README.md", "main") == "# Title"
            assert route.calls.last.request.url.params["ref"] == "main"


class TestPages:
    async def test_next_page_header(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/todos").mock(
                return_value=httpx.Response(200, json=[{"id": 1}], headers={"x-next-page": "2"})
            )
            items, next_page = await _make_client().list_todos({"per_page": 1})
            assert items == [{"id": 1}]
            assert next_page == 2

    @pytest.mark.parametrize("header", [{}, {"x-next-page": ""}, {"x-next-page": "junk"}])
    async def test_last_page(self, header):
        async with respx.mock(base_url=BASE) as router:
            router.get("/snippets").mock(return_value=httpx.Response(200, json=[], headers=header))
            assert await _make_client().list_snippets({}) == ([], 0)


class TestWrites:
    async def test_set_user_status(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.put("/user/status").mock(
                return_value=httpx.Response(200, json={"message": "busy"})
            )
            await _make_client().set_user_status({"message": "busy"})
            assert json.loads(route.calls.last.request.content) == {"message": "busy"}

    async def test_mark_all_todos_done(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.post("/todos/mark_as_done").mock(return_value=httpx.Response(204))
            await _make_client().mark_all_todos_done()
            assert route.called
