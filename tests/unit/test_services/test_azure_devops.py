"""Unit tests for the Azure DevOps pull request client."""

import json

import httpx
import pytest

from pria.config.settings import Settings
from pria.exceptions import AzureDevOpsError, ConfigurationError
from pria.models.review import Comment, FilePosition, Thread, ThreadContext
from pria.services.azure_devops import (
    LAST_REVIEWED_KEY,
    AzureDevOpsClient,
    PullRequestClient,
)

BASE = "https://dev.azure.com/contoso/project-id/_apis/git/repositories/web-app"
PR = f"{BASE}/pullRequests/7"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        collection_uri="https://dev.azure.com/contoso/",
        team_project="Storefront",
        team_project_id="project-id",
        repository_name="web-app",
        pull_request_id="7",
    )


class FakeAzureDevOps:
    """Records requests and answers them from a route table."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]
        return self.routes.get((request.method, url), httpx.Response(404))


def _pull_request_client(settings: Settings, fake: FakeAzureDevOps) -> PullRequestClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    return PullRequestClient(settings, AzureDevOpsClient("token", http_client))


class TestPullRequestClient:
    """Tests for PullRequestClient."""

    def test_missing_pipeline_variables(self):
        settings = Settings(_env_file=None, collection_uri=None, pull_request_id=None)

        with pytest.raises(ConfigurationError, match="pull_request_id"):
            PullRequestClient(settings, AzureDevOpsClient("token", httpx.AsyncClient()))

    def test_uris(self, settings):
        client = _pull_request_client(settings, FakeAzureDevOps({}))

        assert client.repository_uri == BASE
        assert client.base_uri == PR
        assert client.build_service_name == "Storefront Build Service (contoso)"

    @pytest.mark.asyncio
    async def test_get_last_merge_source_commit_is_cached(self, settings):
        fake = FakeAzureDevOps(
            {("GET", f"{PR}/"): httpx.Response(200, json={"lastMergeSourceCommit": {"commitId": "abc123"}})}
        )
        client = _pull_request_client(settings, fake)

        assert await client.get_last_merge_source_commit() == "abc123"
        assert await client.get_last_merge_source_commit() == "abc123"
        assert len(fake.requests) == 1
        assert fake.requests[0].headers["Authorization"] == "Bearer token"

    @pytest.mark.asyncio
    async def test_get_last_reviewed_commit(self, settings):
        fake = FakeAzureDevOps(
            {
                ("GET", f"{PR}/properties"): httpx.Response(
                    200, json={"value": {LAST_REVIEWED_KEY: {"$value": "def456"}}}
                )
            }
        )
        client = _pull_request_client(settings, fake)

        assert await client.get_last_reviewed_commit() == "def456"

    @pytest.mark.asyncio
    async def test_get_last_reviewed_commit_missing(self, settings):
        fake = FakeAzureDevOps({("GET", f"{PR}/properties"): httpx.Response(200, json={"count": 0})})
        client = _pull_request_client(settings, fake)

        assert await client.get_last_reviewed_commit() is None

    @pytest.mark.asyncio
    async def test_get_raises_on_failure(self, settings):
        client = _pull_request_client(settings, FakeAzureDevOps({}))

        with pytest.raises(AzureDevOpsError) as exc_info:
            await client.get_last_reviewed_commit()

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_save_last_reviewed_commit(self, settings):
        fake = FakeAzureDevOps({("PATCH", f"{PR}/properties"): httpx.Response(200, json={})})
        client = _pull_request_client(settings, fake)

        assert await client.save_last_reviewed_commit("abc123") is True

        request = fake.requests[0]
        assert request.headers["Content-Type"] == "application/json-patch+json"
        assert json.loads(request.content) == [
            {"op": "replace", "path": f"/{LAST_REVIEWED_KEY}", "value": "abc123"}
        ]

    @pytest.mark.asyncio
    async def test_save_last_reviewed_commit_failure(self, settings):
        fake = FakeAzureDevOps({("PATCH", f"{PR}/properties"): httpx.Response(500)})
        client = _pull_request_client(settings, fake)

        assert await client.save_last_reviewed_commit("abc123") is False

    @pytest.mark.asyncio
    async def test_get_commit_files(self, settings):
        changes = {
            "changes": [
                {"item": {"gitObjectType": "blob", "path": "/src/app.py"}, "changeType": "edit"},
                {"item": {"gitObjectType": "blob", "path": "/src/new.py"}, "changeType": "add"},
                {"item": {"gitObjectType": "blob", "path": "/old.py"}, "changeType": "delete"},
                {"item": {"gitObjectType": "tree", "path": "/src", "isFolder": True}, "changeType": "edit"},
            ]
        }
        fake = FakeAzureDevOps(
            {("GET", f"{BASE}/commits/abc123/changes"): httpx.Response(200, json=changes)}
        )
        client = _pull_request_client(settings, fake)

        assert await client.get_commit_files("abc123") == ["src/app.py", "src/new.py"]

    @pytest.mark.asyncio
    async def test_get_comments_for_file(self, settings):
        threads = {
            "value": [
                {"id": 1, "threadContext": {"filePath": "/src/app.py"}},
                {"id": 2, "threadContext": {"filePath": "/src/other.py"}},
                {"id": 3},
            ]
        }
        comments = {
            "value": [
                {"id": 1, "content": "Rename this variable"},
                {"id": 2, "content": "Removed", "isDeleted": True},
                {"id": 3, "content": ""},
            ]
        }
        fake = FakeAzureDevOps(
            {
                ("GET", f"{PR}/threads"): httpx.Response(200, json=threads),
                ("GET", f"{PR}/threads/1/comments"): httpx.Response(200, json=comments),
            }
        )
        client = _pull_request_client(settings, fake)

        result = await client.get_comments_for_file("src/app.py")

        assert result == [Comment(content="Rename this variable")]

    @pytest.mark.asyncio
    async def test_add_thread(self, settings):
        fake = FakeAzureDevOps({("POST", f"{PR}/threads"): httpx.Response(200, json={"id": 9})})
        client = _pull_request_client(settings, fake)
        thread = Thread(
            comments=[Comment(content="Possible None", confidence_score=9)],
            thread_context=ThreadContext(
                file_path="/src/app.py",
                right_file_start=FilePosition(line=3, offset=1),
                right_file_end=FilePosition(line=3, offset=12),
            ),
        )

        assert await client.add_thread(thread) is True

        body = json.loads(fake.requests[0].content)
        assert body["threadContext"]["rightFileStart"] == {"line": 3, "offset": 1}
        assert body["comments"][0]["content"] == "Possible None"

    @pytest.mark.asyncio
    async def test_add_thread_unauthorized(self, settings):
        fake = FakeAzureDevOps({("POST", f"{PR}/threads"): httpx.Response(401)})
        client = _pull_request_client(settings, fake)

        with pytest.raises(AzureDevOpsError, match="Contribute to pull requests"):
            await client.add_thread(Thread(comments=[Comment(content="x")]))

    @pytest.mark.asyncio
    async def test_add_comment(self, settings):
        fake = FakeAzureDevOps({("POST", f"{PR}/threads"): httpx.Response(200, json={})})
        client = _pull_request_client(settings, fake)

        assert await client.add_comment("src/app.py", "Looks good") is True

        body = json.loads(fake.requests[0].content)
        assert body["threadContext"] == {"filePath": "/src/app.py"}

    @pytest.mark.asyncio
    async def test_delete_bot_comments(self, settings):
        threads = {"value": [{"id": 1, "threadContext": {"filePath": "/src/app.py"}}]}
        comments = {
            "value": [
                {"id": 10, "author": {"displayName": "Storefront Build Service (contoso)"}},
                {"id": 11, "author": {"displayName": "Jane Developer"}},
            ]
        }
        fake = FakeAzureDevOps(
            {
                ("GET", f"{PR}/threads"): httpx.Response(200, json=threads),
                ("GET", f"{PR}/threads/1/comments"): httpx.Response(200, json=comments),
                ("DELETE", f"{PR}/threads/1/comments/10"): httpx.Response(204),
            }
        )
        client = _pull_request_client(settings, fake)

        assert await client.delete_bot_comments() == 1
        assert [r.method for r in fake.requests].count("DELETE") == 1
