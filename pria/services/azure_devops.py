"""Azure DevOps REST client for pull request threads and properties."""

import logging
from typing import Any

import httpx

from pria.config.settings import Settings
from pria.exceptions import AzureDevOpsError, ConfigurationError
from pria.models.review import Comment, Thread, ThreadContext

logger = logging.getLogger(__name__)

API_VERSION = "7.0"
COMMENTS_API_VERSION = "5.1"

# Pull request property holding the last commit PRIA reviewed
LAST_REVIEWED_KEY = "Anthology.Pria.LastReviewedCommit"

_PERMISSION_HINT = (
    "The Build Service must have 'Contribute to pull requests' access to the "
    "repository. See https://stackoverflow.com/a/57985733 for more information"
)


class AzureDevOpsClient:
    """Thin JSON wrapper around ``httpx.AsyncClient`` with bearer auth."""

    def __init__(self, access_token: str, http_client: httpx.AsyncClient) -> None:
        self._http_client = http_client
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def request(
        self,
        method: str,
        url: str,
        json: Any = None,
        content_type: str | None = None,
    ) -> httpx.Response:
        """Send a request and log non-success responses."""
        headers = dict(self._headers)
        if content_type:
            headers["Content-Type"] = content_type

        logger.debug(f"ADO request: {method} {url}")
        response = await self._http_client.request(method, url, headers=headers, json=json)

        if response.is_success:
            logger.debug(f"ADO request succeeded: {method} {url}")
        else:
            logger.warning(
                f"ADO request failed: {method} {url}. "
                f"Response: {response.status_code} {response.reason_phrase}"
            )
        return response

    async def get(self, url: str) -> Any:
        """GET a JSON document.

        Raises:
            AzureDevOpsError: If the response is not successful
        """
        response = await self.request("GET", url)
        if not response.is_success:
            raise AzureDevOpsError(
                f"GET {url} failed with {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def post(self, url: str, body: Any) -> httpx.Response:
        return await self.request("POST", url, json=body)

    async def patch(self, url: str, body: Any) -> bool:
        """PATCH a JSON patch document and report success."""
        response = await self.request(
            "PATCH", url, json=body, content_type="application/json-patch+json"
        )
        return response.is_success

    async def delete(self, url: str) -> httpx.Response:
        return await self.request("DELETE", url)


class PullRequestClient:
    """Operations on the pull request that triggered the pipeline."""

    def __init__(self, settings: Settings, client: AzureDevOpsClient) -> None:
        missing = [
            name
            for name in (
                "collection_uri",
                "team_project_id",
                "repository_name",
                "pull_request_id",
            )
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(
                "Missing pipeline variables for the pull request: " + ", ".join(missing)
            )

        self._settings = settings
        self._client = client
        self._pull_request: dict[str, Any] | None = None

    @property
    def repository_uri(self) -> str:
        collection_uri = self._settings.collection_uri or ""
        if not collection_uri.endswith("/"):
            collection_uri += "/"
        return (
            f"{collection_uri}{self._settings.team_project_id}"
            f"/_apis/git/repositories/{self._settings.repository_name}"
        )

    @property
    def base_uri(self) -> str:
        return f"{self.repository_uri}/pullRequests/{self._settings.pull_request_id}"

    @property
    def build_service_name(self) -> str:
        """Display name of the identity the pipeline posts comments as."""
        collection_uri = self._settings.collection_uri or ""
        host_and_path = collection_uri.replace("https://", "").replace("http://", "")
        parts = host_and_path.split("/")
        collection_name = parts[1] if len(parts) > 1 else ""
        return f"{self._settings.team_project} Build Service ({collection_name})"

    async def get_pull_request(self) -> dict[str, Any]:
        """Fetch the pull request, cached for the lifetime of the client."""
        if self._pull_request is None:
            logger.debug(f"Getting pull request {self._settings.pull_request_id}")
            self._pull_request = await self._client.get(
                f"{self.base_uri}/?api-version={API_VERSION}"
            )
        return self._pull_request

    async def get_last_merge_source_commit(self) -> str:
        """Return the head commit of the source branch at the last merge."""
        pull_request = await self.get_pull_request()
        commit_id = pull_request["lastMergeSourceCommit"]["commitId"]
        logger.debug(f"Last merge source commit hash {commit_id}")
        return commit_id

    async def get_last_reviewed_commit(self) -> str | None:
        """Return the commit recorded by the previous review, if any."""
        properties = await self._client.get(
            f"{self.base_uri}/properties?api-version={API_VERSION}"
        )
        value = (properties.get("value") or {}).get(LAST_REVIEWED_KEY) or {}
        commit_id = value.get("$value")
        logger.debug(f"Last reviewed commit hash {commit_id}")
        return commit_id

    async def save_last_reviewed_commit(self, commit_id: str) -> bool:
        """Record ``commit_id`` as reviewed on the pull request."""
        logger.debug(f"Saving last reviewed commit hash {commit_id}")
        body = [{"op": "replace", "path": f"/{LAST_REVIEWED_KEY}", "value": commit_id}]
        ok = await self._client.patch(
            f"{self.base_uri}/properties?api-version={API_VERSION}", body
        )
        if not ok:
            logger.warning(f"Failed to save last reviewed commit hash {commit_id}")
        return ok

    async def get_commit_files(self, commit_id: str) -> list[str]:
        """List files added or edited by a commit, without a leading slash."""
        data = await self._client.get(
            f"{self.repository_uri}/commits/{commit_id}/changes?api-version={API_VERSION}"
        )
        files = []
        for change in data.get("changes", []):
            item = change.get("item") or {}
            change_type = change.get("changeType", "")
            if item.get("gitObjectType", "blob") != "blob" or item.get("isFolder"):
                continue
            if "add" not in change_type and "edit" not in change_type:
                continue
            files.append(item.get("path", "").lstrip("/"))
        return files

    async def get_threads(self) -> list[dict[str, Any]]:
        """Return the threads of the pull request that are anchored to a file."""
        data = await self._client.get(
            f"{self.base_uri}/threads?api-version={COMMENTS_API_VERSION}"
        )
        return [thread for thread in data.get("value", []) if thread.get("threadContext")]

    async def get_comments(self, thread_id: int) -> list[dict[str, Any]]:
        data = await self._client.get(
            f"{self.base_uri}/threads/{thread_id}/comments?api-version={COMMENTS_API_VERSION}"
        )
        return data.get("value", [])

    async def get_comments_for_file(self, file_name: str) -> list[Comment]:
        """Return every comment already posted on ``file_name``."""
        file_name = _absolute_path(file_name)
        threads = await self.get_threads()
        logger.info(f"Thread count: {len(threads)}")

        comments: list[Comment] = []
        for thread in threads:
            if thread["threadContext"].get("filePath") != file_name:
                continue
            for comment in await self.get_comments(thread["id"]):
                if comment.get("isDeleted") or not comment.get("content"):
                    continue
                comments.append(Comment(content=comment["content"]))
        return comments

    async def add_thread(self, thread: Thread) -> bool:
        """Post a thread to the pull request.

        Raises:
            AzureDevOpsError: If the build service lacks permission (401)
        """
        response = await self._client.post(
            f"{self.base_uri}/threads?api-version={API_VERSION}",
            thread.to_api_payload(),
        )
        if response.status_code == 401:
            raise AzureDevOpsError(_PERMISSION_HINT, status_code=401)
        return response.is_success

    async def add_comment(self, file_name: str, content: str) -> bool:
        """Post a single file level comment."""
        thread = Thread(
            comments=[Comment(content=content, comment_type=2)],
            status=1,
            thread_context=ThreadContext(file_path=_absolute_path(file_name)),
        )
        return await self.add_thread(thread)

    async def delete_comment(self, thread_id: int, comment_id: int) -> bool:
        url = (
            f"{self.base_uri}/threads/{thread_id}/comments/{comment_id}"
            f"?api-version={COMMENTS_API_VERSION}"
        )
        response = await self._client.delete(url)
        return response.is_success

    async def delete_bot_comments(self) -> int:
        """Delete every comment posted by the build service. Returns the count."""
        deleted = 0
        for thread in await self.get_threads():
            for comment in await self.get_comments(thread["id"]):
                author = (comment.get("author") or {}).get("displayName")
                if author != self.build_service_name:
                    continue
                if await self.delete_comment(thread["id"], comment["id"]):
                    deleted += 1
        return deleted


def _absolute_path(file_name: str) -> str:
    """Azure DevOps thread paths start with a slash."""
    return file_name if file_name.startswith("/") else f"/{file_name}"
