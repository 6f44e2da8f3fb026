"""Shared fixtures: in-process fakes of the GitHub API and the Inkeep API.

Both fakes are plain ``httpx.MockTransport`` handlers that record every
request they serve, so tests can assert on what was (or was not) sent.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import AsyncGenerator, Generator

import httpx
import pytest
from factories import OWNER, PR_NUMBER, REPO, make_file, make_pull_request


class FakeGitHubAPI:
    """Serves the GitHub REST endpoints the pipeline reads.

    Listings are paginated ``page_size`` items at a time with a
    ``Link: rel="next"`` header, like the real API.
    """

    def __init__(self) -> None:
        self.pull_request: dict = make_pull_request()
        self.diff = "diff --git a/src/sort.py b/src/sort.py\n+sorted()\n"
        self.files: list[dict] = [make_file("src/sort.py"), make_file("README.md")]
        self.issue_comments: list[dict] = []
        self.review_comments: list[dict] = []
        self.reviews: list[dict] = []
        self.search_items: list[dict] = []
        self.contents: dict[str, str] = {}
        self.failing_contents: set[str] = set()
        self.failures: dict[str, int] = {}
        self.page_size = 100
        self.requests: list[httpx.Request] = []
        self.pages_served: Counter[str] = Counter()

    def _paginate(self, request: httpx.Request, items: list[dict]) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        start = (page - 1) * self.page_size
        chunk = items[start : start + self.page_size]
        headers = {}
        if start + self.page_size < len(items):
            next_url = request.url.copy_set_param("page", str(page + 1))
            headers["Link"] = f'<{next_url}>; rel="next"'
        self.pages_served[request.url.path] += 1
        return httpx.Response(200, json=chunk, headers=headers)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        repo_prefix = f"/repos/{OWNER}/{REPO}"

        if path in self.failures:
            return httpx.Response(self.failures[path], json={"message": "Server Error"})

        if path == "/search/issues":
            return httpx.Response(
                200, json={"total_count": len(self.search_items), "items": self.search_items}
            )
        if path == f"{repo_prefix}/pulls/{PR_NUMBER}":
            if "diff" in request.headers.get("accept", ""):
                return httpx.Response(200, text=self.diff)
            return httpx.Response(200, json=self.pull_request)
        if path == f"{repo_prefix}/pulls/{PR_NUMBER}/files":
            return self._paginate(request, self.files)
        if path == f"{repo_prefix}/issues/{PR_NUMBER}/comments":
            return self._paginate(request, self.issue_comments)
        if path == f"{repo_prefix}/pulls/{PR_NUMBER}/comments":
            return self._paginate(request, self.review_comments)
        if path == f"{repo_prefix}/pulls/{PR_NUMBER}/reviews":
            return self._paginate(request, self.reviews)
        if path.startswith(f"{repo_prefix}/contents/"):
            file_path = path.removeprefix(f"{repo_prefix}/contents/")
            if file_path in self.failing_contents:
                return httpx.Response(500, text="Internal Server Error")
            if file_path in self.contents:
                return httpx.Response(200, text=self.contents[file_path])
        return httpx.Response(404, json={"message": "Not Found"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


class FakeInkeepAPI:
    """Serves the token exchange and the trigger endpoint."""

    def __init__(self) -> None:
        self.exchange_status = 200
        self.exchange_body: dict | str = {
            "token": "ghs_installation_token",
            "expires_at": "2026-03-02T15:00:00Z",
            "repository": f"{OWNER}/{REPO}",
            "installation_id": 99,
        }
        self.trigger_status = 202
        self.trigger_body: dict | str = {
            "success": True,
            "invocationId": "i1",
            "conversationId": "c1",
        }
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _respond(status: int, body: dict | str) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/token-exchange"):
            return self._respond(self.exchange_status, self.exchange_body)
        return self._respond(self.trigger_status, self.trigger_body)

    @property
    def exchange_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/token-exchange")]

    @property
    def trigger_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if not r.url.path.endswith("/token-exchange")]

    def exchange_json(self, index: int = 0) -> dict:
        return json.loads(self.exchange_requests[index].content)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call made during a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_github() -> FakeGitHubAPI:
    return FakeGitHubAPI()


@pytest.fixture
def fake_inkeep() -> FakeInkeepAPI:
    return FakeInkeepAPI()


@pytest.fixture
async def github_client(fake_github: FakeGitHubAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield a client wired to the fake GitHub API."""
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_github), base_url="https://api.github.com"
    ) as client:
        yield client


@pytest.fixture
async def http_client(fake_inkeep: FakeInkeepAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield a client wired to the fake Inkeep API."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_inkeep)) as client:
        yield client
