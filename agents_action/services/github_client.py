"""GitHub REST API client for the reads the trigger pipeline needs.

All functions take a shared ``httpx.AsyncClient`` whose ``base_url`` points
at the GitHub API root (``GITHUB_API_URL`` on the runner), so paths below are
relative.  Non-2xx responses raise ``UpstreamFetchError``; transport
failures raise ``UpstreamUnavailable``.
"""

from collections.abc import AsyncIterator
from urllib.parse import quote

import httpx

from agents_action.config import CONSTANTS
from agents_action.errors import UpstreamFetchError, UpstreamUnavailable

PAGE_SIZE = CONSTANTS.page_size

_GITHUB_HEADERS_BASE = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


def _auth_headers(token: str, accept: str | None = None) -> dict[str, str]:
    """Build GitHub API headers with Bearer auth."""
    headers = {**_GITHUB_HEADERS_BASE, "Authorization": f"Bearer {token}"}
    if accept:
        headers["Accept"] = accept
    return headers


async def _get(
    client: httpx.AsyncClient,
    url: str,
    token: str,
    *,
    params: dict | None = None,
    accept: str | None = None,
) -> httpx.Response:
    try:
        resp = await client.get(url, params=params, headers=_auth_headers(token, accept))
    except httpx.TransportError as exc:
        raise UpstreamUnavailable(f"GitHub API unreachable: GET {url}: {exc}") from exc
    if resp.is_error:
        raise UpstreamFetchError(
            f"GitHub API request failed ({resp.status_code}): GET {resp.request.url.path}: "
            f"{resp.text}",
            status=resp.status_code,
        )
    return resp


async def iter_pages(
    client: httpx.AsyncClient,
    url: str,
    token: str,
    params: dict | None = None,
) -> AsyncIterator[list[dict]]:
    """Yield each page of a paginated listing, following ``Link: rel="next"``.

    The iterator is lazy and one-shot: the next page is requested only when
    the consumer asks for it, and iteration stops once the API stops
    advertising a next page.
    """
    next_url: str | None = url
    next_params = {**(params or {}), "per_page": PAGE_SIZE}
    while next_url:
        resp = await _get(client, next_url, token, params=next_params)
        yield resp.json()
        # The next link already carries the query string.
        next_url = resp.links.get("next", {}).get("url")
        next_params = None


async def get_pull_request(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    number: int,
    token: str,
) -> dict:
    """Fetch pull request metadata (title, head/base refs, author...)."""
    resp = await _get(client, f"/repos/{owner}/{repo}/pulls/{number}", token)
    return resp.json()


async def get_pull_request_diff(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    number: int,
    token: str,
) -> str:
    """Fetch the unified diff of a pull request.

    Same endpoint as ``get_pull_request``; the diff media type selects the
    representation.
    """
    resp = await _get(
        client,
        f"/repos/{owner}/{repo}/pulls/{number}",
        token,
        accept="application/vnd.github.diff",
    )
    return resp.text


async def fetch_file_content(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    path: str,
    ref: str,
    token: str,
) -> str | None:
    """Fetch raw file content from GitHub at the given commit SHA.

    Args:
        client: Shared httpx async client (for connection pooling).
        owner: Repository owner (user or organisation).
        repo: Repository name.
        path: File path within the repository.
        ref: Git ref -- typically a commit SHA.
        token: GitHub installation token or personal access token.

    Returns:
        The raw file content as a string, or None if the file was not found (404).

    Raises:
        UpstreamFetchError: On non-2xx responses other than 404.
    """
    try:
        return (
            await _get(
                client,
                f"/repos/{owner}/{repo}/contents/{quote(path)}",
                token,
                params={"ref": ref},
                accept="application/vnd.github.raw+json",
            )
        ).text
    except UpstreamFetchError as exc:
        if exc.status == 404:
            return None
        raise


def list_pull_files(
    client: httpx.AsyncClient, owner: str, repo: str, number: int, token: str
) -> AsyncIterator[list[dict]]:
    return iter_pages(client, f"/repos/{owner}/{repo}/pulls/{number}/files", token)


def list_issue_comments(
    client: httpx.AsyncClient, owner: str, repo: str, number: int, token: str
) -> AsyncIterator[list[dict]]:
    return iter_pages(client, f"/repos/{owner}/{repo}/issues/{number}/comments", token)


def list_review_comments(
    client: httpx.AsyncClient, owner: str, repo: str, number: int, token: str
) -> AsyncIterator[list[dict]]:
    return iter_pages(client, f"/repos/{owner}/{repo}/pulls/{number}/comments", token)


def list_reviews(
    client: httpx.AsyncClient, owner: str, repo: str, number: int, token: str
) -> AsyncIterator[list[dict]]:
    return iter_pages(client, f"/repos/{owner}/{repo}/pulls/{number}/reviews", token)


async def search_issues(client: httpx.AsyncClient, query: str, token: str) -> list[dict]:
    """Run an issue/PR search and return the first page of matching items."""
    resp = await _get(client, "/search/issues", token, params={"q": query, "per_page": PAGE_SIZE})
    return resp.json().get("items", [])
