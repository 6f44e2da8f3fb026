"""Pull request context fetcher.

Gathers everything the trigger payload carries about a pull request:
metadata, changed files (optionally with contents), and the full comment
history.  PR metadata is fetched first because ``head.sha`` pins every
content lookup; the file listing and comment listings then run
concurrently.  Each listing is consumed page by page, and the path filter
is applied per page so the unfiltered file set is never held in memory.
"""

import asyncio

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from agents_action.errors import UpstreamFetchError
from agents_action.schemas.payload import ChangedFile, Comment, GitRef, PullRequest
from agents_action.services import github_client
from agents_action.services.event_context import map_user
from agents_action.services.filters import matches_path_filter

logger = structlog.get_logger()

SUGGESTION_FENCE = "```suggestion"


class PRContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    pull_request: PullRequest
    changed_files: list[ChangedFile]
    comments: list[Comment]
    trigger_comment: Comment | None = None
    diff: str | None = None


def _map_pull_request(pr: dict) -> PullRequest:
    return PullRequest(
        number=pr["number"],
        title=pr["title"],
        body=pr.get("body"),
        author=map_user(pr["user"]),
        url=pr["html_url"],
        state=pr["state"],
        base=GitRef(ref=pr["base"]["ref"], sha=pr["base"]["sha"]),
        head=GitRef(ref=pr["head"]["ref"], sha=pr["head"]["sha"]),
        created_at=pr["created_at"],
        updated_at=pr["updated_at"],
    )


def _map_issue_comment(comment: dict) -> Comment:
    return Comment(
        id=comment["id"],
        body=comment.get("body") or "",
        author=map_user(comment["user"]),
        created_at=comment["created_at"],
        updated_at=comment.get("updated_at"),
        type="issue",
    )


def _map_review_comment(comment: dict) -> Comment:
    body = comment.get("body") or ""
    return Comment(
        id=comment["id"],
        body=body,
        author=map_user(comment["user"]),
        created_at=comment["created_at"],
        updated_at=comment.get("updated_at"),
        type="review",
        path=comment.get("path"),
        line=comment.get("line") or comment.get("original_line"),
        diff_hunk=comment.get("diff_hunk"),
        is_suggestion=SUGGESTION_FENCE in body,
    )


def _map_review(review: dict) -> Comment:
    return Comment(
        id=review["id"],
        body=review["body"],
        author=map_user(review["user"]),
        # Pending reviews have no submitted_at.
        created_at=review.get("submitted_at") or "",
        type="review_summary",
        state=review.get("state"),
    )


async def fetch_pull_request(
    client: httpx.AsyncClient, owner: str, repo: str, number: int, token: str
) -> PullRequest:
    logger.info("fetching_pull_request", number=number)
    return _map_pull_request(
        await github_client.get_pull_request(client, owner, repo, number, token)
    )


async def _fetch_contents(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    path: str,
    head_sha: str,
    token: str,
) -> str | None:
    """Fetch one file's contents at *head_sha*; failures are logged, not raised."""
    try:
        return await github_client.fetch_file_content(client, owner, repo, path, head_sha, token)
    except UpstreamFetchError as exc:
        logger.warning("file_contents_fetch_failed", path=path, error=str(exc))
        return None


async def fetch_changed_files(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    number: int,
    head_sha: str,
    token: str,
    *,
    path_filter: str | None = None,
    include_contents: bool = False,
    include_patches: bool = False,
) -> list[ChangedFile]:
    """Collect the PR's changed files, filtering each page as it arrives."""
    logger.info("fetching_changed_files", number=number)
    files: list[ChangedFile] = []

    async for page in github_client.list_pull_files(client, owner, repo, number, token):
        matched = [f for f in page if matches_path_filter(f["filename"], path_filter)]

        contents: list[str | None] = [None] * len(matched)
        if include_contents:
            contents = await asyncio.gather(
                *(
                    _fetch_contents(client, owner, repo, f["filename"], head_sha, token)
                    if f["status"] != "removed"
                    else asyncio.sleep(0, result=None)
                    for f in matched
                )
            )

        for f, content in zip(matched, contents):
            files.append(
                ChangedFile(
                    path=f["filename"],
                    status=f["status"],
                    additions=f["additions"],
                    deletions=f["deletions"],
                    patch=f.get("patch") if include_patches else None,
                    previous_path=f.get("previous_filename"),
                    contents=content,
                )
            )

    logger.info("changed_files_found", count=len(files), path_filter=path_filter)
    return files


async def fetch_comments(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    number: int,
    token: str,
    trigger_comment_id: int | None = None,
) -> tuple[list[Comment], Comment | None]:
    """Collect issue comments, inline review comments and review summaries.

    Returns the merged list in fetch order and the member of that list whose
    id equals *trigger_comment_id*, if any.
    """
    logger.info("fetching_comments", number=number)
    comments: list[Comment] = []
    trigger_comment: Comment | None = None

    listings = (
        (github_client.list_issue_comments, _map_issue_comment),
        (github_client.list_review_comments, _map_review_comment),
        (github_client.list_reviews, _map_review),
    )
    for list_pages, mapper in listings:
        async for page in list_pages(client, owner, repo, number, token):
            for raw in page:
                # Reviews without a summary body carry no conversation.
                if mapper is _map_review and not raw.get("body"):
                    continue
                comment = mapper(raw)
                comments.append(comment)
                if trigger_comment_id and comment.id == trigger_comment_id:
                    trigger_comment = comment

    logger.info("comments_found", count=len(comments))
    return comments, trigger_comment


async def fetch_pr_context(
    client: httpx.AsyncClient,
    token: str,
    owner: str,
    repo: str,
    number: int,
    *,
    path_filter: str | None = None,
    include_contents: bool = False,
    include_patches: bool = False,
    include_diff: bool = False,
    trigger_comment_id: int | None = None,
) -> PRContext:
    """Fetch all PR context: details, files, comments and optionally the diff.

    Raises:
        UpstreamFetchError: Any required read (metadata, listings, diff) failed.
    """
    pull_request = await fetch_pull_request(client, owner, repo, number, token)

    # The first failing listing cancels its siblings.
    try:
        async with asyncio.TaskGroup() as tg:
            files_task = tg.create_task(
                fetch_changed_files(
                    client,
                    owner,
                    repo,
                    number,
                    pull_request.head.sha,
                    token,
                    path_filter=path_filter,
                    include_contents=include_contents,
                    include_patches=include_patches,
                )
            )
            comments_task = tg.create_task(
                fetch_comments(client, owner, repo, number, token, trigger_comment_id)
            )
            diff_task = (
                tg.create_task(
                    github_client.get_pull_request_diff(client, owner, repo, number, token)
                )
                if include_diff
                else None
            )
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None

    comments, trigger_comment = comments_task.result()
    return PRContext(
        pull_request=pull_request,
        changed_files=files_task.result(),
        comments=comments,
        trigger_comment=trigger_comment,
        diff=diff_task.result() if diff_task else None,
    )
