"""Guards against the agent re-triggering itself.

Two independent checks, either of which skips the run:

- the agent already opened a companion pull request that references the
  current one;
- the comment that triggered the run was written by the agent.
"""

import re

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from agents_action.errors import UpstreamFetchError
from agents_action.schemas.payload import Comment
from agents_action.services.github_client import search_issues

logger = structlog.get_logger()


class CompanionPullRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    url: str


def _search_author(bot_login: str) -> str:
    """Map a bot login (``inkeep[bot]``) to its search qualifier (``app/inkeep``)."""
    if bot_login.endswith("[bot]"):
        return f"app/{bot_login[: -len('[bot]')]}"
    return bot_login


def _references(item: dict, pr_number: int, pr_url: str | None) -> bool:
    text = f"{item.get('title') or ''}\n{item.get('body') or ''}"
    if re.search(rf"#{pr_number}(?!\d)", text):
        return True
    return bool(pr_url) and re.search(rf"{re.escape(pr_url)}(?!\d)", text) is not None


async def find_companion_pull_request(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    pr_number: int,
    token: str,
    bot_login: str,
    pr_url: str | None = None,
) -> CompanionPullRequest | None:
    """Return the bot-authored pull request that references *pr_number*, if any.

    The search is advisory: if it fails, the run proceeds as if nothing was found.
    """
    query = f"repo:{owner}/{repo} is:pr author:{_search_author(bot_login)} {pr_number}"
    try:
        items = await search_issues(client, query, token)
    except UpstreamFetchError as exc:
        logger.warning(
            "companion_search_failed",
            pull_request_number=pr_number,
            status=exc.status,
            error=str(exc),
        )
        return None

    for item in items:
        if item.get("number") == pr_number:
            continue
        if _references(item, pr_number, pr_url):
            companion = CompanionPullRequest(number=item["number"], url=item["html_url"])
            logger.info(
                "companion_pull_request_found",
                pull_request_number=pr_number,
                companion_number=companion.number,
                companion_url=companion.url,
            )
            return companion
    return None


def is_bot_comment(comment: Comment | None, bot_login: str) -> bool:
    """Return True if *comment* exists and was authored by *bot_login*."""
    return comment is not None and comment.author.login == bot_login
