"""Resolve the triggering GitHub event into the pull request it concerns.

Four event kinds are supported, each with its own resolver.  The set is
closed: ``_RESOLVERS`` must cover every ``EventKind`` member, which is
checked when the module is imported.
"""

import json
from collections.abc import Callable
from enum import Enum
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from agents_action.errors import (
    MalformedEvent,
    MissingInput,
    MissingPullRequestNumber,
    NotAPullRequest,
    UnsupportedEvent,
)
from agents_action.schemas.events import EventBody, EventRepository, EventUser
from agents_action.schemas.payload import GitHubEvent, GitHubUser, Repository

logger = structlog.get_logger()


class EventKind(str, Enum):
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"


class EventContext(BaseModel):
    """What the rest of the pipeline needs to know about the triggering event."""

    model_config = ConfigDict(frozen=True)

    event: GitHubEvent
    repository: Repository
    sender: GitHubUser
    pull_request_number: int
    trigger_comment_id: int | None = None


# Each resolver returns (pull_request_number, trigger_comment_id).
_Resolver = Callable[[EventBody], tuple[int | None, int | None]]


def _resolve_pull_request(body: EventBody) -> tuple[int | None, int | None]:
    return (body.pull_request.number if body.pull_request else None), None


def _resolve_issue_comment(body: EventBody) -> tuple[int | None, int | None]:
    if body.issue is None or body.issue.pull_request is None:
        raise NotAPullRequest(
            "issue_comment event is not associated with a pull request. "
            "This action only supports PR comments."
        )
    return body.issue.number, (body.comment.id if body.comment else None)


def _resolve_review_comment(body: EventBody) -> tuple[int | None, int | None]:
    number = body.pull_request.number if body.pull_request else None
    return number, (body.comment.id if body.comment else None)


_RESOLVERS: dict[EventKind, _Resolver] = {
    EventKind.PULL_REQUEST: _resolve_pull_request,
    EventKind.PULL_REQUEST_REVIEW: _resolve_pull_request,
    EventKind.ISSUE_COMMENT: _resolve_issue_comment,
    EventKind.PULL_REQUEST_REVIEW_COMMENT: _resolve_review_comment,
}

if set(_RESOLVERS) != set(EventKind):
    raise RuntimeError(f"No resolver for {set(EventKind) - set(_RESOLVERS)}")


def _map_repository(repo: EventRepository) -> Repository:
    return Repository(
        owner=repo.owner.login or repo.owner.name or repo.full_name.split("/", 1)[0],
        name=repo.name,
        full_name=repo.full_name,
        url=repo.html_url,
        default_branch=repo.default_branch or "main",
    )


def map_user(user: EventUser | dict) -> GitHubUser:
    """Convert a GitHub API user object into the payload's user shape."""
    if isinstance(user, dict):
        user = EventUser.model_validate(user)
    return GitHubUser(
        login=user.login,
        id=user.id,
        avatar_url=user.avatar_url,
        url=user.html_url,
    )


def resolve_event(event_name: str, payload: dict) -> EventContext:
    """Resolve an event name and its JSON body into an ``EventContext``.

    Raises:
        UnsupportedEvent: The event kind is not one of the four supported kinds.
        NotAPullRequest: An issue comment was posted on a plain issue.
        MalformedEvent: The body lacks a repository or sender block.
        MissingPullRequestNumber: No pull request number could be found.
    """
    try:
        kind = EventKind(event_name)
    except ValueError:
        raise UnsupportedEvent(
            f'Unsupported event "{event_name}". This action only supports pull_request, '
            "pull_request_review, issue_comment (on PRs), and pull_request_review_comment events."
        ) from None

    try:
        body = EventBody.model_validate(payload)
    except ValidationError as exc:
        raise MalformedEvent(f"Event payload could not be parsed: {exc}") from exc

    if body.repository is None:
        raise MalformedEvent("Event payload does not contain repository information")
    if body.sender is None:
        raise MalformedEvent("Event payload does not contain sender information")

    pull_request_number, trigger_comment_id = _RESOLVERS[kind](body)
    if not pull_request_number:
        raise MissingPullRequestNumber(
            f'Could not determine pull request number from event "{event_name}".'
        )

    try:
        repository = _map_repository(body.repository)
        sender = map_user(body.sender)
    except ValidationError as exc:
        raise MalformedEvent(f"Event repository or sender block is invalid: {exc}") from exc

    logger.info(
        "event_resolved",
        event_type=kind.value,
        action=body.action or "(none)",
        pull_request_number=pull_request_number,
        trigger_comment_id=trigger_comment_id,
    )
    return EventContext(
        event=GitHubEvent(type=kind.value, action=body.action),
        repository=repository,
        sender=sender,
        pull_request_number=pull_request_number,
        trigger_comment_id=trigger_comment_id,
    )


def load_event_context(event_name: str, event_path: str) -> EventContext:
    """Read the runner-supplied event file and resolve it."""
    if not event_name:
        raise MissingInput("GITHUB_EVENT_NAME environment variable is not set")
    if not event_path:
        raise MissingInput("GITHUB_EVENT_PATH environment variable is not set")

    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedEvent(f"Event payload at {event_path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedEvent(f"Event payload at {event_path} is not a JSON object")
    return resolve_event(event_name, payload)
