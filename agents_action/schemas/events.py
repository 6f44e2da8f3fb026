"""Pydantic models for the inbound GitHub event payload.

Only the fields the resolver reads are modelled; everything else in the
event body is ignored.

Reference: https://docs.github.com/en/webhooks/webhook-events-and-payloads
"""

from pydantic import BaseModel, ConfigDict


class EventModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class EventUser(EventModel):
    """Actor block (``sender``, ``user``) as delivered in event bodies."""

    login: str
    id: int
    avatar_url: str | None = None
    html_url: str | None = None


class RepositoryOwner(EventModel):
    """Owner of the repository (user or organization)."""

    login: str | None = None
    name: str | None = None


class EventRepository(EventModel):
    name: str
    full_name: str
    html_url: str
    owner: RepositoryOwner
    default_branch: str | None = None


class EventPullRequest(EventModel):
    number: int | None = None


class EventIssue(EventModel):
    number: int | None = None
    # Present only when the issue is a pull request.
    pull_request: dict | None = None


class EventComment(EventModel):
    id: int | None = None


class EventBody(EventModel):
    """Union of the blocks found across the supported event kinds."""

    action: str = ""
    repository: EventRepository | None = None
    sender: EventUser | None = None
    pull_request: EventPullRequest | None = None
    issue: EventIssue | None = None
    comment: EventComment | None = None
