"""Pydantic models for the standardized trigger payload and its acknowledgment.

Field names serialize in camelCase (``fullName``, ``avatarUrl``...) because
that is the wire contract of the trigger endpoint.  Python code populates
and reads the models by their snake_case names.  Optional fields that are
unset are left out of the JSON entirely rather than sent as ``null``;
``PullRequest.body`` is the one field that is nullable on the wire.
"""

from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel


def _require_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"not an absolute http(s) URL: {value!r}")
    return value


Url = Annotated[str, AfterValidator(_require_url)]

FileStatus = Literal["added", "modified", "removed", "renamed", "copied", "changed", "unchanged"]
CommentType = Literal["issue", "review", "review_summary"]
ReviewState = Literal["APPROVED", "CHANGES_REQUESTED", "COMMENTED", "DISMISSED", "PENDING"]


class PayloadModel(BaseModel):
    """Immutable camelCase model shared by every payload type."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SparsePayloadModel(PayloadModel):
    """Payload model whose unset optional fields are dropped on serialization."""

    @model_serializer(mode="wrap")
    def _drop_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {key: value for key, value in handler(self).items() if value is not None}


class GitHubEvent(PayloadModel):
    """Category of the trigger and its sub-action (e.g. ``pull_request``/``opened``)."""

    type: str
    action: str


class GitHubUser(SparsePayloadModel):
    login: str
    id: int | None = None
    avatar_url: str | None = None
    url: str | None = None


class Repository(PayloadModel):
    owner: str
    name: str
    full_name: str
    url: Url
    default_branch: str


class GitRef(PayloadModel):
    ref: str
    sha: str


class PullRequest(PayloadModel):
    number: int
    title: str
    body: str | None
    author: GitHubUser
    url: Url
    state: str
    base: GitRef
    head: GitRef
    created_at: str
    updated_at: str


class ChangedFile(SparsePayloadModel):
    path: str
    status: FileStatus
    additions: int
    deletions: int
    patch: str | None = None
    previous_path: str | None = None  # renames only
    contents: str | None = None  # only when file contents were requested


class Comment(SparsePayloadModel):
    id: int
    body: str
    author: GitHubUser
    created_at: str
    updated_at: str | None = None
    type: CommentType
    # Inline review comments
    path: str | None = None
    line: int | None = None
    diff_hunk: str | None = None
    is_suggestion: bool | None = None
    # Review summaries
    state: ReviewState | None = None


class TriggerPayload(SparsePayloadModel):
    """The unit of delivery: everything the agent needs about one pull request event."""

    event: GitHubEvent
    repository: Repository
    pull_request: PullRequest
    sender: GitHubUser
    changed_files: list[ChangedFile]
    comments: list[Comment]
    trigger_comment: Comment | None = None
    diff: str | None = None


class TriggerResponse(PayloadModel):
    """Acknowledgment returned by the trigger endpoint on HTTP 202."""

    success: bool
    invocation_id: str
    conversation_id: str
