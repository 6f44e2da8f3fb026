"""Tests for the trigger payload models and their wire format."""

import json

import pytest
from pydantic import ValidationError

from agents_action.schemas.payload import (
    ChangedFile,
    Comment,
    GitHubEvent,
    GitHubUser,
    GitRef,
    PullRequest,
    Repository,
    TriggerPayload,
    TriggerResponse,
)
from agents_action.services.trigger_client import serialize_payload


def _user(login: str = "alice") -> GitHubUser:
    return GitHubUser(
        login=login,
        id=2,
        avatar_url="https://avatars.githubusercontent.com/u/2",
        url=f"https://github.com/{login}",
    )


def _payload(**overrides) -> TriggerPayload:
    comment = Comment(
        id=5,
        body="@inkeep review",
        author=_user("bob"),
        created_at="2026-03-02T12:00:00Z",
        type="issue",
    )
    fields = {
        "event": GitHubEvent(type="issue_comment", action="created"),
        "repository": Repository(
            owner="acme",
            name="widgets",
            full_name="acme/widgets",
            url="https://github.com/acme/widgets",
            default_branch="main",
        ),
        "pull_request": PullRequest(
            number=7,
            title="Add sorting",
            body=None,
            author=_user(),
            url="https://github.com/acme/widgets/pull/7",
            state="open",
            base=GitRef(ref="main", sha="b" * 40),
            head=GitRef(ref="feature", sha="h" * 40),
            created_at="2026-03-01T10:00:00Z",
            updated_at="2026-03-02T11:00:00Z",
        ),
        "sender": _user(),
        "changed_files": [
            ChangedFile(
                path="src/new.py",
                status="renamed",
                additions=1,
                deletions=0,
                previous_path="src/old.py",
            ),
        ],
        "comments": [comment],
        "trigger_comment": comment,
    }
    fields.update(overrides)
    return TriggerPayload(**fields)


class TestWireFormat:
    def test_keys_are_camel_case(self) -> None:
        data = json.loads(serialize_payload(_payload()))

        assert set(data) == {
            "event",
            "repository",
            "pullRequest",
            "sender",
            "changedFiles",
            "comments",
            "triggerComment",
        }
        assert data["repository"]["fullName"] == "acme/widgets"
        assert data["repository"]["defaultBranch"] == "main"
        assert data["pullRequest"]["createdAt"] == "2026-03-01T10:00:00Z"
        assert data["sender"]["avatarUrl"] == "https://avatars.githubusercontent.com/u/2"
        assert data["changedFiles"][0]["previousPath"] == "src/old.py"

    def test_unset_optionals_are_omitted(self) -> None:
        data = json.loads(serialize_payload(_payload(trigger_comment=None)))

        assert "triggerComment" not in data
        assert "diff" not in data
        changed = data["changedFiles"][0]
        assert "patch" not in changed
        assert "contents" not in changed
        comment = data["comments"][0]
        assert "path" not in comment
        assert "line" not in comment
        assert "state" not in comment

    def test_null_body_is_kept(self) -> None:
        data = json.loads(serialize_payload(_payload()))

        assert "body" in data["pullRequest"]
        assert data["pullRequest"]["body"] is None

    def test_round_trip_reproduces_payload(self) -> None:
        payload = _payload(diff="diff --git a/x b/x")

        assert TriggerPayload.model_validate_json(serialize_payload(payload)) == payload


class TestValidation:
    def test_models_are_immutable(self) -> None:
        payload = _payload()

        with pytest.raises(ValidationError):
            payload.pull_request.title = "changed"

    def test_unknown_file_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChangedFile(path="a", status="exploded", additions=0, deletions=0)

    def test_unknown_comment_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Comment(id=1, body="", author=_user(), created_at="t", type="discussion")

    def test_repository_url_must_be_absolute(self) -> None:
        with pytest.raises(ValidationError):
            Repository(
                owner="acme",
                name="widgets",
                full_name="acme/widgets",
                url="github.com/acme/widgets",
                default_branch="main",
            )


class TestTriggerResponse:
    def test_parses_camel_case(self) -> None:
        response = TriggerResponse.model_validate(
            {"success": True, "invocationId": "i1", "conversationId": "c1"}
        )

        assert response.invocation_id == "i1"
        assert response.conversation_id == "c1"

    def test_rejects_missing_fields(self) -> None:
        with pytest.raises(ValidationError):
            TriggerResponse.model_validate({"success": True})
