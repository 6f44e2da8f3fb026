"""Assemble the trigger payload from the resolved event and fetched PR context."""

from pydantic import ValidationError

from agents_action.errors import InvariantViolation
from agents_action.schemas.payload import TriggerPayload
from agents_action.services.event_context import EventContext
from agents_action.services.pr_context import PRContext


def build_trigger_payload(event_context: EventContext, pr_context: PRContext) -> TriggerPayload:
    """Build and validate the payload.  Pure: no I/O, no shared state.

    The wire form of the payload is validated against the schema before the
    payload is returned, so whatever the dispatcher serializes is known to
    satisfy the trigger endpoint's contract.

    Raises:
        InvariantViolation: The assembled payload fails its own schema, or the
            trigger comment is not one of the payload's comments.
    """
    trigger_comment = pr_context.trigger_comment
    if trigger_comment is not None and not any(c is trigger_comment for c in pr_context.comments):
        raise InvariantViolation(
            f"Trigger comment {trigger_comment.id} is not among the fetched comments"
        )

    try:
        payload = TriggerPayload(
            event=event_context.event,
            repository=event_context.repository,
            pull_request=pr_context.pull_request,
            sender=event_context.sender,
            changed_files=pr_context.changed_files,
            comments=pr_context.comments,
            trigger_comment=trigger_comment,
            diff=pr_context.diff,
        )
        TriggerPayload.model_validate(payload.model_dump(mode="json", by_alias=True))
    except ValidationError as exc:
        raise InvariantViolation(f"Assembled trigger payload failed validation: {exc}") from exc
    return payload
