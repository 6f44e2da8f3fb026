"""Deliver the trigger payload to the agent's trigger URL.

The payload is serialized once; those exact bytes are both signed and sent,
so the receiver can verify ``X-Signature-256`` over the raw request body.
Delivery is attempted exactly once.
"""

import hashlib
import hmac
import json
from urllib.parse import urlsplit, urlunsplit

import httpx
import structlog
from pydantic import ValidationError

from agents_action.config import CONSTANTS
from agents_action.errors import InvalidTriggerResponse, TriggerDeliveryFailed
from agents_action.schemas.payload import TriggerPayload, TriggerResponse

logger = structlog.get_logger()


def serialize_payload(payload: TriggerPayload) -> bytes:
    """Return the canonical JSON encoding of *payload* (camelCase keys)."""
    return payload.model_dump_json(by_alias=True).encode("utf-8")


def compute_signature(body: bytes, secret: str) -> str:
    """Compute the ``sha256=<hex>`` HMAC-SHA256 signature of *body*."""
    digest = hmac.new(
        secret.encode("utf-8"),
        msg=body,
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"sha256={digest}"


def sanitize_url(url: str) -> str:
    """Strip the query string and fragment, which may carry secrets."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _coerce_response(data: object) -> TriggerResponse:
    """Best-effort extraction for acknowledgments that miss the schema.

    Accepts both camelCase and snake_case identifiers.
    """
    fields = data if isinstance(data, dict) else {}
    return TriggerResponse(
        success=bool(fields.get("success")),
        invocation_id=str(fields.get("invocationId") or fields.get("invocation_id") or ""),
        conversation_id=str(fields.get("conversationId") or fields.get("conversation_id") or ""),
    )


async def send_trigger(
    client: httpx.AsyncClient,
    trigger_url: str,
    payload: TriggerPayload,
    signing_secret: str | None = None,
) -> TriggerResponse:
    """POST *payload* to *trigger_url* and return the parsed acknowledgment.

    Raises:
        TriggerDeliveryFailed: Transport failure or non-2xx response.
        InvalidTriggerResponse: A 2xx response whose body is not JSON.
    """
    body = serialize_payload(payload)
    headers = {
        "Content-Type": "application/json",
        "User-Agent": CONSTANTS.user_agent,
    }
    if signing_secret:
        headers["X-Signature-256"] = compute_signature(body, signing_secret)

    safe_url = sanitize_url(trigger_url)
    logger.info("sending_trigger", url=safe_url, signed=bool(signing_secret), bytes=len(body))

    try:
        resp = await client.post(trigger_url, content=body, headers=headers)
    except httpx.TransportError as exc:
        raise TriggerDeliveryFailed(
            f"Trigger request failed: {type(exc).__name__}\nURL: {safe_url}"
        ) from None

    if not resp.is_success:
        raise TriggerDeliveryFailed(
            f"Trigger request failed ({resp.status_code}): {resp.text}\nURL: {safe_url}",
            status=resp.status_code,
            body=resp.text,
        )

    try:
        data = json.loads(resp.text)
    except json.JSONDecodeError:
        raise InvalidTriggerResponse(f"Invalid JSON response from trigger: {resp.text}") from None

    try:
        return TriggerResponse.model_validate(data)
    except ValidationError as exc:
        logger.warning("trigger_response_validation_warning", error=str(exc))
        return _coerce_response(data)
