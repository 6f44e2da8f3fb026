"""GitHub API authentication via OIDC token exchange.

Production runs request an OIDC identity token from the Actions runtime
(``ActionsIdentityProvider``) and trade it with the Inkeep API for a GitHub
App installation token scoped to the trigger's project.  Tests use
``InMemoryIdentityProvider``, which hands back a canned token and records
the audiences it was asked for.  An explicit ``github-token`` input bypasses
the exchange entirely.
"""

from __future__ import annotations

from typing import Protocol
from urllib.parse import urlparse

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from agents_action.config import CONSTANTS
from agents_action.errors import (
    AppNotInstalled,
    InvalidTriggerUrl,
    MissingIdentityToken,
    TokenExchangeFailed,
    TokenValidationFailed,
)

logger = structlog.get_logger()

_MISSING_ID_TOKEN_HINT = (
    'Failed to get OIDC token. Ensure the workflow has "id-token: write" permission.'
)


class TokenExchangeResponse(BaseModel):
    token: str
    expires_at: str | None = None
    repository: str | None = None
    installation_id: int | None = None


class IdentityProvider(Protocol):
    """Protocol for minting a short-lived identity assertion."""

    async def get_id_token(self, audience: str) -> str | None:
        """Return an identity token for *audience*, or None if none can be minted."""
        ...


class ActionsIdentityProvider:
    """Mints OIDC tokens from the GitHub Actions runtime token service."""

    def __init__(
        self, client: httpx.AsyncClient, request_url: str, request_token: str
    ) -> None:
        self._client = client
        self._request_url = request_url
        self._request_token = request_token

    async def get_id_token(self, audience: str) -> str | None:
        # Both variables are only present when the job has id-token: write.
        if not self._request_url or not self._request_token:
            return None
        try:
            resp = await self._client.get(
                self._request_url,
                params={"audience": audience},
                headers={"Authorization": f"Bearer {self._request_token}"},
            )
        except httpx.TransportError as exc:
            raise MissingIdentityToken(
                f"{_MISSING_ID_TOKEN_HINT} Token service unreachable: {exc}"
            ) from exc
        if resp.is_error:
            raise MissingIdentityToken(
                f"{_MISSING_ID_TOKEN_HINT} Token service returned {resp.status_code}: {resp.text}"
            )
        return resp.json().get("value")


class InMemoryIdentityProvider:
    """Test double that returns a fixed token and records requested audiences."""

    def __init__(self, token: str | None = "fake-oidc-token") -> None:
        self.token = token
        self.audiences: list[str] = []

    async def get_id_token(self, audience: str) -> str | None:
        self.audiences.append(audience)
        return self.token


def get_project_id_from_trigger_url(trigger_url: str) -> str:
    """Return the path segment following ``projects`` in the trigger URL.

    Raises:
        InvalidTriggerUrl: The URL has no ``projects/<id>`` segment.
    """
    segments = [s for s in urlparse(trigger_url).path.split("/") if s]
    try:
        project_id = segments[segments.index("projects") + 1]
    except (ValueError, IndexError):
        raise InvalidTriggerUrl(
            "Could not extract project ID from trigger URL: expected a path like "
            ".../projects/<project-id>/..."
        ) from None
    return project_id


async def get_github_token(
    client: httpx.AsyncClient,
    project_id: str,
    identity_provider: IdentityProvider,
    override_token: str | None = None,
    api_base_url: str | None = None,
) -> str:
    """Return a GitHub token for API access.

    Uses *override_token* verbatim when given.  Otherwise performs the OIDC
    exchange against ``{api_base_url}/token-exchange``.

    Raises:
        MissingIdentityToken: The runtime could not mint an OIDC token.
        TokenValidationFailed: The exchange rejected the OIDC token (401).
        AppNotInstalled: The GitHub App is not installed on the repository (403).
        TokenExchangeFailed: Any other non-2xx or unusable response.
    """
    if override_token:
        logger.info("github_token_override")
        return override_token

    logger.info("oidc_token_exchange_started", project_id=project_id)

    oidc_token = await identity_provider.get_id_token(CONSTANTS.oidc_audience)
    if not oidc_token:
        raise MissingIdentityToken(_MISSING_ID_TOKEN_HINT)

    endpoint = f"{(api_base_url or CONSTANTS.default_api_base_url).rstrip('/')}/token-exchange"
    try:
        resp = await client.post(
            endpoint,
            json={"oidc_token": oidc_token, "project_id": project_id},
        )
    except httpx.TransportError as exc:
        raise TokenExchangeFailed(f"Token exchange request failed: {exc}") from exc

    if resp.status_code == 401:
        raise TokenValidationFailed(f"OIDC token validation failed: {resp.text}")
    if resp.status_code == 403:
        raise AppNotInstalled(
            "GitHub App not installed on this repository. Please install the Inkeep "
            f"GitHub App. Details: {resp.text}"
        )
    if resp.is_error:
        raise TokenExchangeFailed(f"Token exchange failed ({resp.status_code}): {resp.text}")

    try:
        data = TokenExchangeResponse.model_validate_json(resp.content)
    except ValidationError as exc:
        raise TokenExchangeFailed(f"Token exchange returned an unexpected body: {exc}") from exc

    logger.info(
        "oidc_token_exchange_complete",
        repository=data.repository,
        installation_id=data.installation_id,
    )
    return data.token
