"""Trigger pipeline orchestration.

Runs one event through the stages in order: resolve event -> authenticate
-> companion-PR guard -> fetch PR context -> filters -> build payload ->
bot-comment guard -> dispatch.  Every stage either hands its result to the
next, ends the run with a skip, or raises an ``ActionError``.
"""

from __future__ import annotations

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from agents_action.config import CONSTANTS, Settings
from agents_action.errors import MissingInput
from agents_action.services.auth import (
    ActionsIdentityProvider,
    IdentityProvider,
    get_github_token,
    get_project_id_from_trigger_url,
)
from agents_action.services.event_context import EventContext, load_event_context
from agents_action.services.filters import SkipReason, check_filters, compile_title_filter
from agents_action.services.loop_guard import find_companion_pull_request, is_bot_comment
from agents_action.services.outputs import OutputSink
from agents_action.services.payload_builder import build_trigger_payload
from agents_action.services.pr_context import fetch_pr_context
from agents_action.services.trigger_client import send_trigger

logger = structlog.get_logger()


class RunResult(BaseModel):
    """Outcome of a run: either a skip with a reason or a delivered trigger."""

    model_config = ConfigDict(frozen=True)

    skipped: bool = False
    skip_reason: SkipReason | None = None
    existing_bot_pr_number: int | None = None
    existing_bot_pr_url: str | None = None
    invocation_id: str | None = None
    conversation_id: str | None = None

    def outputs(self) -> dict[str, str]:
        """Step outputs for this result, keyed by output name."""
        if self.skipped:
            values = {"skipped": "true", "skip-reason": self.skip_reason.value}
            if self.existing_bot_pr_number is not None:
                values["existing-bot-pr-number"] = str(self.existing_bot_pr_number)
                values["existing-bot-pr-url"] = self.existing_bot_pr_url or ""
            return values
        return {
            "invocation-id": self.invocation_id or "",
            "conversation-id": self.conversation_id or "",
        }


def _skip(reason: SkipReason, **extra: object) -> RunResult:
    logger.info("run_skipped", skip_reason=reason.value, **extra)
    return RunResult(skipped=True, skip_reason=reason, **extra)


async def run_pipeline(
    settings: Settings,
    event_context: EventContext,
    *,
    github: httpx.AsyncClient,
    http: httpx.AsyncClient,
    identity_provider: IdentityProvider,
) -> RunResult:
    """Run every stage after event resolution for one event.

    Args:
        settings: Action inputs and runtime context.
        event_context: The resolved triggering event.
        github: Client whose ``base_url`` is the GitHub API root.
        http: Client for the Inkeep token exchange and the trigger URL.
        identity_provider: Source of the OIDC identity assertion.
    """
    if not settings.trigger_url:
        raise MissingInput("Input required and not supplied: trigger-url")
    project_id = get_project_id_from_trigger_url(settings.trigger_url)
    title_filter = compile_title_filter(settings.pr_title_regex)
    path_filter = settings.path_filter or None

    repo = event_context.repository
    number = event_context.pull_request_number

    token = await get_github_token(
        http,
        project_id,
        identity_provider,
        override_token=settings.github_token or None,
        api_base_url=settings.api_base_url or None,
    )

    companion = await find_companion_pull_request(
        github,
        repo.owner,
        repo.name,
        number,
        token,
        CONSTANTS.bot_login,
        pr_url=f"{repo.url}/pull/{number}",
    )
    if companion is not None:
        return _skip(
            SkipReason.BOT_PR_EXISTS,
            existing_bot_pr_number=companion.number,
            existing_bot_pr_url=companion.url,
        )

    pr_context = await fetch_pr_context(
        github,
        token,
        repo.owner,
        repo.name,
        number,
        path_filter=path_filter,
        include_contents=settings.include_file_contents,
        include_patches=settings.include_patches,
        include_diff=settings.include_diff,
        trigger_comment_id=event_context.trigger_comment_id,
    )

    reason = check_filters(
        [f.path for f in pr_context.changed_files],
        pr_context.pull_request.title,
        path_filter=path_filter,
        title_filter=title_filter,
    )
    if reason is not None:
        return _skip(reason)

    payload = build_trigger_payload(event_context, pr_context)

    if is_bot_comment(payload.trigger_comment, CONSTANTS.bot_login):
        return _skip(SkipReason.BOT_COMMENT)

    response = await send_trigger(
        http, settings.trigger_url, payload, settings.signing_secret or None
    )
    logger.info(
        "trigger_successful",
        invocation_id=response.invocation_id,
        conversation_id=response.conversation_id,
    )
    return RunResult(
        invocation_id=response.invocation_id,
        conversation_id=response.conversation_id,
    )


async def run(settings: Settings, outputs: OutputSink) -> RunResult:
    """Resolve the runner's event, run the pipeline, and record step outputs."""
    logger.info("starting_agents_action", version=CONSTANTS.version)
    event_context = load_event_context(settings.event_name, settings.event_path)

    async with (
        httpx.AsyncClient(base_url=settings.github_api_url, timeout=30.0) as github,
        httpx.AsyncClient(timeout=30.0) as http,
    ):
        identity_provider = ActionsIdentityProvider(
            http, settings.id_token_request_url, settings.id_token_request_token
        )
        result = await run_pipeline(
            settings,
            event_context,
            github=github,
            http=http,
            identity_provider=identity_provider,
        )

    for name, value in result.outputs().items():
        outputs.set_output(name, value)
    return result
