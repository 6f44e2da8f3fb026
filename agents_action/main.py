"""Entry point for the action: configure logging, run once, report the outcome."""

import asyncio
import sys

import structlog
from pydantic import ValidationError

from agents_action.config import Settings
from agents_action.errors import ActionError
from agents_action.logging_config import configure_logging
from agents_action.pipeline import run
from agents_action.services.outputs import GitHubOutputFile, InMemoryOutputs, OutputSink


def _escape_command_data(message: str) -> str:
    """Escape a message for a ``::error::`` workflow command."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _fail(message: str) -> int:
    print(f"::error::{_escape_command_data(message)}", flush=True)
    return 1


def main() -> int:
    """Run the action and return the process exit code."""
    try:
        settings = Settings()
    except ValidationError as exc:
        return _fail(f"Invalid action inputs: {exc}")

    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    logger = structlog.get_logger()

    outputs: OutputSink = (
        GitHubOutputFile(settings.output_path) if settings.output_path else InMemoryOutputs()
    )

    try:
        asyncio.run(run(settings, outputs))
    except ActionError as exc:
        logger.error("run_failed", error_type=type(exc).__name__, error=str(exc))
        return _fail(str(exc))
    except Exception:
        logger.exception("unexpected_error")
        return _fail("An unexpected error occurred")
    return 0


if __name__ == "__main__":
    sys.exit(main())
