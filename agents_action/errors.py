"""Exception hierarchy for the trigger pipeline.

Every fatal condition raised by a pipeline stage derives from ``ActionError``
so the entry point can turn it into a failed workflow step with a readable
message.  Skips are not errors and never appear here.
"""


class ActionError(Exception):
    """Base exception for all fatal pipeline errors."""


# Configuration ---------------------------------------------------------------


class ConfigurationError(ActionError):
    """Required input missing or invalid; raised before any network call."""


class MissingInput(ConfigurationError):
    """A required action input or runtime variable was not supplied."""


class InvalidTriggerUrl(ConfigurationError):
    """The trigger URL does not identify a project."""


class InvalidFilter(ConfigurationError):
    """A filter input could not be compiled."""


# Event parsing ---------------------------------------------------------------


class EventParsingError(ActionError):
    """The triggering event could not be resolved to a pull request."""


class UnsupportedEvent(EventParsingError):
    pass


class NotAPullRequest(EventParsingError):
    pass


class MissingPullRequestNumber(EventParsingError):
    pass


class MalformedEvent(EventParsingError):
    pass


# Authentication --------------------------------------------------------------


class AuthenticationError(ActionError):
    """No usable GitHub API token could be obtained."""


class MissingIdentityToken(AuthenticationError):
    pass


class TokenValidationFailed(AuthenticationError):
    pass


class AppNotInstalled(AuthenticationError):
    pass


class TokenExchangeFailed(AuthenticationError):
    pass


# Upstream reads --------------------------------------------------------------


class UpstreamFetchError(ActionError):
    """A required read from the GitHub API failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UpstreamUnavailable(UpstreamFetchError):
    """The GitHub API could not be reached at the transport level."""


# Delivery --------------------------------------------------------------------


class DeliveryError(ActionError):
    """The trigger payload could not be delivered or acknowledged."""


class TriggerDeliveryFailed(DeliveryError):
    """The trigger endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class InvalidTriggerResponse(DeliveryError):
    """The trigger endpoint accepted the payload but returned unparseable JSON."""


# Internal --------------------------------------------------------------------


class InvariantViolation(ActionError):
    """The pipeline produced data that fails its own schema."""
