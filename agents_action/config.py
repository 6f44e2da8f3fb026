"""Action configuration loaded from the GitHub Actions runtime environment.

Inputs declared by the action arrive as ``INPUT_<NAME>`` variables (upper-cased,
hyphens preserved); runtime context such as the event name and payload path
arrives as ``GITHUB_*`` variables.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ActionConstants(BaseModel):
    """Process-wide read-only values shared by every stage of a run."""

    model_config = ConfigDict(frozen=True)

    client_name: str = "inkeep-agents-action"
    version: str = "0.1.0"
    default_api_base_url: str = "https://api.inkeep.com/api/github"
    oidc_audience: str = "inkeep-agents-action"
    bot_login: str = "inkeep[bot]"
    page_size: int = 100

    @property
    def user_agent(self) -> str:
        return f"{self.client_name}/{self.version}"


CONSTANTS = ActionConstants()


def _input(name: str) -> AliasChoices:
    """Accept both the hyphenated and underscored spelling of an action input."""
    upper = name.upper()
    return AliasChoices(f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}")


class Settings(BaseSettings):
    """Action inputs and runtime context with environment variable loading."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Action inputs
    trigger_url: str = Field("", validation_alias=_input("trigger-url"))
    signing_secret: str = Field("", validation_alias=_input("signing-secret"))
    github_token: str = Field("", validation_alias=_input("github-token"))
    path_filter: str = Field("", validation_alias=_input("path-filter"))
    pr_title_regex: str = Field("", validation_alias=_input("pr-title-regex"))
    api_base_url: str = Field("", validation_alias=_input("api-base-url"))
    include_file_contents: bool = Field(False, validation_alias=_input("include-file-contents"))
    include_patches: bool = Field(False, validation_alias=_input("include-patches"))
    include_diff: bool = Field(False, validation_alias=_input("include-diff"))

    # Runtime context supplied by the runner
    event_name: str = Field("", validation_alias="GITHUB_EVENT_NAME")
    event_path: str = Field("", validation_alias="GITHUB_EVENT_PATH")
    github_api_url: str = Field("https://api.github.com", validation_alias="GITHUB_API_URL")
    output_path: str = Field("", validation_alias="GITHUB_OUTPUT")
    id_token_request_url: str = Field("", validation_alias="ACTIONS_ID_TOKEN_REQUEST_URL")
    id_token_request_token: str = Field("", validation_alias="ACTIONS_ID_TOKEN_REQUEST_TOKEN")
    runner_debug: bool = Field(False, validation_alias="RUNNER_DEBUG")
    json_logs: bool = Field(False, validation_alias="INKEEP_JSON_LOGS")

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.runner_debug else "INFO"
