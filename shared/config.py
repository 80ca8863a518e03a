"""
Shared configuration management for the Gitorum forum service.
"""

from typing import Optional, Tuple

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("env", "FORUM_ENV"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("log_level", "FORUM_LOG_LEVEL"))

    # Observability
    enable_tracing: bool = Field(default=False, validation_alias=AliasChoices("enable_tracing", "FORUM_ENABLE_TRACING"))


class ForumConfig(BaseConfig):
    """GitHub credentials and repository coordinates for the forum."""

    service_name: str = "forum"
    port: int = 8000
    host: str = "0.0.0.0"
    forum_title: str = Field(default="Gitorum", validation_alias=AliasChoices("forum_title", "FORUM_TITLE"))

    # GitHub App credentials (all optional; together they gate app-token issuance)
    github_app_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("github_app_id", "GITHUB_APP_ID")
    )
    github_app_private_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("github_app_private_key", "GITHUB_APP_PRIVATE_KEY")
    )
    github_app_installation_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("github_app_installation_id", "GITHUB_APP_INSTALLATION_ID"),
    )

    # Long-lived server credential, bypasses app-token issuance when set
    github_server_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("github_server_token", "GITHUB_SERVER_TOKEN")
    )

    # Target repository (required on use, never defaulted)
    github_repo_owner: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("github_repo_owner", "GITHUB_REPO_OWNER")
    )
    github_repo_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("github_repo_name", "GITHUB_REPO_NAME")
    )

    # Upstream transport
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias=AliasChoices("github_api_url", "GITHUB_API_URL")
    )
    github_http_timeout: float = Field(
        default=10.0, validation_alias=AliasChoices("github_http_timeout", "GITHUB_HTTP_TIMEOUT")
    )
    github_user_agent: str = Field(
        default="Gitorum", validation_alias=AliasChoices("github_user_agent", "GITHUB_USER_AGENT")
    )

    @property
    def app_credentials_configured(self) -> bool:
        """True when app id, private key and installation id are all present."""
        return bool(self.github_app_id and self.github_app_private_key and self.github_app_installation_id)

    def require_repository(self) -> Tuple[str, str]:
        """Return (owner, name) or fail naming the missing setting."""
        if not self.github_repo_owner:
            raise ConfigurationError("Missing environment variable: GITHUB_REPO_OWNER")
        if not self.github_repo_name:
            raise ConfigurationError("Missing environment variable: GITHUB_REPO_NAME")
        return self.github_repo_owner, self.github_repo_name


def get_config(**overrides) -> ForumConfig:
    """Build the forum configuration from the environment."""
    return ForumConfig(**overrides)
