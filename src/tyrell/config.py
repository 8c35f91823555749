"""SDK-level configuration loaded from environment and overridable at runtime."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_MESSAGES_PATH = "/v1/messages"
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0


class BaseTyrellSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TYRELL_", extra="ignore", populate_by_name=True)


class ApiSettings(BaseTyrellSettings):
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("TYRELL_API_KEY", "ANTHROPIC_API_KEY"),
    )
    base_url: str = DEFAULT_BASE_URL
    messages_path: str = DEFAULT_MESSAGES_PATH
    api_version: str = DEFAULT_API_VERSION
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, url: str) -> Any:
        return url.rstrip("/")


class SDKSettings(BaseModel):
    """Global SDK settings for endpoint selection and credentials."""

    api: ApiSettings = Field(default_factory=ApiSettings)

    def get_locked(self) -> FrozenSDKSettings:
        return FrozenSDKSettings.model_validate({"api": self.api.model_dump()})


class FrozenSDKSettings(SDKSettings):
    model_config = ConfigDict(frozen=True)


settings = SDKSettings()


def get_sdk_config() -> FrozenSDKSettings:
    """Return an immutable snapshot of current global SDK settings."""
    return settings.get_locked()
