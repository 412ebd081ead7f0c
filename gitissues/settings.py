"""Settings resolution: environment, .env and ~/.config/gitissues/config.toml."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

import tomlkit
from pydantic import BaseModel, Field, SecretStr
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_PATH = Path.home() / ".config" / "gitissues" / "config.toml"

GITHUB_TOKEN_KEY = "GitProviders:GitHub:Token"
GITHUB_STRICT_SCHEMA_KEY = "GitProviders:GitHub:StrictSchema"
BITBUCKET_USERNAME_KEY = "GitProviders:Bitbucket:Username"
BITBUCKET_APP_PASSWORD_KEY = "GitProviders:Bitbucket:AppPassword"

# colon-style key (lowercased) -> (section, field)
_CONFIG_KEYS: dict[str, tuple[str, str]] = {
    GITHUB_TOKEN_KEY.lower(): ("github", "token"),
    GITHUB_STRICT_SCHEMA_KEY.lower(): ("github", "strict_schema"),
    BITBUCKET_USERNAME_KEY.lower(): ("bitbucket", "username"),
    BITBUCKET_APP_PASSWORD_KEY.lower(): ("bitbucket", "app_password"),
}


class ConfigSource(Protocol):
    """Anything answering colon-style keys; a plain dict qualifies."""

    def get(self, key: str, /) -> str | None: ...


class GitHubSettings(BaseModel):
    token: SecretStr | None = None
    strict_schema: bool = True  # reject unknown response fields


class BitbucketSettings(BaseModel):
    username: str | None = None
    app_password: SecretStr | None = None


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/gitissues/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


class _TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-priority source: the [github] / [bitbucket] tables of the config file."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return _load_toml().unwrap().get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        data = _load_toml().unwrap()
        return {name: data[name] for name in self.settings_cls.model_fields if name in data}


class GitProvidersSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GITPROVIDERS__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    bitbucket: BitbucketSettings = Field(default_factory=BitbucketSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            _TomlConfigSource(settings_cls),
        )

    def get(self, key: str, default: str | None = None) -> str | None:
        """Look up a colon-style key such as ``GitProviders:GitHub:Token``.

        Keys are case-insensitive. Unknown or unset keys return ``default``.
        """
        path = _CONFIG_KEYS.get(key.lower())
        if path is None:
            return default
        section, field = path
        value = getattr(getattr(self, section), field)
        if value is None:
            return default
        if isinstance(value, SecretStr):
            return value.get_secret_value()
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


def get_settings() -> GitProvidersSettings:
    """Return settings merged from init kwargs > env > .env > config.toml."""
    return GitProvidersSettings()
