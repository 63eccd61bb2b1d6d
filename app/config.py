# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Loads configuration from an explicit, ordered list of sources and validates
# it into a single immutable AppSettings value.
#
# Default runtime layering (later sources win):
# 1. appsettings.json                    (required)
# 2. appsettings.{ENVIRONMENT}.json      (optional)
# 3. Environment variables               (nested keys use "__")
#
# ENVIRONMENT itself is resolved once (argument, then $ENVIRONMENT, then the
# default) and that name both picks the overlay file and wins over any
# ENVIRONMENT value found in the files.
#
# Keys are compared case-insensitively, so "ConnectionStrings:AppDbContext"
# in a file is overridden by CONNECTIONSTRINGS__APPDBCONTEXT in the env.
#
# Usage:
#   from app.config import load_settings
#   settings = load_settings()
#   settings.connection_string("AppDbContext")
# =============================================================================

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Literal, Mapping

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from app.exceptions import InsecureSecretKeyError, InvalidSettingsFileError, SettingsFileNotFoundError

Environment = Literal["development", "staging", "production"]

BASE_SETTINGS_FILE = "appsettings.json"
ENVIRONMENT_VARIABLE = "ENVIRONMENT"
DEFAULT_ENVIRONMENT: Environment = "production"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class AppSettings(BaseSettings):
    """
    Immutable configuration bundle for the host and the database connector.

    Field aliases match the keys used in appsettings files. Instances are
    built by load_settings() from an explicit source list; constructing one
    directly only uses the keyword arguments given (handy in tests).
    """

    # -------------------------------------------------------------------------
    # Hosting
    # -------------------------------------------------------------------------

    ENVIRONMENT: Environment = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Hosting environment; API docs are served in development only"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable verbose logging"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    SECRET_KEY: str = Field(
        default=DEFAULT_SECRET_KEY,
        min_length=16,
        description="Secret key for signing the authentication cookie"
    )

    CORS_URLS: list[str] = Field(
        default_factory=list,
        alias="CorsUrls",
        description="Explicit list of origins allowed to make credentialed requests"
    )

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------

    CONNECTION_STRINGS: dict[str, str] = Field(
        default_factory=dict,
        alias="ConnectionStrings",
        description="Named database connection strings"
    )

    model_config = SettingsConfigDict(
        # Settings are read-only once loaded
        frozen=True,
        # Allow AppSettings(CORS_URLS=...) as well as AppSettings(CorsUrls=...)
        populate_by_name=True,
        # appsettings files routinely carry keys this host doesn't consume
        extra="ignore",
        case_sensitive=False,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Layering happens in build_configuration(); only explicit values count here.
        return (init_settings,)

    @classmethod
    def from_configuration(cls, data: Mapping[str, Any]) -> "AppSettings":
        """Validate a merged configuration mapping into AppSettings."""
        return cls(**_canonical_keys(data))

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    def connection_string(self, name: str) -> str | None:
        """
        Look up a named connection string, ignoring key case.

        Returns None when the name is missing or the value is blank.
        """
        wanted = name.lower()
        for key, value in self.CONNECTION_STRINGS.items():
            if key.lower() == wanted:
                return value if value and value.strip() else None
        return None

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# =============================================================================
# Configuration Sources
# =============================================================================

class ConfigurationSource:
    """One layer of configuration. load() returns a nested mapping."""

    name = "source"

    def load(self) -> dict[str, Any]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class JsonFileSource(ConfigurationSource):
    """A JSON settings file; missing optional files contribute nothing."""

    def __init__(self, path: str | Path, optional: bool = False):
        self.path = Path(path)
        self.optional = optional
        self.name = str(self.path)

    def load(self) -> dict[str, Any]:
        if not self.path.is_file():
            if self.optional:
                return {}
            raise SettingsFileNotFoundError(str(self.path))
        try:
            data = JsonConfigSettingsSource(AppSettings, json_file=self.path)()
        except ValueError as e:
            raise InvalidSettingsFileError(str(self.path), str(e)) from e
        if not isinstance(data, dict):
            raise InvalidSettingsFileError(str(self.path), "top-level value is not an object")
        return data


class EnvironmentVariablesSource(ConfigurationSource):
    """Process environment variables for the fields AppSettings knows about."""

    name = "environment"

    def load(self) -> dict[str, Any]:
        source = EnvSettingsSource(
            AppSettings,
            case_sensitive=False,
            env_nested_delimiter="__",
            env_ignore_empty=True,
        )
        return source()


class MappingSource(ConfigurationSource):
    """An in-memory layer, e.g. command-line overrides."""

    def __init__(self, values: Mapping[str, Any], name: str = "memory"):
        self.values = dict(values)
        self.name = name

    def load(self) -> dict[str, Any]:
        return dict(self.values)


def resolve_environment(environment: str | None = None, default: str = DEFAULT_ENVIRONMENT) -> str:
    """Pick the environment name used to select the overlay settings file."""
    return (environment or os.environ.get(ENVIRONMENT_VARIABLE) or default).lower()


def overlay_file(root: Path, environment: str) -> Path:
    """
    Locate appsettings.{environment}.json, ignoring the case of the name.

    Deployments commonly ship appsettings.Development.json; on case-sensitive
    filesystems that file must still be found for "development".
    """
    path = root / f"appsettings.{environment}.json"
    if path.is_file() or not root.is_dir():
        return path
    wanted = path.name.lower()
    for entry in sorted(root.iterdir()):
        if entry.name.lower() == wanted and entry.is_file():
            return entry
    return path


def default_sources(
    base_path: str | Path | None = None,
    environment: str | None = None,
) -> list[ConfigurationSource]:
    """
    Build the standard source list: base file, environment overlay, env vars.

    The resolved environment name is added last so that AppSettings.ENVIRONMENT
    always names the overlay that was actually loaded.

    Args:
        base_path: Directory holding the settings files (default: cwd)
        environment: Overlay name (default: $ENVIRONMENT, then "production")

    Returns:
        Sources in precedence order, lowest first
    """
    root = Path(base_path) if base_path is not None else Path.cwd()
    env_name = resolve_environment(environment)
    return [
        JsonFileSource(root / BASE_SETTINGS_FILE, optional=False),
        JsonFileSource(overlay_file(root, env_name), optional=True),
        EnvironmentVariablesSource(),
        MappingSource({ENVIRONMENT_VARIABLE: env_name}, name="resolved environment"),
    ]


def build_configuration(sources: Iterable[ConfigurationSource]) -> dict[str, Any]:
    """
    Merge sources in order; later sources override earlier ones.

    Nested mappings are merged key by key. Lists and scalars are replaced
    wholesale. Key matching ignores case and keeps the first spelling seen.
    """
    merged: dict[str, Any] = {}
    for source in sources:
        _merge_into(merged, _canonical_keys(source.load()))
    return merged


def load_settings(
    base_path: str | Path | None = None,
    environment: str | None = None,
    sources: Iterable[ConfigurationSource] | None = None,
) -> AppSettings:
    """
    Load and validate settings.

    Raises:
        SettingsFileNotFoundError: If appsettings.json is missing
        pydantic.ValidationError: If a value has the wrong type
    """
    if sources is None:
        sources = default_sources(base_path, environment)
    return AppSettings.from_configuration(build_configuration(sources))


def validate_secret_key(settings: AppSettings) -> None:
    """
    Refuse the built-in SECRET_KEY outside development.

    Raises:
        InsecureSecretKeyError: If a staging/production host would sign
            cookies with the publicly known default key
    """
    if settings.SECRET_KEY == DEFAULT_SECRET_KEY and not settings.is_development:
        raise InsecureSecretKeyError(settings.ENVIRONMENT)


# =============================================================================
# Helpers
# =============================================================================

def _merge_into(target: dict[str, Any], override: Mapping[str, Any]) -> None:
    index = {key.lower(): key for key in target}
    for key, value in override.items():
        existing_key = index.get(key.lower())
        if existing_key is None:
            target[key] = _copy(value)
            index[key.lower()] = key
        elif isinstance(target[existing_key], dict) and isinstance(value, Mapping):
            _merge_into(target[existing_key], value)
        else:
            target[existing_key] = _copy(value)


def _copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return list(value)
    return value


def _canonical_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Rename top-level keys to the alias (or field name) AppSettings expects."""
    names: dict[str, str] = {}
    for field_name, field in AppSettings.model_fields.items():
        names[field_name.lower()] = field.alias or field_name
        if field.alias:
            names[field.alias.lower()] = field.alias
    return {names.get(key.lower(), key): value for key, value in data.items()}