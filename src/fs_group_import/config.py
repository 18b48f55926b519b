"""Configuration management for fs-group-import.

Values come from three places. Later sources override earlier ones:

1. ``group-import.yaml`` (or ``--config``), top-level ``api``/``run`` sections
   then the ``profiles.<name>`` sections for the selected profile
2. ``.env`` and ``.env.<profile>`` files
3. Environment variables (``GROUP_IMPORT_API_*`` and ``GROUP_IMPORT_*``)

CLI flags are applied on top by the caller.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .parser.layouts import Layout, SheetPerGroupLayout

DEFAULT_CONFIG_FILE = Path("group-import.yaml")


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is incomplete."""


class ContractVersion(StrEnum):
    """Shape of principal/role data in the create-group request."""

    V1 = "v1"  # principals: [{id, roleIds}]
    V2 = "v2"  # principalIds: [...], principalRoleIds: [[...]]


class _EnvFirstSettings(BaseSettings):
    """Settings where environment variables beat values passed in from a file."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class ApiConfig(_EnvFirstSettings):
    """Remote create-group API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GROUP_IMPORT_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(default="", description="API base URL, e.g. https://acl.plant.example/api")
    auth_token: str = Field(default="", description="Bearer token")
    account_id: str = Field(default="", description="Account/tenant the groups belong to")
    groups_path: str = Field(default="/groups", description="Create-group endpoint path")
    contract_version: ContractVersion = Field(default=ContractVersion.V1)
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @property
    def groups_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.groups_path.lstrip('/')}"

    def missing_fields(self) -> list[str]:
        """Names of settings required for a real (non dry-run) import."""
        return [
            name for name in ("base_url", "auth_token", "account_id") if not getattr(self, name)
        ]


class RunConfig(_EnvFirstSettings):
    """Import run behavior."""

    model_config = SettingsConfigDict(
        env_prefix="GROUP_IMPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    input_file: Path | None = Field(default=None, description="Spreadsheet to import")
    layout: Layout = Field(default_factory=SheetPerGroupLayout)
    dry_run: bool = Field(default=False, description="Skip all network calls")
    concurrency: int = Field(default=4, ge=1, description="Concurrent requests")
    max_retries: int = Field(default=3, ge=1, description="Attempts per group, including the first")
    require_email_principals: bool = Field(default=True)
    output_dir: Path = Field(default=Path("reports"), description="Where reports are written")


class AppConfig(BaseModel):
    """Main application configuration."""

    api: ApiConfig
    run: RunConfig

    def with_overrides(self, **run_overrides: Any) -> AppConfig:
        """Return a copy with non-None run settings replaced (CLI flags)."""
        updates = {k: v for k, v in run_overrides.items() if v is not None}
        if not updates:
            return self
        try:
            # Assignment validates each value without re-reading env or .env files
            run = self.run.model_copy()
            for name, value in updates.items():
                setattr(run, name, value)
        except ValidationError as e:
            raise ConfigError(f"Invalid option: {e}") from e
        return self.model_copy(update={"run": run})


def read_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML (or JSON) config file into a dict."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def select_profile(data: dict[str, Any], profile: str | None) -> dict[str, dict[str, Any]]:
    """Merge the top-level sections with the selected profile's sections."""
    sections: dict[str, dict[str, Any]] = {
        name: dict(data.get(name) or {}) for name in ("api", "run")
    }
    if profile is None:
        return sections

    profiles = data.get("profiles") or {}
    if not profiles:
        # Profile may only select a .env.<profile> file
        return sections
    if profile not in profiles:
        raise ConfigError(
            f"Unknown profile {profile!r}. Available: {', '.join(sorted(profiles))}"
        )

    for name in sections:
        sections[name].update((profiles[profile] or {}).get(name) or {})
    return sections


def load_config(config_path: Path | None = None, profile: str | None = None) -> AppConfig:
    """Load configuration from an optional file, .env files and the environment."""
    if config_path is None and DEFAULT_CONFIG_FILE.is_file():
        config_path = DEFAULT_CONFIG_FILE

    data = read_config_file(config_path) if config_path else {}
    sections = select_profile(data, profile)

    env_files: tuple[str, ...] = (".env",)
    if profile:
        env_files += (f".env.{profile}",)

    try:
        return AppConfig(
            api=ApiConfig(_env_file=env_files, **sections["api"]),  # type: ignore[call-arg]
            run=RunConfig(_env_file=env_files, **sections["run"]),  # type: ignore[call-arg]
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
