# src/blobaudit/core/config.py
"""Configuration schema and loading for blobaudit.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction: one run, one config.

Precedence (highest first):
1. Explicit overrides (command-line arguments)
2. Environment variables (BLOBAUDIT_*)
3. Optional YAML settings file
4. Defaults from the Pydantic schema
"""

from __future__ import annotations

import os
import re
from enum import StrEnum
from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator

ENVVAR_PREFIX = "BLOBAUDIT"


class AuthMode(StrEnum):
    """Supported credential modes."""

    MANAGED_IDENTITY = "managed_identity"
    CONNECTION_STRING = "connection_string"


# Command-line spellings accepted anywhere an auth mode is read.
_AUTH_MODE_ALIASES: dict[str, AuthMode] = {
    "mi": AuthMode.MANAGED_IDENTITY,
    "--mi": AuthMode.MANAGED_IDENTITY,
    "managed_identity": AuthMode.MANAGED_IDENTITY,
    "cs": AuthMode.CONNECTION_STRING,
    "--cs": AuthMode.CONNECTION_STRING,
    "connection_string": AuthMode.CONNECTION_STRING,
}


def parse_auth_mode(value: object) -> AuthMode | None:
    """Resolve an auth mode from its enum value or a command-line alias.

    Matching is case-insensitive. Returns None for anything unrecognized.
    """
    if isinstance(value, AuthMode):
        return value
    if not isinstance(value, str):
        return None
    return _AUTH_MODE_ALIASES.get(value.strip().lower())


class AuditSettings(BaseModel):
    """Validated configuration for a single audit run.

    Example settings.yaml:

        endpoint: "${AZURE_STORAGE_CONNECTION_STRING}"
        container: "logs"
        auth_mode: cs
        prefix: "2023/"
        dry_run: true
        cooldown_ms: 250
    """

    # Dynaconf parses env and YAML scalars, so a container named 2024 arrives as an int
    model_config = {"frozen": True, "coerce_numbers_to_str": True}

    endpoint: str = Field(
        ...,
        description="Account URL (managed identity) or full connection string (connection string auth)",
    )
    container: str = Field(..., description="Blob container to scan")
    auth_mode: AuthMode = Field(..., description="managed_identity or connection_string")
    prefix: str | None = Field(default=None, description="Only scan blobs whose name starts with this")
    dry_run: bool = Field(default=False, description="Report what would change without changing tiers")
    cooldown_ms: int = Field(default=0, ge=0, description="Pause after each tier change, in milliseconds")

    @field_validator("auth_mode", mode="before")
    @classmethod
    def normalize_auth_mode(cls, v: Any) -> Any:
        """Accept mi/cs/--mi/--cs aliases in any case."""
        resolved = parse_auth_mode(v)
        if resolved is None:
            raise ValueError(f"Invalid auth mode {v!r}. Use --mi or --cs")
        return resolved

    @field_validator("endpoint", "container")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("cannot be empty")
        return v.strip()

    @field_validator("prefix")
    @classmethod
    def empty_prefix_is_none(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return v

    @model_validator(mode="after")
    def validate_endpoint_for_mode(self) -> Self:
        """Managed identity needs an account URL, not a connection string."""
        if self.auth_mode is AuthMode.MANAGED_IDENTITY and not self.endpoint.lower().startswith(("https://", "http://")):
            raise ValueError("Managed Identity auth requires an account URL. Example: https://mystorageaccount.blob.core.windows.net")
        if self.auth_mode is AuthMode.CONNECTION_STRING and "=" not in self.endpoint:
            raise ValueError("Connection string auth requires a connection string. Example: DefaultEndpointsProtocol=https;AccountName=...")
        return self


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Expand ${VAR} and ${VAR:-default} patterns in string values.

    Unresolvable references are left as-is so validation reports them.
    """

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        default = match.group(2)
        if default is not None:
            return default
        return match.group(0)

    return {k: _ENV_VAR_PATTERN.sub(replacer, v) if isinstance(v, str) else v for k, v in config.items()}


def load_settings(config_path: Path | None = None, overrides: dict[str, Any] | None = None) -> AuditSettings:
    """Load settings from an optional YAML file, the environment and overrides.

    Environment variable format: BLOBAUDIT_CONTAINER, BLOBAUDIT_DRY_RUN, ...

    Args:
        config_path: Optional path to a YAML settings file.
        overrides: Values that win over everything else. None values are
            ignored so callers can pass unset command-line options through.

    Returns:
        Validated AuditSettings instance.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
        pydantic.ValidationError: If the merged configuration is invalid.
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,  # the CLI owns .env loading
    )

    # Dynaconf returns uppercase keys and its own bookkeeping entries
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "ENVVAR_PREFIX"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    if overrides:
        raw_config.update({k: v for k, v in overrides.items() if v is not None})

    return AuditSettings(**raw_config)
