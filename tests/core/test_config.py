"""Tests for settings validation and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from blobaudit.core.config import AuditSettings, AuthMode, load_settings, parse_auth_mode

TEST_CONNECTION_STRING = "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=key"
TEST_ACCOUNT_URL = "https://mystorageaccount.blob.core.windows.net"


class TestParseAuthMode:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("--mi", AuthMode.MANAGED_IDENTITY),
            ("mi", AuthMode.MANAGED_IDENTITY),
            ("Managed_Identity", AuthMode.MANAGED_IDENTITY),
            ("--CS", AuthMode.CONNECTION_STRING),
            (" cs ", AuthMode.CONNECTION_STRING),
            (AuthMode.CONNECTION_STRING, AuthMode.CONNECTION_STRING),
        ],
    )
    def test_aliases(self, value: str, expected: AuthMode) -> None:
        assert parse_auth_mode(value) is expected

    @pytest.mark.parametrize("value", ["--sas", "", None, 1])
    def test_unrecognized(self, value: object) -> None:
        assert parse_auth_mode(value) is None


class TestAuditSettings:
    def test_numbers_become_strings(self) -> None:
        settings = AuditSettings(endpoint=TEST_CONNECTION_STRING, container=2024, auth_mode="cs", prefix=7)  # type: ignore[arg-type]

        assert settings.container == "2024"
        assert settings.prefix == "7"

    def test_defaults(self) -> None:
        settings = AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="cs")

        assert settings.auth_mode is AuthMode.CONNECTION_STRING
        assert settings.prefix is None
        assert settings.dry_run is False
        assert settings.cooldown_ms == 0

    def test_frozen(self) -> None:
        settings = AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="cs")

        with pytest.raises(ValidationError):
            settings.dry_run = True  # type: ignore[misc]

    def test_invalid_auth_mode(self) -> None:
        with pytest.raises(ValidationError, match="Use --mi or --cs"):
            AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="--sas")

    def test_missing_auth_mode(self) -> None:
        with pytest.raises(ValidationError, match="auth_mode"):
            AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs")  # type: ignore[call-arg]

    def test_negative_cooldown_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cooldown_ms"):
            AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="cs", cooldown_ms=-1)

    @pytest.mark.parametrize("container", ["", "   "])
    def test_empty_container_rejected(self, container: str) -> None:
        with pytest.raises(ValidationError, match="container"):
            AuditSettings(endpoint=TEST_CONNECTION_STRING, container=container, auth_mode="cs")

    def test_empty_prefix_is_none(self) -> None:
        settings = AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="cs", prefix="")

        assert settings.prefix is None

    def test_managed_identity_requires_url(self) -> None:
        with pytest.raises(ValidationError, match="account URL"):
            AuditSettings(endpoint=TEST_CONNECTION_STRING, container="logs", auth_mode="mi")

    def test_managed_identity_with_url(self) -> None:
        settings = AuditSettings(endpoint=TEST_ACCOUNT_URL, container="logs", auth_mode="--mi")

        assert settings.auth_mode is AuthMode.MANAGED_IDENTITY

    def test_connection_string_mode_rejects_url(self) -> None:
        with pytest.raises(ValidationError, match="connection string"):
            AuditSettings(endpoint=TEST_ACCOUNT_URL, container="logs", auth_mode="cs")


class TestLoadSettings:
    def test_overrides_only(self) -> None:
        settings = load_settings(
            None,
            {"endpoint": TEST_CONNECTION_STRING, "container": "logs", "auth_mode": "cs", "prefix": None},
        )

        assert settings.container == "logs"
        assert settings.prefix is None

    def test_from_yaml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "audit.yaml"
        config_file.write_text(
            f"""
endpoint: "{TEST_ACCOUNT_URL}"
container: archive
auth_mode: mi
prefix: "2023/"
dry_run: true
cooldown_ms: 250
"""
        )

        settings = load_settings(config_file)

        assert settings.endpoint == TEST_ACCOUNT_URL
        assert settings.container == "archive"
        assert settings.auth_mode is AuthMode.MANAGED_IDENTITY
        assert settings.prefix == "2023/"
        assert settings.dry_run is True
        assert settings.cooldown_ms == 250

    def test_overrides_beat_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "audit.yaml"
        config_file.write_text(f'endpoint: "{TEST_CONNECTION_STRING}"\ncontainer: archive\nauth_mode: cs\ncooldown_ms: 250\n')

        settings = load_settings(config_file, {"container": "logs", "cooldown_ms": None})

        assert settings.container == "logs"
        assert settings.cooldown_ms == 250

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOBAUDIT_CONTAINER", "from-env")
        monkeypatch.setenv("BLOBAUDIT_COOLDOWN_MS", "75")

        settings = load_settings(None, {"endpoint": TEST_CONNECTION_STRING, "auth_mode": "cs"})

        assert settings.container == "from-env"
        assert settings.cooldown_ms == 75

    def test_numeric_container_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Dynaconf parses BLOBAUDIT_CONTAINER=2024 as an int; it is still a valid name."""
        monkeypatch.setenv("BLOBAUDIT_CONTAINER", "2024")

        settings = load_settings(None, {"endpoint": TEST_CONNECTION_STRING, "auth_mode": "cs"})

        assert settings.container == "2024"

    def test_numeric_prefix_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "audit.yaml"
        config_file.write_text(f'endpoint: "{TEST_CONNECTION_STRING}"\ncontainer: 2024\nauth_mode: cs\nprefix: 2023\n')

        settings = load_settings(config_file)

        assert settings.container == "2024"
        assert settings.prefix == "2023"

    def test_expands_env_var_references(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", TEST_CONNECTION_STRING)
        config_file = tmp_path / "audit.yaml"
        config_file.write_text('endpoint: "${AZURE_STORAGE_CONNECTION_STRING}"\ncontainer: logs\nauth_mode: cs\n')

        settings = load_settings(config_file)

        assert settings.endpoint == TEST_CONNECTION_STRING

    def test_env_var_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AUDIT_CONTAINER", raising=False)
        config_file = tmp_path / "audit.yaml"
        config_file.write_text(f'endpoint: "{TEST_CONNECTION_STRING}"\ncontainer: "${{AUDIT_CONTAINER:-fallback}}"\nauth_mode: cs\n')

        settings = load_settings(config_file)

        assert settings.container == "fallback"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Settings file not found"):
            load_settings(tmp_path / "nope.yaml")
