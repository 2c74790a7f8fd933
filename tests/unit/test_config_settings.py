"""Tests for installer settings."""

from pathlib import Path

import pytest

from platform_setup.config import SetupSettings, default_workspace_root
from platform_setup.exceptions import ConfigurationError


class TestSetupSettings:
    """Test SetupSettings defaults and sources."""

    def test_defaults(self, tmp_path, monkeypatch):
        """Test default paths derive from the working directory."""
        monkeypatch.chdir(tmp_path)

        settings = SetupSettings()

        assert settings.workspace_root == tmp_path / "platform-workspace"
        assert settings.cache_file == tmp_path / "platform-workspace" / ".credentials.cache"
        assert settings.proxy_dir == tmp_path / "platform-workspace" / "caddy"
        assert settings.service_dir("contactdb") == tmp_path / "platform-workspace" / "contactdb"
        assert settings.passphrase() is None

    def test_inside_workspace(self, tmp_path, monkeypatch):
        """Test running from inside the workspace does not nest it."""
        workspace = tmp_path / "platform-workspace"
        workspace.mkdir()
        monkeypatch.chdir(workspace)

        assert default_workspace_root() == workspace

    def test_environment_overrides(self, tmp_path, monkeypatch):
        """Test PLATFORM_SETUP_* variables are read."""
        monkeypatch.setenv("PLATFORM_SETUP_WORKSPACE_ROOT", str(tmp_path / "ws"))
        monkeypatch.setenv("PLATFORM_SETUP_CACHE_PASSWORD", "s3cret")
        monkeypatch.setenv("PLATFORM_SETUP_DOCKER_NETWORK", "other-net")

        settings = SetupSettings()

        assert settings.workspace_root == tmp_path / "ws"
        assert settings.passphrase() == "s3cret"
        assert settings.docker_network == "other-net"
        assert "s3cret" not in repr(settings)

    def test_empty_password_is_none(self, monkeypatch):
        """Test an empty configured password means no password."""
        monkeypatch.setenv("PLATFORM_SETUP_CACHE_PASSWORD", "")

        assert SetupSettings().passphrase() is None


class TestFromYaml:
    """Test loading settings from YAML."""

    def test_load(self, tmp_path, monkeypatch):
        """Test values and ${VAR} interpolation."""
        monkeypatch.setenv("TEST_WORKSPACE", str(tmp_path / "ws"))
        config = tmp_path / "setup.yaml"
        config.write_text(
            "# ${NOT_INTERPOLATED}\n"
            "workspace_root: ${TEST_WORKSPACE}\n"
            "log_level: ${TEST_LOG_LEVEL:-DEBUG}\n"
        )

        settings = SetupSettings.from_yaml(str(config))

        assert settings.workspace_root == Path(tmp_path / "ws")
        assert settings.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            SetupSettings.from_yaml(str(tmp_path / "missing.yaml"))

    def test_missing_variable(self, tmp_path):
        """Test an unset variable without default is reported."""
        config = tmp_path / "setup.yaml"
        config.write_text("workspace_root: ${TEST_UNSET_VARIABLE}\n")

        with pytest.raises(ConfigurationError, match="TEST_UNSET_VARIABLE"):
            SetupSettings.from_yaml(str(config))

    def test_invalid_yaml(self, tmp_path):
        """Test broken YAML is reported."""
        config = tmp_path / "setup.yaml"
        config.write_text("workspace_root: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            SetupSettings.from_yaml(str(config))

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        config = tmp_path / "setup.yaml"
        config.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="YAML object"):
            SetupSettings.from_yaml(str(config))
