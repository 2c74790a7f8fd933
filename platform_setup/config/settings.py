"""
Configuration system using Pydantic for type-safe settings management.

Settings come from (highest precedence first) explicit arguments, environment
variables prefixed with ``PLATFORM_SETUP_``, and an optional YAML file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from platform_setup.exceptions import ConfigurationError

WORKSPACE_DIRNAME = "platform-workspace"


def default_workspace_root() -> Path:
    """Return the workspace directory, avoiding ``platform-workspace/platform-workspace``."""
    cwd = Path.cwd()
    if cwd.name == WORKSPACE_DIRNAME:
        return cwd
    return cwd / WORKSPACE_DIRNAME


class SetupSettings(BaseSettings):
    """Installer settings."""

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_SETUP_",
        case_sensitive=False,
    )

    workspace_root: Path = Field(
        default_factory=default_workspace_root,
        description="Directory holding cloned services, generated files and the cache",
    )
    cache_filename: str = Field(default=".credentials.cache", description="Cache file name inside the workspace")
    cache_password: SecretStr | None = Field(
        default=None,
        description="Password for an encrypted cache (skips the interactive prompt)",
    )
    docker_network: str = Field(default="monadical-platform", description="Shared Docker network name")
    proxy_image: str = Field(default="caddy:2-alpine", description="Caddy image used for the proxy")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def cache_file(self) -> Path:
        """Path of the credential cache."""
        return self.workspace_root / self.cache_filename

    @property
    def proxy_dir(self) -> Path:
        """Directory holding the generated Caddy configuration."""
        return self.workspace_root / "caddy"

    def service_dir(self, service_id: str) -> Path:
        """Directory a service repository is cloned into."""
        return self.workspace_root / service_id

    def passphrase(self) -> str | None:
        """Return the configured cache password, if any."""
        if self.cache_password is None:
            return None
        return self.cache_password.get_secret_value() or None

    @classmethod
    def from_yaml(cls, config_path: str) -> SetupSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            SetupSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
