"""Installer configuration."""

from platform_setup.config.settings import SetupSettings, default_workspace_root

__all__ = ["SetupSettings", "default_workspace_root"]
