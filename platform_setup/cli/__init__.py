"""Command groups of the ``platform-setup`` CLI."""

from platform_setup.cli.cache import cache_group
from platform_setup.cli.proxy import proxy_group
from platform_setup.cli.services import configure_command, services_group

__all__ = ["cache_group", "configure_command", "proxy_group", "services_group"]
