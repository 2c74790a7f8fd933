"""Reverse-proxy policy and Caddy configuration."""

from platform_setup.proxy.generator import (
    CaddyPasswordHasher,
    ProxyGenerator,
    ProxyResult,
    generate_password,
    show_password_banner,
)
from platform_setup.proxy.policy import ROUTES, ProxyPolicy, ProxyRoute, derive_public_base_url

__all__ = [
    "ROUTES",
    "CaddyPasswordHasher",
    "ProxyGenerator",
    "ProxyPolicy",
    "ProxyResult",
    "ProxyRoute",
    "derive_public_base_url",
    "generate_password",
    "show_password_banner",
]
