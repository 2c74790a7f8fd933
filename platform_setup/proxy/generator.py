"""
Caddy reverse-proxy configuration.

Generates the basic-auth password (shown once), hashes it with Caddy's own
``hash-password`` command, and renders ``caddy/Caddyfile`` and
``caddy/docker-compose.yml`` into the workspace. Everything the proxy needs on
later runs is kept in the credential cache.
"""

import base64
import secrets
import subprocess  # nosec B404
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import click
import structlog

from platform_setup.config import SetupSettings
from platform_setup.credentials import CredentialStore, ValueResolver
from platform_setup.exceptions import ExternalCommandError
from platform_setup.proxy.policy import ROUTES, ProxyPolicy, derive_public_base_url
from platform_setup.rendering import TemplateEngine

log = structlog.get_logger(__name__)

PASSWORD_BYTES = 24
USERNAME = "admin"
UPSTREAM_HOST = "host.docker.internal"


def generate_password(n_bytes: int = PASSWORD_BYTES) -> str:
    """Generate a random base64 password (32 characters for the default size)."""
    return base64.b64encode(secrets.token_bytes(n_bytes)).decode("ascii")


class CaddyPasswordHasher:
    """Hash passwords with ``caddy hash-password`` inside a throwaway container.

    Docker is used so the host needs no Caddy installation.
    """

    def __init__(self, image: str = "caddy:2-alpine", timeout: int = 120) -> None:
        self.image = image
        self.timeout = timeout

    def __call__(self, password: str) -> str:
        command = ["docker", "run", "--rm", self.image, "caddy", "hash-password", "--plaintext", password]
        printable = [*command[:-1], "***"]

        try:
            result = subprocess.run(  # nosec B603 B607
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExternalCommandError(
                "Docker is not installed",
                command=printable,
                suggestion="Install Docker and make sure 'docker' is on your PATH",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalCommandError(f"Password hashing timed out after {self.timeout}s", command=printable) from e

        password_hash = result.stdout.strip()
        if result.returncode != 0 or not password_hash:
            raise ExternalCommandError(
                "Failed to generate password hash",
                command=printable,
                returncode=result.returncode,
                suggestion="Check that the Docker daemon is running and can pull " + self.image,
            )
        return password_hash


@dataclass
class ProxyResult:
    """Outcome of a proxy configuration run.

    Attributes:
        caddyfile: Written Caddyfile, or None if nothing was regenerated
        compose_file: Written docker-compose.yml, or None
        public_base_url: Base URL services will use for public links
        new_password: Plaintext password to show the operator, if one was created
    """

    caddyfile: Path | None
    compose_file: Path | None
    public_base_url: str
    new_password: str | None = None


class ProxyGenerator:
    """Render and cache the reverse-proxy configuration.

    Example:
        >>> generator = ProxyGenerator(store, resolver, settings)
        >>> result = generator.configure()
        >>> result.public_base_url
        'https://example.com'
    """

    def __init__(
        self,
        store: CredentialStore,
        resolver: ValueResolver,
        settings: SetupSettings,
        engine: TemplateEngine | None = None,
        hasher: Callable[[str], str] | None = None,
        password_factory: Callable[[], str] = generate_password,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.settings = settings
        self.engine = engine or TemplateEngine()
        self.hasher = hasher or CaddyPasswordHasher(settings.proxy_image)
        self.password_factory = password_factory

    @property
    def caddyfile_path(self) -> Path:
        return self.settings.proxy_dir / "Caddyfile"

    @property
    def compose_path(self) -> Path:
        return self.settings.proxy_dir / "docker-compose.yml"

    def configure(self, force: bool = False) -> ProxyResult:
        """Set up the proxy, reusing everything already cached.

        Args:
            force: Regenerate files even if the proxy is marked configured

        Returns:
            ProxyResult describing what was written

        Raises:
            ExternalCommandError: If the password cannot be hashed
            TemplateError: If a template fails to render
        """
        if self.store.get("CADDY_CONFIGURED") == "true" and not force:
            log.info("proxy_already_configured")
            domain = self.store.get("CADDY_DOMAIN") or ""
            return ProxyResult(
                caddyfile=None,
                compose_file=None,
                public_base_url=self.store.get("PUBLIC_BASE_URL") or derive_public_base_url(domain),
            )

        password = self.store.get("CADDY_PASSWORD")
        new_password = None
        if not password:
            password = new_password = self.password_factory()
            log.info("proxy_password_generated")

        log.info("hashing_proxy_password")
        password_hash = self.hasher(password)

        # A new password is only kept once it could be hashed, so it is never lost unseen
        if new_password:
            self.store.set("CADDY_PASSWORD", new_password)
        self.store.set("CADDY_PASSWORD_HASH", password_hash)

        domain = self.resolver.resolve(
            "CADDY_DOMAIN",
            "Full URL or domain (leave empty for http://localhost)",
        )
        policy = ProxyPolicy.from_domain(domain)

        caddyfile = self._write_caddyfile(policy, password_hash)
        compose_file = self._write_compose(policy)

        self.store.set("CADDY_CONFIGURED", "true")
        self.store.set("PUBLIC_BASE_URL", policy.public_base_url)
        log.info("proxy_configured", address=policy.address, public_base_url=policy.public_base_url)

        return ProxyResult(
            caddyfile=caddyfile,
            compose_file=compose_file,
            public_base_url=policy.public_base_url,
            new_password=new_password,
        )

    def regenerate_password(self) -> ProxyResult:
        """Replace the basic-auth password and rewrite the Caddyfile.

        The new password is only cached once its hash has been produced.
        """
        password = self.password_factory()
        password_hash = self.hasher(password)

        self.store.set("CADDY_PASSWORD", password)
        self.store.set("CADDY_PASSWORD_HASH", password_hash)

        policy = ProxyPolicy.from_domain(self.store.get("CADDY_DOMAIN") or "")
        caddyfile = self._write_caddyfile(policy, password_hash)
        log.info("proxy_password_regenerated")

        return ProxyResult(
            caddyfile=caddyfile,
            compose_file=None,
            public_base_url=policy.public_base_url,
            new_password=password,
        )

    def _write_caddyfile(self, policy: ProxyPolicy, password_hash: str) -> Path:
        content = self.engine.render(
            "proxy/Caddyfile.j2",
            {
                "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                "policy": policy,
                "username": USERNAME,
                "password_hash": password_hash,
                "routes": ROUTES,
                "upstream_host": UPSTREAM_HOST,
            },
        )
        return self._write(self.caddyfile_path, content)

    def _write_compose(self, policy: ProxyPolicy) -> Path:
        content = self.engine.render(
            "proxy/docker-compose.yml.j2",
            {
                "image": self.settings.proxy_image,
                "policy": policy,
                "network": self.settings.docker_network,
            },
        )
        return self._write(self.compose_path, content)

    def _write(self, path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        log.debug("file_written", path=str(path))
        return path


def show_password_banner(password: str, title: str = "CADDY BASIC AUTH PASSWORD - SAVE THIS NOW!") -> None:
    """Print a password the operator will not be shown again."""
    rule = "=" * 69
    click.echo()
    click.echo(click.style(rule, fg="yellow"))
    click.echo(click.style(f"  {title}", fg="yellow", bold=True))
    click.echo(click.style(rule, fg="yellow"))
    click.echo(f"  Username: {USERNAME}")
    click.echo(f"  Password: {password}")
    click.echo(click.style("  This password will NOT be shown again!", fg="yellow"))
    click.echo(click.style(rule, fg="yellow"))
    click.echo()
