"""
Reverse-proxy policy derived from the operator's domain answer.

One string (empty, a bare domain, or an ``http://``/``https://`` URL) decides
the public base URL of every service, the Caddy site address, whether Caddy
provisions certificates automatically, and which host ports are published.
"""

import re
from dataclasses import dataclass

LOCAL_BASE_URL = "http://localhost"
DEFAULT_ADDRESS = ":80"

_HTTP_CUSTOM_PORT = re.compile(r"^http://([^:]+):([0-9]+)$")


def derive_public_base_url(domain: str) -> str:
    """Return the URL services use to build their public links.

    Example:
        >>> derive_public_base_url("")
        'http://localhost'
        >>> derive_public_base_url("example.com")
        'https://example.com'
        >>> derive_public_base_url("http://example.com:8080")
        'http://example.com:8080'
    """
    if not domain:
        return LOCAL_BASE_URL
    if domain.startswith(("http://", "https://")):
        return domain
    return f"https://{domain}"


@dataclass(frozen=True)
class ProxyPolicy:
    """Site address, TLS mode and published ports for the proxy container.

    Attributes:
        domain: Raw domain answer (may be empty)
        address: Caddy site address (e.g., ':80', 'example.com')
        auto_tls: Caddy obtains certificates automatically
        ports: Published port mappings ('HOST:CONTAINER')
    """

    domain: str
    address: str
    auto_tls: bool
    ports: tuple[str, ...]

    @classmethod
    def from_domain(cls, domain: str) -> "ProxyPolicy":
        """Build the policy for a domain answer.

        Example:
            >>> ProxyPolicy.from_domain("http://example.com:8080").ports
            ('8080:8080',)
        """
        if not domain:
            return cls(domain=domain, address=DEFAULT_ADDRESS, auto_tls=False, ports=("80:80",))

        if domain.startswith("https://"):
            return cls(
                domain=domain,
                address=domain[len("https://") :],
                auto_tls=True,
                ports=("80:80", "443:443"),
            )

        if domain.startswith("http://"):
            match = _HTTP_CUSTOM_PORT.match(domain)
            ports = (f"{match.group(2)}:{match.group(2)}",) if match else ("80:80",)
            return cls(domain=domain, address=domain[len("http://") :], auto_tls=False, ports=ports)

        # Bare domains are served over HTTPS; port 80 stays open for the redirect
        return cls(domain=domain, address=domain, auto_tls=True, ports=("80:80", "443:443"))

    @property
    def public_base_url(self) -> str:
        return derive_public_base_url(self.domain)


@dataclass(frozen=True)
class ProxyRoute:
    """One path-prefix route of the proxy.

    Attributes:
        path: Matched path pattern (e.g., '/contactdb/*')
        upstream_port: Host port of the upstream service
        strip_prefix: Strip the matched prefix before proxying (``handle_path``)
        websocket: Forward Connection/Upgrade headers
        label: Comment written above the route
    """

    path: str
    upstream_port: int
    strip_prefix: bool
    websocket: bool
    label: str

    @property
    def directive(self) -> str:
        return "handle_path" if self.strip_prefix else "handle"


ROUTES: tuple[ProxyRoute, ...] = (
    ProxyRoute("/contactdb/*", 42173, strip_prefix=False, websocket=False, label="ContactDB Frontend"),
    ProxyRoute("/contactdb-api/*", 42800, strip_prefix=True, websocket=False, label="ContactDB Backend API"),
    ProxyRoute("/dataindex/*", 42180, strip_prefix=True, websocket=False, label="DataIndex API"),
    ProxyRoute(
        "/babelfish/*",
        8880,
        strip_prefix=True,
        websocket=True,
        label="Babelfish Matrix Synapse (with WebSocket support)",
    ),
    ProxyRoute("/babelfish-api/*", 8000, strip_prefix=True, websocket=False, label="Babelfish API"),
    ProxyRoute("/crm-reply/*", 3001, strip_prefix=True, websocket=False, label="CRM Reply API"),
    ProxyRoute("/meeting-prep/*", 42380, strip_prefix=False, websocket=False, label="Meeting Prep Frontend"),
    ProxyRoute(
        "/meeting-prep-api/*", 42381, strip_prefix=True, websocket=False, label="Meeting Prep Backend API"
    ),
    ProxyRoute(
        "/dailydigest/*",
        42190,
        strip_prefix=False,
        websocket=False,
        label="DailyDigest (Frontend and Backend merged)",
    ),
)
