"""
Registry of platform services and DataIndex ingestors.

Both registries are fixed: the installer knows exactly which repositories make
up the platform. Services are typed records rather than delimiter-joined
strings.
"""

from dataclasses import dataclass

from platform_setup.exceptions import ServiceNotFoundError

GITHUB_ORG_URL = "https://github.com/Monadical-SAS"


@dataclass(frozen=True)
class ServiceDefinition:
    """A service repository that can be deployed on the platform.

    Attributes:
        id: Directory name and routing prefix (e.g., 'contactdb')
        repo_url: Git clone URL
        branch: Branch to check out
        port: Host port of the service frontend
        description: One-line description shown in menus
        mandatory: Always installed when True
        title: Display name
    """

    id: str
    repo_url: str
    branch: str
    port: int
    description: str
    mandatory: bool
    title: str


@dataclass(frozen=True)
class IngestorDefinition:
    """A DataIndex data source.

    Attributes:
        id: Ingestor identifier cached in the selection
        name: Display name
        env_prefix: Prefix of the variables written to DataIndex's env file
    """

    id: str
    name: str
    env_prefix: str


SERVICES: tuple[ServiceDefinition, ...] = (
    ServiceDefinition(
        id="contactdb",
        repo_url=f"{GITHUB_ORG_URL}/contactdb.git",
        branch="main",
        port=42173,
        description="Unified contact management",
        mandatory=True,
        title="ContactDB",
    ),
    ServiceDefinition(
        id="dataindex",
        repo_url=f"{GITHUB_ORG_URL}/dataindex.git",
        branch="main",
        port=42180,
        description="Data aggregation from multiple sources",
        mandatory=True,
        title="DataIndex",
    ),
    ServiceDefinition(
        id="babelfish",
        repo_url=f"{GITHUB_ORG_URL}/babelfish.git",
        branch="authless-ux",
        port=8880,
        description="Universal communications bridge (Matrix homeserver)",
        mandatory=False,
        title="Babelfish",
    ),
    ServiceDefinition(
        id="meeting-prep",
        repo_url=f"{GITHUB_ORG_URL}/meeting-prep.git",
        branch="dataindex-contactdb-integration",
        port=42380,
        description="Meeting preparation assistant",
        mandatory=False,
        title="Meeting Prep",
    ),
    ServiceDefinition(
        id="dailydigest",
        repo_url=f"{GITHUB_ORG_URL}/dailydigest.git",
        branch="main",
        port=42190,
        description="Stale relationship tracker for ContactDB and DataIndex",
        mandatory=False,
        title="DailyDigest",
    ),
)

INGESTORS: tuple[IngestorDefinition, ...] = (
    IngestorDefinition("calendar", "ICS Calendar (Fastmail Calendar, iCal)", "DATAINDEX_PERSONAL"),
    IngestorDefinition("zulip", "Zulip Chat", "DATAINDEX_ZULIP"),
    IngestorDefinition("email", "Email (mbsync/notmuch)", "DATAINDEX_EMAIL"),
    IngestorDefinition("reflector", "Reflector API", "DATAINDEX_REFLECTOR"),
)

# Added automatically when the babelfish service is selected, never offered in the menu
BABELFISH_INGESTOR = IngestorDefinition("babelfish", "Babelfish (auto-configured)", "DATAINDEX_BABELFISH")


def get_service(service_id: str) -> ServiceDefinition:
    """Look up a service by id.

    Raises:
        ServiceNotFoundError: If the id is not in the registry
    """
    for service in SERVICES:
        if service.id == service_id:
            return service
    raise ServiceNotFoundError(
        f"Unknown service: {service_id}",
        service_id=service_id,
        suggestion=f"Available services: {', '.join(s.id for s in SERVICES)}",
    )


def get_ingestor(ingestor_id: str) -> IngestorDefinition:
    """Look up an ingestor by id, including the auto-configured babelfish one.

    Raises:
        ServiceNotFoundError: If the id is unknown
    """
    for ingestor in (*INGESTORS, BABELFISH_INGESTOR):
        if ingestor.id == ingestor_id:
            return ingestor
    raise ServiceNotFoundError(f"Unknown ingestor: {ingestor_id}", service_id="dataindex")


def mandatory_services() -> list[ServiceDefinition]:
    return [s for s in SERVICES if s.mandatory]


def optional_services() -> list[ServiceDefinition]:
    return [s for s in SERVICES if not s.mandatory]


def prepare_git_url(repo_url: str, auth_type: str, token: str | None) -> str:
    """Embed a GitHub token into an HTTPS clone URL.

    Only ``https://github.com/`` URLs are rewritten, and only for token
    authentication with a non-empty token.

    Example:
        >>> prepare_git_url("https://github.com/org/repo.git", "token", "ghp_x")
        'https://ghp_x@github.com/org/repo.git'
    """
    prefix = "https://github.com/"
    if auth_type == "token" and token and repo_url.startswith(prefix):
        return f"https://{token}@github.com/{repo_url[len(prefix):]}"
    return repo_url
