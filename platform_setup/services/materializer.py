"""
Per-service environment file generation.

Each service gets ``<workspace>/<id>/.env`` rendered from
``templates/env/<id>.env.j2``. Every operator-supplied or generated value is
obtained through the resolver, so rerunning ``configure`` rewrites the same
files without asking again.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from platform_setup.config import SetupSettings
from platform_setup.credentials import CredentialStore, ValueResolver
from platform_setup.exceptions import ServiceError
from platform_setup.rendering import TemplateEngine
from platform_setup.services.registry import IngestorDefinition, get_service
from platform_setup.services.selection import select_ingestors, selected_optional_ids

log = structlog.get_logger(__name__)

LOCAL_BASE_URL = "http://localhost"
LITELLM_MODEL_DEFAULT = "GLM-4.5-Air-FP8-dev"

# Addresses of sibling services as seen from inside containers
CONTACTDB_INTERNAL_URL = "http://host.docker.internal:42800"
DATAINDEX_INTERNAL_URL = "http://host.docker.internal:42180"
BABELFISH_INTERNAL_URL = "http://host.docker.internal:8000"


class EnvironmentMaterializer:
    """Render service ``.env`` files from cached and resolved values.

    Example:
        >>> materializer = EnvironmentMaterializer(store, resolver, settings)
        >>> materializer.configure("contactdb")
        PosixPath('platform-workspace/contactdb/.env')
    """

    def __init__(
        self,
        store: CredentialStore,
        resolver: ValueResolver,
        settings: SetupSettings,
        engine: TemplateEngine | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.settings = settings
        self.engine = engine or TemplateEngine()

        self._builders: dict[str, Callable[[Path], dict[str, Any]]] = {
            "contactdb": self._contactdb_context,
            "dataindex": self._dataindex_context,
            "babelfish": self._babelfish_context,
            "meeting-prep": self._meeting_prep_context,
            "dailydigest": self._dailydigest_context,
        }

    def configurable_services(self) -> list[str]:
        """Service ids that have both a context builder and an env template."""
        templates = set(self.engine.list_templates("env/*.env.j2"))
        return [service_id for service_id in self._builders if f"env/{service_id}.env.j2" in templates]

    @property
    def public_base_url(self) -> str:
        """Cached public base URL, falling back to localhost."""
        return self.store.get("PUBLIC_BASE_URL") or LOCAL_BASE_URL

    def configure(self, service_id: str) -> Path:
        """Write the env file of one service.

        Args:
            service_id: Registry id of the service

        Returns:
            Path of the written env file

        Raises:
            ServiceNotFoundError: If the service is unknown
            ServiceError: If the service has no env file template
        """
        service = get_service(service_id)
        if service.id not in self.configurable_services():
            raise ServiceError(f"No configuration available for {service.id}", service_id=service.id)

        env_path = self.settings.service_dir(service.id) / ".env"
        log.info("configuring_service", service=service.id)

        content = self.engine.render(f"env/{service.id}.env.j2", self._builders[service.id](env_path))

        env_path.parent.mkdir(parents=True, exist_ok=True)
        env_path.write_text(content, encoding="utf-8")

        log.info("service_configured", service=service.id, path=str(env_path))
        return env_path

    def configure_all(self, service_ids: list[str]) -> list[Path]:
        return [self.configure(service_id) for service_id in service_ids]

    def resolve_enrichment_keys(self) -> dict[str, str]:
        """Resolve the optional contact-enrichment API keys shared by several services."""
        keys = {
            "apollo_api_key": self.resolver.resolve("APOLLO_API_KEY", "Apollo API key (optional)", secret=True),
            "hunter_api_key": self.resolver.resolve("HUNTER_API_KEY", "Hunter API key (optional)", secret=True),
        }
        if any(keys.values()):
            log.info("enrichment_keys_configured")
        else:
            log.info("enrichment_keys_skipped")
        return keys

    def _contactdb_context(self, env_path: Path) -> dict[str, Any]:
        context = self.resolve_enrichment_keys()
        context["self_email"] = self.resolver.resolve(
            "SELF_EMAIL",
            "Your email address (for identifying you in ContactDB)",
            env_file=env_path,
        )

        base = self.store.get("PUBLIC_BASE_URL")
        if not base or base == LOCAL_BASE_URL:
            context["api_public_url"] = "http://localhost:42800"
        else:
            context["api_public_url"] = f"{base}/contactdb-api/"

        log.info("contactdb_api_url", url=context["api_public_url"])
        return context

    def _dataindex_context(self, env_path: Path) -> dict[str, Any]:
        include_babelfish = "babelfish" in selected_optional_ids(self.store)
        ingestors = select_ingestors(self.store, self.resolver.prompter, include_babelfish=include_babelfish)

        password = self.resolver.resolve(
            "DATAINDEX_POSTGRES_PASSWORD",
            "PostgreSQL password for DataIndex",
            secret=True,
            auto_generate=True,
            env_file=env_path,
        )

        base = self.public_base_url
        return {
            "contactdb_url": CONTACTDB_INTERNAL_URL,
            "contactdb_url_frontend": f"{base}/contactdb",
            "contactdb_url_api_public": f"{base}/contactdb-api",
            "postgres_password": password,
            "ingestors": [self._ingestor_block(ingestor) for ingestor in ingestors],
        }

    def _ingestor_block(self, ingestor: IngestorDefinition) -> dict[str, Any]:
        """Resolve one ingestor's settings into a commented block of env lines.

        The block keeps its header even when the operator skipped the
        ingestor's main setting; only the variable lines are left out.
        """
        prefix = ingestor.env_prefix
        resolve = self.resolver.resolve
        lines: list[tuple[str, str]] = []

        if ingestor.id == "calendar":
            header = "ICS Calendar Ingestor"
            url = resolve("DATAINDEX_CALENDAR_URL", "ICS Calendar URL (e.g., Fastmail Calendar iCal)")
            if url:
                lines = [(f"{prefix}_TYPE", "ics_calendar"), (f"{prefix}_ICS_URL", url)]

        elif ingestor.id == "zulip":
            header = "Zulip Ingestor"
            url = resolve("DATAINDEX_ZULIP_URL", "Zulip server URL")
            email = resolve("DATAINDEX_ZULIP_EMAIL", "Zulip bot email")
            api_key = resolve("DATAINDEX_ZULIP_API_KEY", "Zulip API key", secret=True)
            if url:
                lines = [
                    (f"{prefix}_TYPE", "zulip"),
                    (f"{prefix}_ZULIP_URL", url),
                    (f"{prefix}_ZULIP_EMAIL", email),
                    (f"{prefix}_ZULIP_API_KEY", api_key),
                ]

        elif ingestor.id == "email":
            header = "Email Ingestor"
            host = resolve(
                "DATAINDEX_EMAIL_IMAP_HOST", "IMAP host (e.g., imap.fastmail.com)", default="imap.fastmail.com"
            )
            user = resolve("DATAINDEX_EMAIL_IMAP_USER", "IMAP username/email")
            password = resolve("DATAINDEX_EMAIL_IMAP_PASS", "IMAP password", secret=True)
            if host:
                lines = [
                    (f"{prefix}_TYPE", "mbsync_email"),
                    (f"{prefix}_IMAP_HOST", host),
                    (f"{prefix}_IMAP_USER", user),
                    (f"{prefix}_IMAP_PASS", password),
                ]

        elif ingestor.id == "reflector":
            header = "Reflector Ingestor"
            api_key = resolve("DATAINDEX_REFLECTOR_API_KEY", "Reflector API key", secret=True)
            api_url = resolve(
                "DATAINDEX_REFLECTOR_API_URL", "Reflector API URL", default="https://api-reflector.monadical.com"
            )
            if api_key:
                lines = [
                    (f"{prefix}_TYPE", "reflector"),
                    (f"{prefix}_API_KEY", api_key),
                    (f"{prefix}_API_URL", api_url),
                ]

        elif ingestor.id == "babelfish":
            header = "Babelfish Ingestor (auto-configured)"
            lines = [(f"{prefix}_TYPE", "babelfish"), (f"{prefix}_BASE_URL", BABELFISH_INTERNAL_URL)]
            log.info("babelfish_ingestor_configured", url=BABELFISH_INTERNAL_URL)

        else:
            raise ServiceError(f"Unsupported ingestor: {ingestor.id}", service_id="dataindex")

        return {"header": header, "lines": lines}

    def _babelfish_context(self, env_path: Path) -> dict[str, Any]:
        return {
            "matrix_server_name": "localhost",
            "postgres_password": self.resolver.resolve(
                "BABELFISH_POSTGRES_PASSWORD",
                "PostgreSQL password for Babelfish",
                secret=True,
                auto_generate=True,
                env_file=env_path,
            ),
            "backup_key": self.resolver.resolve(
                "BABELFISH_BACKUP_KEY",
                "Backup encryption key for Babelfish",
                secret=True,
                auto_generate=True,
                env_file=env_path,
            ),
        }

    def _litellm_context(self, env_path: Path, base_url_default: str) -> dict[str, str]:
        resolve = self.resolver.resolve
        return {
            "litellm_api_key": resolve("LITELLM_API_KEY", "LiteLLM API key", secret=True, env_file=env_path),
            "litellm_base_url": resolve(
                "LITELLM_BASE_URL", "LiteLLM base URL", default=base_url_default, env_file=env_path
            ),
            "llm_model": resolve(
                "DEFAULT_LLM_MODEL", "Default LLM model", default=LITELLM_MODEL_DEFAULT, env_file=env_path
            ),
        }

    def _meeting_prep_context(self, env_path: Path) -> dict[str, Any]:
        keys = self.resolve_enrichment_keys()
        base = self.public_base_url

        context: dict[str, Any] = {
            "frontend_url": f"{base}/meeting-prep",
            "backend_url": f"{base}/meeting-prep-api",
            "dataindex_public_url": f"{base}/dataindex",
            "apollo_api_key": keys["apollo_api_key"],
        }
        context.update(self._litellm_context(env_path, "https://litellm-notrack.app.monadical.io/v1/"))
        return context

    def _dailydigest_context(self, env_path: Path) -> dict[str, Any]:
        base = self.public_base_url

        context: dict[str, Any] = self._litellm_context(env_path, "https://litellm-notrack.app.monadical.io")
        context.update(
            {
                "timezone": self.resolver.resolve(
                    "DAILYDIGEST_TZ",
                    "Timezone for cron scheduling",
                    default="America/Montreal",
                    env_file=env_path,
                ),
                "contactdb_internal_url": CONTACTDB_INTERNAL_URL,
                "dataindex_internal_url": DATAINDEX_INTERNAL_URL,
                "contactdb_frontend_url": f"{base}/contactdb",
                "dataindex_frontend_url": f"{base}/dataindex",
            }
        )
        return context
