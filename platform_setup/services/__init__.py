"""Platform services: registry, selection and env file generation."""

from platform_setup.services.materializer import EnvironmentMaterializer
from platform_setup.services.registry import (
    INGESTORS,
    SERVICES,
    IngestorDefinition,
    ServiceDefinition,
    get_ingestor,
    get_service,
    prepare_git_url,
)
from platform_setup.services.selection import (
    disable_service,
    enable_service,
    resolve_github_auth,
    select_ingestors,
    select_services,
    selected_optional_ids,
)

__all__ = [
    "INGESTORS",
    "SERVICES",
    "EnvironmentMaterializer",
    "IngestorDefinition",
    "ServiceDefinition",
    "disable_service",
    "enable_service",
    "get_ingestor",
    "get_service",
    "prepare_git_url",
    "resolve_github_auth",
    "select_ingestors",
    "select_services",
    "selected_optional_ids",
]
