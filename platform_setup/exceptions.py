"""Custom exception hierarchy for platform-setup.

This module defines the structured exception hierarchy used throughout the
installer so that the CLI can turn every expected failure into a one-line
diagnostic and a non-zero exit status.

Exception Hierarchy:
    PlatformSetupError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   ├── AuthenticationError
    │   ├── CacheIOError
    │   └── CacheFormatError
    ├── ServiceError
    │   └── ServiceNotFoundError
    ├── TemplateError
    └── ExternalCommandError

Missing cache keys are not errors: lookups return ``None``.

Example Usage:
    >>> from platform_setup.exceptions import AuthenticationError
    >>> try:
    ...     store = open_store(path, prompter=prompter)
    ... except AuthenticationError as e:
    ...     print(e.message)
"""


class PlatformSetupError(Exception):
    """Base exception for all platform-setup errors.

    Attributes:
        message: Human-readable error description
        suggestion: Optional hint telling the operator how to recover
    """

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            suggestion: Optional suggestion for resolution
        """
        self.message = message
        self.suggestion = suggestion

        full_message = message
        if suggestion:
            full_message = f"{message}\nSuggestion: {suggestion}"

        super().__init__(full_message)


class ConfigurationError(PlatformSetupError):
    """Configuration-related errors.

    Examples:
        - Settings file not found or not valid YAML
        - Invalid selection entered at a prompt
        - Attempt to disable a mandatory service
    """

    pass


class CredentialError(PlatformSetupError):
    """Credential cache errors.

    This is the base class for cache-specific errors. Subclasses:
    - AuthenticationError: Wrong or missing passphrase for an encrypted cache
    - CacheIOError: The backing file could not be read or written
    - CacheFormatError: The backing file content is not understood

    Attributes:
        message: Human-readable error description
        key: The cache key involved, if any
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            key: The cache key that was being accessed
            suggestion: Optional suggestion for resolution
        """
        self.key = key
        if key:
            message = f"{message} (key: {key})"
        super().__init__(message, suggestion=suggestion)


class AuthenticationError(CredentialError):
    """Passphrase is missing or does not decrypt the cache."""

    pass


class CacheIOError(CredentialError):
    """Filesystem failure while reading or writing the cache."""

    pass


class CacheFormatError(CredentialError):
    """Cache content is malformed."""

    pass


class ServiceError(PlatformSetupError):
    """Service registry and configuration errors.

    Attributes:
        message: Human-readable error description
        service_id: Identifier of the service involved, if any
    """

    def __init__(
        self,
        message: str,
        service_id: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            service_id: Identifier of the affected service
            suggestion: Optional suggestion for resolution
        """
        self.service_id = service_id
        super().__init__(message, suggestion=suggestion)


class ServiceNotFoundError(ServiceError):
    """Service identifier is not part of the registry."""

    pass


class TemplateError(PlatformSetupError):
    """Template rendering errors.

    Examples:
        - Template file not found
        - Invalid template syntax
        - Missing template variables
    """

    pass


class ExternalCommandError(PlatformSetupError):
    """An external tool (docker, caddy) failed or is not installed.

    Attributes:
        command: The command line that was executed
        returncode: Process exit status, if the process ran
    """

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            command: Command that failed
            returncode: Exit status of the command
            suggestion: Optional suggestion for resolution
        """
        self.command = command
        self.returncode = returncode

        if returncode is not None:
            message = f"{message} (exit status {returncode})"

        super().__init__(message, suggestion=suggestion)
