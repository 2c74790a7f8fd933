"""Sandboxed Jinja2 rendering for generated configuration files.

All files the installer writes (service ``.env`` files, the ``Caddyfile`` and
the proxy ``docker-compose.yml``) are rendered from templates shipped in
``platform_setup/templates``.

Security Features:
    - Sandboxed environment prevents arbitrary code execution
    - StrictUndefined catches missing variables early (fail-fast)
    - Template path validation prevents directory traversal

Example:
    >>> engine = TemplateEngine()
    >>> text = engine.render("env/contactdb.env.j2", {"self_email": "me@example.com", ...})
"""

from pathlib import Path
from typing import Any, cast

from jinja2 import FileSystemLoader, StrictUndefined, TemplateError as JinjaTemplateError
from jinja2.sandbox import SandboxedEnvironment

from platform_setup.exceptions import TemplateError


class TemplateEngine:
    """Jinja2 rendering engine with a hardened configuration.

    Configuration options:
        - Autoescape disabled (env files and Caddyfiles are not HTML)
        - trim_blocks/lstrip_blocks enabled for clean output
        - keep_trailing_newline preserves file format

    Attributes:
        template_dir: Resolved path to the template directory.
        env: The SandboxedEnvironment instance.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        """Initialize template engine.

        Args:
            template_dir: Root directory for templates. Defaults to the
                package's built-in templates directory.

        Raises:
            ValueError: If template_dir doesn't exist or isn't a directory.
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = template_dir.resolve()

        if not self.template_dir.exists():
            raise ValueError(f"Template directory does not exist: {self.template_dir}")
        if not self.template_dir.is_dir():
            raise ValueError(f"Template path is not a directory: {self.template_dir}")

        self.env = SandboxedEnvironment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def validate_template_path(self, template_path: str) -> Path:
        """Validate template path to prevent directory traversal attacks.

        Args:
            template_path: Relative path to template within template_dir.

        Returns:
            Resolved absolute path to the template file.

        Raises:
            TemplateError: If the path escapes the template directory or doesn't exist.
        """
        requested_path = (self.template_dir / template_path).resolve()

        try:
            requested_path.relative_to(self.template_dir)
        except ValueError as e:
            raise TemplateError(f"Template path escapes template directory: {template_path}") from e

        if not requested_path.is_file():
            raise TemplateError(f"Template not found: {template_path}")

        return requested_path

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a template with the given context.

        Args:
            template_path: Relative path to template within template_dir.
            context: Variables passed to the template.

        Returns:
            Rendered text.

        Raises:
            TemplateError: If the template is missing, invalid, or uses an
                undefined variable.
        """
        self.validate_template_path(template_path)

        try:
            template = self.env.get_template(template_path)
            return cast(str, template.render(**context))
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render {template_path}: {e}") from e

    def list_templates(self, pattern: str = "**/*.j2") -> list[str]:
        """List available templates matching a glob pattern, sorted."""
        templates = []
        for template_file in self.template_dir.glob(pattern):
            if template_file.is_file():
                templates.append(template_file.relative_to(self.template_dir).as_posix())
        return sorted(templates)
