"""Template rendering for generated configuration files."""

from platform_setup.rendering.engine import TemplateEngine

__all__ = ["TemplateEngine"]
