"""
Configuration rendering.

Templates live under a fixed resource namespace and use ``{{name}}``
placeholders filled from a flat string mapping.
"""

import re

from ngrinder_packager.core.exceptions import TemplateRenderError
from ngrinder_packager.packages.resources import ResourceLoader

TEMPLATE_NAMESPACE = "templates"

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class ConfigRenderer:
    """Renders package configuration files from templates."""

    def __init__(self, loader: ResourceLoader, namespace: str = TEMPLATE_NAMESPACE):
        self._loader = loader
        self._namespace = namespace.strip("/")

    def load_template(self, template_name: str) -> str:
        """Return the raw text of a template."""
        name = f"{self._namespace}/{template_name}" if self._namespace else template_name
        try:
            return self._loader.read(name).decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateRenderError(
                "Error while fetching the config template.",
                template_name=template_name,
            ) from e

    def render(self, template_name: str, params: dict[str, str]) -> str:
        """
        Render a template with the given parameters.

        Args:
            template_name: Template file name within the namespace
            params: Flat mapping of placeholder names to string values

        Returns:
            Rendered configuration text

        Raises:
            TemplateRenderError: If the template is missing, a value is not a
                string, or a placeholder has no value
        """
        bad_values = sorted(k for k, v in params.items() if not isinstance(v, str))
        if bad_values:
            raise TemplateRenderError(
                f"Template values must be strings: {bad_values}",
                template_name=template_name,
            )

        template = self.load_template(template_name)

        missing = sorted(
            {m.group(1) for m in _PLACEHOLDER.finditer(template)} - params.keys()
        )
        if missing:
            raise TemplateRenderError(
                f"Missing required template variables: {missing}",
                template_name=template_name,
                missing_vars=missing,
            )

        return _PLACEHOLDER.sub(lambda m: params[m.group(1)], template)
