"""
nGrinder Packager Exception Hierarchy.

Defines all custom exceptions raised while building, caching and evicting
distributable packages. Provides consistent error handling and debugging
information.
"""

from typing import Any


class PackagerError(Exception):
    """
    Base exception for all packager errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a PackagerError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ManifestReadError(PackagerError):
    """
    Raised when a dependency manifest cannot be located or read.

    The manifest lists the libraries a variant bundles; without it
    the library selection would silently be empty.
    """

    def __init__(
        self,
        message: str,
        *,
        manifest_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ManifestReadError.

        Args:
            message: Human-readable error message
            manifest_name: Resource name of the manifest
            details: Optional structured data for debugging
        """
        details = details or {}
        if manifest_name:
            details["manifest_name"] = manifest_name

        super().__init__(message, details=details)
        self.manifest_name = manifest_name


class TemplateRenderError(PackagerError):
    """
    Raised when a configuration template cannot be rendered.

    Covers a missing template resource, placeholders left without a
    value, and parameter values that are not flat strings.
    """

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        missing_vars: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a TemplateRenderError.

        Args:
            message: Human-readable error message
            template_name: Name of the template being rendered
            missing_vars: Placeholders that had no value
            details: Optional structured data for debugging
        """
        details = details or {}
        if template_name:
            details["template_name"] = template_name
        if missing_vars:
            details["missing_vars"] = missing_vars

        super().__init__(message, details=details)
        self.template_name = template_name
        self.missing_vars = missing_vars or []


class ArchiveWriteError(PackagerError):
    """Raised when an I/O failure occurs while writing a package archive."""

    def __init__(
        self,
        message: str,
        *,
        target_path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if target_path:
            details["target_path"] = target_path

        super().__init__(message, details=details)
        self.target_path = target_path


class ResourceResolutionError(PackagerError):
    """
    Raised when a bundled resource cannot be resolved.

    This occurs when a script pattern matches no resources or a
    classpath entry cannot be opened.
    """

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        resource: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if pattern:
            details["pattern"] = pattern
        if resource:
            details["resource"] = resource

        super().__init__(message, details=details)
        self.pattern = pattern
        self.resource = resource


class ConfigurationError(PackagerError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Required environment variables are malformed
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var

        super().__init__(message, details=details)
        self.env_var = env_var
