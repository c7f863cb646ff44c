"""
nGrinder Packager Core Module.

Provides configuration and the exception hierarchy shared by all components.
"""

__all__ = [
    "PackagerConfig",
    # Exceptions
    "PackagerError",
    "ManifestReadError",
    "TemplateRenderError",
    "ArchiveWriteError",
    "ResourceResolutionError",
    "ConfigurationError",
]

from ngrinder_packager.core.config import PackagerConfig
from ngrinder_packager.core.exceptions import (
    ArchiveWriteError,
    ConfigurationError,
    ManifestReadError,
    PackagerError,
    ResourceResolutionError,
    TemplateRenderError,
)
