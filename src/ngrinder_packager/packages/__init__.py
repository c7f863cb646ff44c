"""
nGrinder Packager Packages Module.

Provides dependency resolution, configuration rendering, archive assembly,
caching and eviction of distributable agent and monitor packages.
"""

from .models import (
    DependencyLibrary,
    PackageArtifact,
    PackageDescriptor,
    PackageRequest,
    PackageVariant,
    SweepResult,
)
from .variants import (
    AgentPackageStrategy,
    MonitorPackageStrategy,
    PackageStrategy,
    compose_region,
    strategy_for,
)
from .resources import FileSystemResourceLoader, NamedResource, ResourceLoader
from .dependencies import DependencyResolver, is_dependent_library, normalize_library_name
from .templates import ConfigRenderer
from .archive import ArchiveBuilder
from .cache import BuildCoordinator, PackageCache, artifact_name
from .lifecycle import EvictionSweeper
from .service import PackageService

__all__ = [
    # Models
    "PackageVariant",
    "PackageDescriptor",
    "PackageRequest",
    "DependencyLibrary",
    "PackageArtifact",
    "SweepResult",
    # Variants
    "PackageStrategy",
    "AgentPackageStrategy",
    "MonitorPackageStrategy",
    "compose_region",
    "strategy_for",
    # Resources
    "ResourceLoader",
    "FileSystemResourceLoader",
    "NamedResource",
    # Building
    "DependencyResolver",
    "is_dependent_library",
    "normalize_library_name",
    "ConfigRenderer",
    "ArchiveBuilder",
    # Cache and lifecycle
    "BuildCoordinator",
    "PackageCache",
    "artifact_name",
    "EvictionSweeper",
    # Service
    "PackageService",
]
