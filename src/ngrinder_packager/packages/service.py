"""
Package service.

Entry point for building agent and monitor packages: resolves the
libraries to bundle, renders the configuration, assembles the archive and
keeps the download directory tidy.
"""

import logging
from pathlib import Path

from ngrinder_packager.core.config import PackagerConfig
from ngrinder_packager.core.exceptions import ResourceResolutionError
from ngrinder_packager.packages.archive import ArchiveBuilder
from ngrinder_packager.packages.cache import BuildCoordinator, PackageCache
from ngrinder_packager.packages.dependencies import DependencyResolver
from ngrinder_packager.packages.lifecycle import EvictionSweeper
from ngrinder_packager.packages.models import (
    PackageArtifact,
    PackageRequest,
    PackageVariant,
    SweepResult,
)
from ngrinder_packager.packages.resources import (
    FileSystemResourceLoader,
    NamedResource,
    ResourceLoader,
)
from ngrinder_packager.packages.templates import ConfigRenderer
from ngrinder_packager.packages.variants import strategy_for

logger = logging.getLogger(__name__)


class PackageService:
    """
    Builds, caches and evicts distributable packages.

    Components default to ones derived from the configuration and can be
    replaced individually.
    """

    def __init__(
        self,
        config: PackagerConfig,
        loader: ResourceLoader | None = None,
        resolver: DependencyResolver | None = None,
        renderer: ConfigRenderer | None = None,
        archive_builder: ArchiveBuilder | None = None,
        cache: PackageCache | None = None,
        sweeper: EvictionSweeper | None = None,
    ):
        self._config = config
        self._loader = loader or FileSystemResourceLoader(config.resources_dir)
        self._resolver = resolver or DependencyResolver(self._loader)
        self._renderer = renderer or ConfigRenderer(self._loader)
        self._archive_builder = archive_builder or ArchiveBuilder()
        self._cache = cache or PackageCache(
            config.download_dir,
            config.version,
            BuildCoordinator(serialize=config.serialize_builds),
        )
        self._sweeper = sweeper or EvictionSweeper(config.download_dir, config.retention)

    @property
    def config(self) -> PackagerConfig:
        return self._config

    @property
    def cache(self) -> PackageCache:
        return self._cache

    @property
    def sweeper(self) -> EvictionSweeper:
        return self._sweeper

    def startup(self) -> SweepResult:
        """Wipe leftover packages and start periodic eviction."""
        result = self._sweeper.start()
        logger.info(
            f"Package directory {self._config.download_dir} cleaned, "
            f"{result.deleted_count} packages removed"
        )
        return result

    def shutdown(self) -> None:
        self._sweeper.stop()

    def create_package(
        self,
        variant: PackageVariant,
        region: str | None = None,
        connection_ip: str | None = None,
        port: int | None = None,
        owner: str | None = None,
        for_windows: bool = False,
    ) -> Path:
        """
        Create a package, reusing an existing one for the same inputs.

        Args:
            variant: Package variant
            region: Controller region
            connection_ip: Controller address written into the agent config
            port: Controller port (agent) or listening port (monitor)
            owner: Owner of a private agent
            for_windows: Produce a zip instead of a tar

        Returns:
            Path of the package archive

        Raises:
            PackagerError: If any build step fails; no archive is left behind
        """
        request = PackageRequest(
            variant=variant,
            region=region,
            connection_ip=connection_ip,
            port=self._config.controller_port if port is None else port,
            owner=owner,
            for_windows=for_windows,
        )
        return self.get_or_build(request).path

    def create_agent_package(
        self,
        variant: PackageVariant | None = None,
        region: str | None = None,
        connection_ip: str | None = None,
        port: int | None = None,
        owner: str | None = None,
    ) -> Path:
        """
        Create an agent package.

        Any variant passed in is ignored; called without arguments this
        builds the generic agent for the local controller port.
        """
        if variant is not None and variant != PackageVariant.AGENT:
            logger.debug(f"Ignoring {variant.value} variant for an agent package")
        return self.create_package(
            PackageVariant.AGENT,
            region=region,
            connection_ip=connection_ip,
            port=port,
            owner=owner,
        )

    def create_monitor_package(self, port: int, for_windows: bool = False) -> Path:
        """Create a monitor package listening on the given port."""
        return self.create_package(PackageVariant.MONITOR, port=port, for_windows=for_windows)

    def get_or_build(self, request: PackageRequest) -> PackageArtifact:
        """Return the package of a request, building it on a cache miss."""
        return self._cache.get_or_build(request, lambda target: self._build(request, target))

    def list_artifacts(self) -> list[PackageArtifact]:
        return self._cache.list_artifacts()

    def _build(self, request: PackageRequest, target: Path) -> Path:
        variant = request.variant
        strategy = strategy_for(variant)
        logger.info(f"Building {target.name}")

        libs = self._resolver.resolve(variant)
        libraries = self._resolver.match_libraries(self._config.classpath, libs)
        missing = sorted(libs - {lib.normalized_name for lib in libraries})
        if missing:
            logger.debug(f"Declared libraries not on the classpath: {missing}")

        scripts = self._collect_scripts(variant)

        rendered_config = None
        if strategy.should_embed_config(request):
            rendered_config = self._renderer.render(
                variant.template_name, strategy.build_config_params(request)
            )

        return self._archive_builder.build(
            variant,
            target,
            libraries=libraries,
            scripts=scripts,
            rendered_config=rendered_config,
            for_windows=request.for_windows,
        )

    def _collect_scripts(self, variant: PackageVariant) -> list[NamedResource]:
        pattern = variant.scripts_pattern
        try:
            scripts = self._loader.list(pattern)
        except OSError as e:
            raise ResourceResolutionError(
                f"Cannot read scripts for {variant.module_name}: {e}", pattern=pattern
            ) from e
        if not scripts:
            raise ResourceResolutionError(
                f"No scripts found for {variant.module_name}", pattern=pattern
            )
        return scripts
