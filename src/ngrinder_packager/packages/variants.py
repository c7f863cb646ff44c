"""
Per-variant packaging strategies.

Each variant decides which configuration parameters it renders, which
libraries it always bundles and whether a configuration file is embedded.
"""

from abc import ABC, abstractmethod

from ngrinder_packager.packages.models import PackageRequest, PackageVariant

NO_REGION = "NONE"


def _is_blank(value: str | None) -> bool:
    return not (value or "").strip()


class PackageStrategy(ABC):
    """Behaviour that differs between package variants."""

    variant: PackageVariant

    @abstractmethod
    def build_config_params(self, request: PackageRequest) -> dict[str, str]:
        """Return the flat parameter map rendered into the config template."""

    def additional_bundled_libraries(self) -> frozenset[str]:
        """Libraries bundled regardless of the dependency manifest."""
        return frozenset()

    def should_embed_config(self, request: PackageRequest) -> bool:
        """Whether the rendered configuration goes into the archive."""
        return True


class AgentPackageStrategy(PackageStrategy):
    """Agent packages connect back to a controller."""

    variant = PackageVariant.AGENT

    CORE_LIBRARIES = frozenset({"ngrinder-core", "ngrinder-runtime", "ngrinder-groovy"})

    def build_config_params(self, request: PackageRequest) -> dict[str, str]:
        return {
            "controllerIP": (request.connection_ip or "").strip(),
            "controllerPort": str(request.port),
            "controllerRegion": compose_region(request.region, request.owner),
        }

    def additional_bundled_libraries(self) -> frozenset[str]:
        return self.CORE_LIBRARIES

    def should_embed_config(self, request: PackageRequest) -> bool:
        # Without an address the agent is configured by hand after unpacking
        return not _is_blank(request.connection_ip)


class MonitorPackageStrategy(PackageStrategy):
    """Monitor packages only need the port they listen on."""

    variant = PackageVariant.MONITOR

    def build_config_params(self, request: PackageRequest) -> dict[str, str]:
        return {"monitorPort": str(request.port)}


def compose_region(region: str | None, owner: str | None) -> str:
    """
    Build the region an agent reports to the controller.

    A blank region becomes ``NONE``. An owner turns the region into a
    private one: ``owned_<owner>`` when no region was given, otherwise
    ``<region>_owned_<owner>``.

    Args:
        region: Region name as requested
        owner: Owner of a private agent

    Returns:
        The controllerRegion value
    """
    region_was_blank = _is_blank(region)
    composed = NO_REGION if region_was_blank else region.strip()
    if not _is_blank(owner):
        owner = owner.strip()
        if region_was_blank:
            composed = f"owned_{owner}"
        else:
            composed = f"{composed}_owned_{owner}"
    return composed


_STRATEGIES: dict[PackageVariant, PackageStrategy] = {
    PackageVariant.AGENT: AgentPackageStrategy(),
    PackageVariant.MONITOR: MonitorPackageStrategy(),
}


def strategy_for(variant: PackageVariant) -> PackageStrategy:
    """Return the strategy registered for a variant."""
    try:
        return _STRATEGIES[variant]
    except KeyError:
        raise ValueError(f"{variant} module is not supported") from None
