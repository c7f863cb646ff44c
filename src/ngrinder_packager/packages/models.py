"""
Models for package building.

Defines package variants and their static descriptors, build requests,
matched libraries, produced artifacts and eviction results.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class PackageDescriptor:
    """Static layout of one package variant."""

    module_name: str
    base_path: str
    lib_path: str
    scripts_pattern: str
    template_name: str
    dependencies_file_name: str


class PackageVariant(Enum):
    """Distributable package flavours."""

    AGENT = "agent"
    MONITOR = "monitor"

    @property
    def descriptor(self) -> PackageDescriptor:
        """Return the static descriptor of this variant."""
        return _DESCRIPTORS[self]

    @property
    def module_name(self) -> str:
        return self.descriptor.module_name

    @property
    def base_path(self) -> str:
        return self.descriptor.base_path

    @property
    def lib_path(self) -> str:
        return self.descriptor.lib_path

    @property
    def scripts_pattern(self) -> str:
        return self.descriptor.scripts_pattern

    @property
    def template_name(self) -> str:
        return self.descriptor.template_name

    @property
    def dependencies_file_name(self) -> str:
        return self.descriptor.dependencies_file_name


_DESCRIPTORS: dict[PackageVariant, PackageDescriptor] = {
    PackageVariant.AGENT: PackageDescriptor(
        module_name="ngrinder-agent",
        base_path="ngrinder-agent/",
        lib_path="ngrinder-agent/lib/",
        scripts_pattern="scripts/agent/*",
        template_name="agent_agent.conf",
        dependencies_file_name="dependencies.txt",
    ),
    PackageVariant.MONITOR: PackageDescriptor(
        module_name="ngrinder-monitor",
        base_path="ngrinder-monitor/",
        lib_path="ngrinder-monitor/lib/",
        scripts_pattern="scripts/monitor/*",
        template_name="agent_monitor.conf",
        dependencies_file_name="monitor-dependencies.txt",
    ),
}


class PackageRequest(BaseModel):
    """Inputs of a single package build."""

    model_config = ConfigDict(frozen=True)

    variant: PackageVariant = Field(description="Package variant to build")
    region: str | None = Field(default=None, description="Controller region name")
    connection_ip: str | None = Field(
        default=None, description="Controller address the agent connects to"
    )
    port: int = Field(ge=0, le=65535, description="Controller or monitor port")
    owner: str | None = Field(default=None, description="Owner of a private agent")
    for_windows: bool = Field(default=False, description="Produce a zip instead of a tar")

    @field_validator("variant", mode="before")
    @classmethod
    def validate_variant(cls, v):
        """Convert string to PackageVariant enum."""
        if isinstance(v, str):
            return PackageVariant(v.lower())
        return v


class DependencyLibrary(BaseModel):
    """A classpath library selected for bundling."""

    filename: str = Field(description="Raw library file name")
    normalized_name: str = Field(description="Name with version and qualifiers stripped")
    path: Path = Field(description="Location of the library on disk")


class PackageArtifact(BaseModel):
    """A built package archive in the download directory."""

    path: Path = Field(description="Absolute path of the archive")
    last_modified: datetime = Field(description="Modification time of the archive")
    size_bytes: int = Field(default=0, description="Size in bytes")
    built: bool = Field(default=False, description="Whether this call produced the archive")

    @classmethod
    def from_path(cls, path: Path, built: bool = False) -> "PackageArtifact":
        """Describe an archive that exists on disk."""
        stat = path.stat()
        return cls(
            path=path.resolve(),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
            built=built,
        )

    @property
    def name(self) -> str:
        return self.path.name


class SweepResult(BaseModel):
    """Result of an eviction sweep."""

    success: bool = Field(default=True, description="Whether every eligible file was removed")
    deleted_count: int = Field(default=0, description="Number of packages deleted")
    freed_bytes: int = Field(default=0, description="Bytes of storage freed")
    deleted: list[str] = Field(default_factory=list, description="Names of deleted packages")
    errors: list[str] = Field(default_factory=list, description="Any errors encountered")
