"""
Packager configuration.

A single immutable configuration object is built once (usually from the
environment) and handed to every component at construction time.

Environment variables:
- NGRINDER_HOME: Controller home directory (default: ~/.ngrinder)
- NGRINDER_VERSION: Version stamped into package names
- NGRINDER_CONTROLLER_PORT: Port agents connect back to
- NGRINDER_PACKAGE_RETENTION_DAYS: Days before a package is evicted
- NGRINDER_CLASSPATH: Library files to choose from, os.pathsep separated
- NGRINDER_RESOURCES_DIR: Override for bundled scripts/templates/manifests
- NGRINDER_SERIALIZE_BUILDS: Run at most one build at a time (default: true)
"""

import os
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ngrinder_packager import __version__
from ngrinder_packager.core.exceptions import ConfigurationError

DEFAULT_RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"
DEFAULT_CONTROLLER_PORT = 16001
DEFAULT_RETENTION_DAYS = 2


class PackagerConfig(BaseModel):
    """Configuration for package building and eviction."""

    model_config = ConfigDict(frozen=True)

    home: Path = Field(
        default_factory=lambda: Path.home() / ".ngrinder",
        description="Controller home directory",
    )
    version: str = Field(default=__version__, description="Version stamped into package names")
    controller_port: int = Field(
        default=DEFAULT_CONTROLLER_PORT, ge=1, le=65535, description="Controller port for agents"
    )
    retention_days: int = Field(
        default=DEFAULT_RETENTION_DAYS, ge=1, description="Days before a package is evicted"
    )
    classpath: tuple[Path, ...] = Field(
        default=(), description="Candidate library files for bundling"
    )
    resources_dir: Path = Field(
        default=DEFAULT_RESOURCES_DIR, description="Root of scripts, templates and manifests"
    )
    serialize_builds: bool = Field(
        default=True, description="Allow only one package build at any instant"
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Version becomes part of a file name and must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("version must not be blank")
        return v

    @property
    def download_dir(self) -> Path:
        """Directory holding the built packages."""
        return self.home / "download"

    @property
    def retention(self) -> timedelta:
        """Retention period as a timedelta."""
        return timedelta(days=self.retention_days)

    @classmethod
    def from_env(cls) -> "PackagerConfig":
        """Load configuration from environment."""
        values: dict = {}

        home = os.getenv("NGRINDER_HOME")
        if home:
            values["home"] = Path(home).expanduser()

        version = os.getenv("NGRINDER_VERSION")
        if version:
            values["version"] = version

        port = _int_from_env("NGRINDER_CONTROLLER_PORT")
        if port is not None:
            values["controller_port"] = port

        retention_days = _int_from_env("NGRINDER_PACKAGE_RETENTION_DAYS")
        if retention_days is not None:
            values["retention_days"] = retention_days

        classpath = os.getenv("NGRINDER_CLASSPATH", "")
        if classpath:
            values["classpath"] = tuple(
                Path(entry) for entry in classpath.split(os.pathsep) if entry.strip()
            )

        resources_dir = os.getenv("NGRINDER_RESOURCES_DIR")
        if resources_dir:
            values["resources_dir"] = Path(resources_dir).expanduser()

        serialize_builds = _bool_from_env("NGRINDER_SERIALIZE_BUILDS")
        if serialize_builds is not None:
            values["serialize_builds"] = serialize_builds

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(f"Invalid packager configuration: {e}") from e


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _bool_from_env(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean (true/false), got {raw!r}", env_var=name
    )


def _int_from_env(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", env_var=name
        ) from e
