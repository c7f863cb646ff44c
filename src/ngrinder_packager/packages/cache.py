"""
Package cache and build coordination.

Every build request maps to a deterministic archive path in the download
directory. An archive already present there is reused as is; otherwise a
single build produces it while concurrent requests for the same path wait
for that build instead of starting their own.
"""

import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, TypeVar

from ngrinder_packager.packages.models import PackageArtifact, PackageRequest, PackageVariant

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _filename_component(value: str | None) -> str:
    value = (value or "").strip()
    return f"-{value}" if value else ""


def artifact_name(
    variant: PackageVariant,
    version: str,
    region: str | None = None,
    connection_ip: str | None = None,
    owner: str | None = None,
    for_windows: bool = False,
) -> str:
    """
    Get distributable package name with appropriate extension.

    Blank components are left out entirely:
    ``ngrinder-agent-3.5.0-east-10.0.0.1-bob.tar``.
    """
    return (
        f"{variant.module_name}-{version}"
        f"{_filename_component(region)}"
        f"{_filename_component(connection_ip)}"
        f"{_filename_component(owner)}"
        f"{'.zip' if for_windows else '.tar'}"
    )


class BuildCoordinator:
    """
    Coordinates concurrent package builds.

    Builds for the same key collapse onto one execution whose result (or
    exception) every caller receives. With ``serialize`` set, a global
    lock additionally keeps any two builds from running at the same time.
    """

    def __init__(self, serialize: bool = True):
        self._serialize_lock = threading.Lock() if serialize else None
        self._registry_lock = threading.Lock()
        self._in_flight: dict[str, Future] = {}

    def in_flight(self) -> list[str]:
        """Keys of builds currently running."""
        with self._registry_lock:
            return sorted(self._in_flight)

    def run(self, key: str, build: Callable[[], T]) -> T:
        """
        Run a build for a key, or wait for the one already running.

        Args:
            key: Identity of the build
            build: Callable producing the result

        Returns:
            Result of the build
        """
        with self._registry_lock:
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            logger.debug(f"Waiting for in-flight build of {key}")
            return future.result()

        try:
            if self._serialize_lock is not None:
                with self._serialize_lock:
                    result = build()
            else:
                result = build()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._registry_lock:
                self._in_flight.pop(key, None)


class PackageCache:
    """
    Maps build requests to archives in the download directory.

    An existing archive is always treated as valid; staleness is handled
    by the eviction sweep, never by rebuilding on request.
    """

    def __init__(
        self,
        download_dir: Path,
        version: str,
        coordinator: BuildCoordinator | None = None,
    ):
        self._download_dir = download_dir
        self._version = version
        self._coordinator = coordinator or BuildCoordinator()

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def path_for(self, request: PackageRequest) -> Path:
        """Return the deterministic archive path of a request."""
        name = artifact_name(
            request.variant,
            self._version,
            region=request.region,
            connection_ip=request.connection_ip,
            owner=request.owner,
            for_windows=request.for_windows,
        )
        return self._download_dir / name

    def get(self, request: PackageRequest) -> PackageArtifact | None:
        """Return the cached archive of a request, if present."""
        path = self.path_for(request)
        if not path.is_file():
            return None
        try:
            return PackageArtifact.from_path(path)
        except FileNotFoundError:
            # Evicted after the check
            return None

    def get_or_build(
        self,
        request: PackageRequest,
        builder: Callable[[Path], Path],
    ) -> PackageArtifact:
        """
        Return the archive of a request, building it on a cache miss.

        Args:
            request: Build request
            builder: Callable writing the archive to the given path

        Returns:
            The archive, with ``built`` set when this call produced it
        """
        path = self.path_for(request)
        cached = self.get(request)
        if cached is not None:
            logger.debug(f"Reusing {path.name}")
            return cached

        executed = False

        def _build() -> PackageArtifact:
            nonlocal executed
            # Another build may have finished between the check and the lock
            existing = self.get(request)
            if existing is not None:
                return existing
            executed = True
            path.unlink(missing_ok=True)
            builder(path)
            return PackageArtifact.from_path(path, built=True)

        artifact = self._coordinator.run(str(path), _build)
        if not executed and artifact.built:
            artifact = artifact.model_copy(update={"built": False})
        return artifact

    def list_artifacts(self) -> list[PackageArtifact]:
        """Return every archive currently in the download directory."""
        if not self._download_dir.is_dir():
            return []
        artifacts = []
        for path in sorted(self._download_dir.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            try:
                artifacts.append(PackageArtifact.from_path(path))
            except FileNotFoundError:
                # Evicted while listing
                continue
        return artifacts
