"""
Dependency resolution.

Reads a variant's dependency manifest and selects the matching library
files from the classpath the controller runs with.
"""

import logging
from pathlib import Path
from typing import Iterable

from ngrinder_packager.core.exceptions import ManifestReadError
from ngrinder_packager.packages.models import DependencyLibrary, PackageVariant
from ngrinder_packager.packages.resources import ResourceLoader
from ngrinder_packager.packages.variants import strategy_for

logger = logging.getLogger(__name__)

MANIFEST_SEPARATOR = ";"
SNAPSHOT_QUALIFIER = "-SNAPSHOT"
GA_QUALIFIER = "-GA"
LIBRARY_SUFFIX = ".jar"

# The embedded Grinder engine is replaced by ngrinder-runtime and must never ship
LEGACY_ENGINE_JAR = "grinder-3.9.1.jar"


def parse_manifest(text: str) -> set[str]:
    """Split manifest text into declared library names."""
    libs = set()
    for entry in text.split(MANIFEST_SEPARATOR):
        entry = entry.strip().replace(SNAPSHOT_QUALIFIER, "")
        if entry:
            libs.add(entry)
    return libs


def is_library_file(path: Path) -> bool:
    """Check if the given classpath entry is a jar."""
    return path.name.endswith(LIBRARY_SUFFIX)


def normalize_library_name(filename: str) -> str:
    """
    Strip version and qualifiers from a library file name.

    ``foo-bar-1.2.3-SNAPSHOT.jar`` becomes ``foo-bar``. Names without a
    dash lose their extension instead: ``commons.jar`` becomes ``commons``.
    """
    name = filename.replace(SNAPSHOT_QUALIFIER, "").replace(GA_QUALIFIER, "")
    version_start = name.rfind("-")
    if version_start == -1:
        version_start = name.rfind(".")
    if version_start == -1:
        return name
    return name[:version_start]


def is_dependent_library(filename: str, libs: set[str] | frozenset[str]) -> bool:
    """Check if the given library file belongs to the declared library set."""
    if LEGACY_ENGINE_JAR in filename:
        return False
    return normalize_library_name(filename) in libs


class DependencyResolver:
    """
    Resolves which classpath libraries a variant bundles.

    The declared set comes from the variant's manifest resource plus the
    libraries its strategy always bundles.
    """

    def __init__(self, loader: ResourceLoader):
        self._loader = loader

    def read_manifest(self, variant: PackageVariant) -> set[str]:
        """
        Read the declared library names of a variant.

        Raises:
            ManifestReadError: If the manifest is missing or unreadable
        """
        manifest_name = variant.dependencies_file_name
        try:
            text = self._loader.read(manifest_name).decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestReadError(
                f"Error while loading {manifest_name}: {e}",
                manifest_name=manifest_name,
            ) from e
        return parse_manifest(text)

    def resolve(self, variant: PackageVariant) -> set[str]:
        """Return the full declared library set for a variant."""
        libs = self.read_manifest(variant)
        libs.update(strategy_for(variant).additional_bundled_libraries())
        logger.debug(f"{variant.module_name} declares {len(libs)} libraries")
        return libs

    def match_libraries(
        self,
        classpath: Iterable[Path],
        libs: set[str] | frozenset[str],
    ) -> list[DependencyLibrary]:
        """
        Select classpath libraries that belong to the declared set.

        Classpath order is kept; a second jar with the same normalized
        name is skipped.

        Args:
            classpath: Candidate library files
            libs: Declared library names

        Returns:
            Matched libraries, unique by normalized name
        """
        matched: dict[str, DependencyLibrary] = {}
        for path in classpath:
            path = Path(path)
            if not is_library_file(path) or not is_dependent_library(path.name, libs):
                continue
            normalized = normalize_library_name(path.name)
            if normalized in matched:
                logger.debug(
                    f"Skipping {path.name}, {matched[normalized].filename} already bundled"
                )
                continue
            matched[normalized] = DependencyLibrary(
                filename=path.name,
                normalized_name=normalized,
                path=path,
            )
        return list(matched.values())
