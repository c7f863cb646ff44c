"""
Package archive assembly.

Streams directory markers, launch scripts, bundled libraries and the
rendered configuration into a tar (or, for Windows, zip) archive. The
archive is written next to its final path and moved into place only
once it is complete.
"""

import io
import logging
import os
import stat
import tarfile
import time
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterable

from ngrinder_packager.core.exceptions import (
    ArchiveWriteError,
    PackagerError,
    ResourceResolutionError,
)
from ngrinder_packager.packages.models import DependencyLibrary, PackageVariant
from ngrinder_packager.packages.resources import NamedResource

logger = logging.getLogger(__name__)

EXEC_MODE = 0o755
DEFAULT_FILE_MODE = 0o644
DIR_MODE = 0o755

CONFIG_FILE_NAME = "__agent.conf"


class _ArchiveWriter(ABC):
    """Minimal entry writer shared by the tar and zip formats."""

    def __init__(self, mtime: float):
        self._mtime = mtime

    @abstractmethod
    def add_dir(self, name: str) -> None: ...

    @abstractmethod
    def add_stream(self, name: str, stream: BinaryIO, size: int, mode: int) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def add_bytes(self, name: str, data: bytes, mode: int) -> None:
        self.add_stream(name, io.BytesIO(data), len(data), mode)


class _TarWriter(_ArchiveWriter):
    def __init__(self, path: Path, mtime: float):
        super().__init__(mtime)
        self._tar = tarfile.open(path, "w", format=tarfile.GNU_FORMAT)

    def add_dir(self, name: str) -> None:
        info = tarfile.TarInfo(name.rstrip("/") + "/")
        info.type = tarfile.DIRTYPE
        info.mode = DIR_MODE
        info.mtime = self._mtime
        self._tar.addfile(info)

    def add_stream(self, name: str, stream: BinaryIO, size: int, mode: int) -> None:
        info = tarfile.TarInfo(name)
        info.size = size
        info.mode = mode
        info.mtime = self._mtime
        self._tar.addfile(info, stream)

    def close(self) -> None:
        self._tar.close()


class _ZipWriter(_ArchiveWriter):
    def __init__(self, path: Path, mtime: float):
        super().__init__(mtime)
        self._zip = zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED)
        self._date_time = time.localtime(mtime)[:6]

    def _info(self, name: str, mode: int) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=self._date_time)
        info.create_system = 3  # unix, so extractors honour the mode bits
        info.external_attr = mode << 16
        return info

    def add_dir(self, name: str) -> None:
        info = self._info(name.rstrip("/") + "/", stat.S_IFDIR | DIR_MODE)
        info.external_attr |= 0x10  # MS-DOS directory flag
        self._zip.writestr(info, b"")

    def add_stream(self, name: str, stream: BinaryIO, size: int, mode: int) -> None:
        info = self._info(name, stat.S_IFREG | mode)
        info.compress_type = zipfile.ZIP_DEFLATED
        with self._zip.open(info, "w", force_zip64=size > zipfile.ZIP64_LIMIT) as dst:
            for chunk in iter(lambda: stream.read(8192), b""):
                dst.write(chunk)

    def close(self) -> None:
        self._zip.close()


class ArchiveBuilder:
    """
    Writes package archives.

    Entries are emitted in a fixed order: base and library directories,
    launch scripts (executable), libraries, then the configuration file.
    """

    def build(
        self,
        variant: PackageVariant,
        target: Path,
        libraries: Iterable[DependencyLibrary],
        scripts: Iterable[NamedResource],
        rendered_config: str | None = None,
        for_windows: bool = False,
    ) -> Path:
        """
        Build an archive at the target path.

        Args:
            variant: Variant whose layout is used
            target: Final archive path
            libraries: Libraries copied under the library directory
            scripts: Launch scripts copied under the base directory
            rendered_config: Configuration text to embed, or None to skip it
            for_windows: Write a zip instead of a tar

        Returns:
            The target path

        Raises:
            ArchiveWriteError: If writing the archive fails
            ResourceResolutionError: If a library cannot be opened
        """
        target_dir = target.parent
        try:
            if not target_dir.is_dir():
                target_dir.mkdir(parents=True, exist_ok=True)
                logger.info(f"{target_dir} is created")
        except OSError as e:
            raise ArchiveWriteError(
                f"Cannot create {target_dir}: {e}", target_path=str(target)
            ) from e

        temp_path = target_dir / f".{target.name}.tmp"
        try:
            self._write(
                variant, temp_path, libraries, scripts, rendered_config, for_windows
            )
            os.replace(temp_path, target)
        except PackagerError:
            _discard(temp_path)
            raise
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            _discard(temp_path)
            raise ArchiveWriteError(
                f"Error while generating {target.name}: {e}",
                target_path=str(target),
            ) from e

        logger.info(f"{target.name} is created")
        return target

    def _write(
        self,
        variant: PackageVariant,
        path: Path,
        libraries: Iterable[DependencyLibrary],
        scripts: Iterable[NamedResource],
        rendered_config: str | None,
        for_windows: bool,
    ) -> None:
        writer_cls = _ZipWriter if for_windows else _TarWriter
        writer = writer_cls(path, time.time())
        try:
            writer.add_dir(variant.base_path)
            writer.add_dir(variant.lib_path)

            for script in scripts:
                writer.add_bytes(variant.base_path + script.filename, script.data, EXEC_MODE)

            for library in libraries:
                self._add_library(writer, variant.lib_path, library)

            if rendered_config is not None:
                writer.add_bytes(
                    variant.base_path + CONFIG_FILE_NAME,
                    rendered_config.encode("utf-8"),
                    DEFAULT_FILE_MODE,
                )
        finally:
            writer.close()

    @staticmethod
    def _add_library(
        writer: _ArchiveWriter, lib_path: str, library: DependencyLibrary
    ) -> None:
        try:
            stream = open(library.path, "rb")
        except OSError as e:
            raise ResourceResolutionError(
                f"Cannot open classpath entry {library.path}: {e}",
                resource=str(library.path),
            ) from e
        with stream:
            size = os.fstat(stream.fileno()).st_size
            writer.add_stream(lib_path + library.filename, stream, size, DEFAULT_FILE_MODE)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Cannot remove partial archive {path}: {e}")
