"""
Resource lookup for scripts, templates and dependency manifests.

Resources are addressed by slash-separated names relative to a root
(``templates/agent_agent.conf``, ``scripts/agent/*``). The packager only
relies on the ``ResourceLoader`` protocol so callers can supply resources
from anywhere.
"""

import fnmatch
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol


@dataclass(frozen=True)
class NamedResource:
    """A resource body together with its name."""

    name: str
    data: bytes

    @property
    def filename(self) -> str:
        """Last path component of the resource name."""
        return PurePosixPath(self.name).name


class ResourceLoader(Protocol):
    def read(self, name: str) -> bytes: ...

    def list(self, pattern: str) -> list[NamedResource]: ...


class FileSystemResourceLoader:
    """
    Resource loader backed by a directory tree.

    Patterns are glob-style and matched against names relative to the
    root; only regular files are returned, sorted by name.
    """

    def __init__(self, root: Path):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, name: str) -> Path:
        path = (self._root / PurePosixPath(name)).resolve()
        root = self._root.resolve()
        if path != root and root not in path.parents:
            raise FileNotFoundError(f"Resource outside of {root}: {name}")
        return path

    def read(self, name: str) -> bytes:
        """Return the bytes of a resource, raising FileNotFoundError if absent."""
        path = self._resolve(name)
        if not path.is_file():
            raise FileNotFoundError(f"Resource not found: {name}")
        return path.read_bytes()

    def list(self, pattern: str) -> list[NamedResource]:
        """Return every file resource whose name matches the pattern."""
        pattern = pattern.strip("/")
        parent = PurePosixPath(pattern).parent
        search_dir = self._root / parent
        if not search_dir.is_dir():
            return []

        resources = []
        for path in sorted(search_dir.iterdir()):
            if not path.is_file():
                continue
            name = (parent / path.name).as_posix()
            if fnmatch.fnmatchcase(name, pattern):
                resources.append(NamedResource(name=name, data=path.read_bytes()))
        return resources
