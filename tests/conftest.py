"""Pytest configuration and fixtures."""

import tarfile
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from ngrinder_packager.core.config import PackagerConfig
from ngrinder_packager.packages.resources import FileSystemResourceLoader
from ngrinder_packager.packages.service import PackageService

AGENT_TEMPLATE = """agent.controller_host={{controllerIP}}
agent.controller_port={{controllerPort}}
agent.region={{controllerRegion}}
"""

MONITOR_TEMPLATE = "monitor.binding_port={{monitorPort}}\n"

CLASSPATH_JARS = [
    "ngrinder-core-3.5.0-SNAPSHOT.jar",
    "ngrinder-runtime-3.5.0-SNAPSHOT.jar",
    "ngrinder-groovy-3.5.0-SNAPSHOT.jar",
    "commons-io-2.4.jar",
    "foo-bar-1.2.3-SNAPSHOT.jar",
    "grinder-3.9.1.jar",
    "unrelated-1.0.jar",
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def resources_dir(temp_dir: Path) -> Path:
    """Provide a resource tree with manifests, templates and scripts."""
    root = temp_dir / "resources"
    (root / "templates").mkdir(parents=True)
    (root / "scripts" / "agent").mkdir(parents=True)
    (root / "scripts" / "monitor").mkdir(parents=True)

    (root / "dependencies.txt").write_text("commons-io; foo-bar-SNAPSHOT ;grinder\n")
    (root / "monitor-dependencies.txt").write_text("commons-io")
    (root / "templates" / "agent_agent.conf").write_text(AGENT_TEMPLATE)
    (root / "templates" / "agent_monitor.conf").write_text(MONITOR_TEMPLATE)
    (root / "scripts" / "agent" / "run_agent.sh").write_text("#!/bin/sh\necho agent\n")
    (root / "scripts" / "agent" / "stop_agent.sh").write_text("#!/bin/sh\necho stop\n")
    (root / "scripts" / "monitor" / "run_monitor.sh").write_text("#!/bin/sh\necho monitor\n")
    return root


@pytest.fixture
def resource_loader(resources_dir: Path) -> FileSystemResourceLoader:
    """Provide a loader over the test resource tree."""
    return FileSystemResourceLoader(resources_dir)


@pytest.fixture
def classpath(temp_dir: Path) -> list[Path]:
    """Provide a classpath of fake jars plus a class directory."""
    lib_dir = temp_dir / "lib"
    lib_dir.mkdir()
    entries = []
    for name in CLASSPATH_JARS:
        path = lib_dir / name
        path.write_bytes(f"jar:{name}".encode())
        entries.append(path)
    classes = temp_dir / "classes"
    classes.mkdir()
    entries.append(classes)
    return entries


@pytest.fixture
def config(temp_dir: Path, resources_dir: Path, classpath: list[Path]) -> PackagerConfig:
    """Provide a configuration rooted in the temporary directory."""
    return PackagerConfig(
        home=temp_dir / "home",
        version="3.5.0",
        controller_port=16001,
        classpath=tuple(classpath),
        resources_dir=resources_dir,
    )


@pytest.fixture
def service(config: PackagerConfig) -> PackageService:
    """Provide a PackageService over the test configuration."""
    return PackageService(config)


def tar_members(path: Path) -> dict[str, tarfile.TarInfo]:
    """Return archive members keyed by name, in archive order."""
    with tarfile.open(path) as tar:
        return {member.name: member for member in tar.getmembers()}


def tar_read(path: Path, name: str) -> str:
    """Return the text of one archive member."""
    with tarfile.open(path) as tar:
        return tar.extractfile(name).read().decode("utf-8")
