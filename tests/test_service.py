"""End-to-end tests for PackageService."""

import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import tar_members, tar_read
from ngrinder_packager.core.config import PackagerConfig
from ngrinder_packager.core.exceptions import (
    ManifestReadError,
    ResourceResolutionError,
    TemplateRenderError,
)
from ngrinder_packager.packages.archive import ArchiveBuilder
from ngrinder_packager.packages.models import PackageVariant
from ngrinder_packager.packages.service import PackageService


class TestAgentPackage:
    """Tests for agent package builds."""

    def test_embeds_config_with_address(self, service: PackageService) -> None:
        path = service.create_package(
            PackageVariant.AGENT, region="east", connection_ip="10.0.0.1", port=16001, owner="bob"
        )

        assert path.name == "ngrinder-agent-3.5.0-east-10.0.0.1-bob.tar"
        members = tar_members(path)
        assert "ngrinder-agent/__agent.conf" in members
        config = tar_read(path, "ngrinder-agent/__agent.conf")
        assert "agent.controller_host=10.0.0.1" in config
        assert "agent.controller_port=16001" in config
        assert "agent.region=east_owned_bob" in config

    def test_no_config_without_address(self, service: PackageService) -> None:
        path = service.create_package(PackageVariant.AGENT, region="east")
        assert "ngrinder-agent/__agent.conf" not in tar_members(path)

    def test_bundles_declared_libraries(self, service: PackageService) -> None:
        path = service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")
        libs = sorted(
            name.split("/")[-1]
            for name, member in tar_members(path).items()
            if name.startswith("ngrinder-agent/lib/") and member.isfile()
        )
        assert libs == [
            "commons-io-2.4.jar",
            "foo-bar-1.2.3-SNAPSHOT.jar",
            "ngrinder-core-3.5.0-SNAPSHOT.jar",
            "ngrinder-groovy-3.5.0-SNAPSHOT.jar",
            "ngrinder-runtime-3.5.0-SNAPSHOT.jar",
        ]

    def test_scripts_are_executable(self, service: PackageService) -> None:
        members = tar_members(service.create_agent_package())
        assert members["ngrinder-agent/run_agent.sh"].mode == 0o755
        assert members["ngrinder-agent/stop_agent.sh"].mode == 0o755

    def test_create_agent_package_defaults(self, service: PackageService) -> None:
        """The no-argument form builds the generic agent package."""
        path = service.create_agent_package()
        assert path == service.config.download_dir / "ngrinder-agent-3.5.0.tar"

    def test_create_agent_package_forces_agent(self, service: PackageService) -> None:
        path = service.create_agent_package(
            PackageVariant.MONITOR, region="east", connection_ip="10.0.0.1", port=16001
        )
        assert path.name.startswith("ngrinder-agent-3.5.0")
        config = tar_read(path, "ngrinder-agent/__agent.conf")
        assert "agent.region=east" in config

    def test_default_port_used_in_config(self, service: PackageService) -> None:
        path = service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")
        assert "agent.controller_port=16001" in tar_read(path, "ngrinder-agent/__agent.conf")


class TestMonitorPackage:
    """Tests for monitor package builds."""

    def test_always_embeds_config(self, service: PackageService) -> None:
        path = service.create_monitor_package(13243)

        assert path.name == "ngrinder-monitor-3.5.0.tar"
        assert tar_read(path, "ngrinder-monitor/__agent.conf") == "monitor.binding_port=13243\n"
        assert "ngrinder-monitor/run_monitor.sh" in tar_members(path)

    def test_only_monitor_libraries(self, service: PackageService) -> None:
        path = service.create_monitor_package(13243)
        libs = [n for n in tar_members(path) if n.startswith("ngrinder-monitor/lib/")]
        assert libs == ["ngrinder-monitor/lib/commons-io-2.4.jar"]

    def test_windows_zip(self, service: PackageService) -> None:
        path = service.create_monitor_package(13243, for_windows=True)
        assert path.suffix == ".zip"
        with zipfile.ZipFile(path) as zf:
            assert zf.read("ngrinder-monitor/__agent.conf") == b"monitor.binding_port=13243\n"


class TestCaching:
    """Tests for build deduplication."""

    def test_second_call_reuses_archive(self, service: PackageService) -> None:
        with patch.object(ArchiveBuilder, "build", wraps=service._archive_builder.build) as build:
            first = service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")
            second = service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")

        assert first == second
        assert build.call_count == 1

    def test_name_stable_across_services(self, config: PackagerConfig) -> None:
        first = PackageService(config).create_package(PackageVariant.AGENT, region="east")
        first.unlink()
        second = PackageService(config).create_package(PackageVariant.AGENT, region="east")
        assert first.name == second.name

    def test_list_artifacts(self, service: PackageService) -> None:
        service.create_agent_package()
        service.create_monitor_package(13243)
        names = [a.name for a in service.list_artifacts()]
        assert names == ["ngrinder-agent-3.5.0.tar", "ngrinder-monitor-3.5.0.tar"]


class TestFailures:
    """Failed builds raise typed errors and leave no archive behind."""

    def test_missing_manifest(self, service: PackageService, resources_dir: Path) -> None:
        (resources_dir / "dependencies.txt").unlink()
        with pytest.raises(ManifestReadError):
            service.create_agent_package()
        assert service.list_artifacts() == []

    def test_missing_scripts(self, service: PackageService, resources_dir: Path) -> None:
        (resources_dir / "scripts" / "monitor" / "run_monitor.sh").unlink()
        with pytest.raises(ResourceResolutionError):
            service.create_monitor_package(13243)
        assert service.list_artifacts() == []

    def test_missing_template(self, service: PackageService, resources_dir: Path) -> None:
        (resources_dir / "templates" / "agent_agent.conf").unlink()
        with pytest.raises(TemplateRenderError):
            service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")
        assert not (service.config.download_dir / "ngrinder-agent-3.5.0-10.0.0.1.tar").exists()

    def test_missing_library_file(self, service: PackageService, temp_dir: Path) -> None:
        # Still listed on the classpath
        (temp_dir / "lib" / "commons-io-2.4.jar").unlink()
        with pytest.raises(ResourceResolutionError):
            service.create_monitor_package(13243)
        assert service.list_artifacts() == []


class TestLifecycle:
    """Tests for startup and shutdown."""

    def test_startup_wipes_download_dir(self, service: PackageService) -> None:
        service.create_agent_package()
        try:
            result = service.startup()
            assert result.deleted_count == 1
            assert service.list_artifacts() == []
        finally:
            service.shutdown()


class TestBundledResources:
    """The resources shipped with the package build real packages."""

    def test_build_with_bundled_resources(self, temp_dir: Path) -> None:
        service = PackageService(PackagerConfig(home=temp_dir, version="3.5.0"))
        path = service.create_package(PackageVariant.AGENT, connection_ip="10.0.0.1")

        members = tar_members(path)
        assert "ngrinder-agent/run_agent.sh" in members
        assert "ngrinder-agent/run_agent.bat" in members
        assert "agent.controller_host=10.0.0.1" in tar_read(path, "ngrinder-agent/__agent.conf")
