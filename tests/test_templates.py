"""Tests for configuration rendering."""

from pathlib import Path

import pytest

from ngrinder_packager.core.exceptions import TemplateRenderError
from ngrinder_packager.packages.resources import FileSystemResourceLoader
from ngrinder_packager.packages.templates import ConfigRenderer


@pytest.fixture
def renderer(resource_loader: FileSystemResourceLoader) -> ConfigRenderer:
    return ConfigRenderer(resource_loader)


class TestConfigRenderer:
    """Tests for ConfigRenderer."""

    def test_render_agent_template(self, renderer: ConfigRenderer) -> None:
        content = renderer.render(
            "agent_agent.conf",
            {
                "controllerIP": "10.0.0.1",
                "controllerPort": "16001",
                "controllerRegion": "NONE",
            },
        )
        assert "agent.controller_host=10.0.0.1" in content
        assert "agent.controller_port=16001" in content
        assert "agent.region=NONE" in content
        assert "{{" not in content

    def test_extra_params_ignored(self, renderer: ConfigRenderer) -> None:
        content = renderer.render("agent_monitor.conf", {"monitorPort": "13243", "unused": "x"})
        assert content == "monitor.binding_port=13243\n"

    def test_whitespace_inside_placeholder(self, resources_dir: Path) -> None:
        (resources_dir / "templates" / "spaced.conf").write_text("port={{ monitorPort }}")
        renderer = ConfigRenderer(FileSystemResourceLoader(resources_dir))
        assert renderer.render("spaced.conf", {"monitorPort": "1"}) == "port=1"

    def test_missing_variable_raises(self, renderer: ConfigRenderer) -> None:
        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render("agent_agent.conf", {"controllerIP": "10.0.0.1"})
        assert exc_info.value.missing_vars == ["controllerPort", "controllerRegion"]
        assert exc_info.value.template_name == "agent_agent.conf"

    def test_missing_template_raises(self, renderer: ConfigRenderer) -> None:
        with pytest.raises(TemplateRenderError):
            renderer.render("nope.conf", {})

    def test_non_string_value_raises(self, renderer: ConfigRenderer) -> None:
        """Only flat string values are accepted."""
        with pytest.raises(TemplateRenderError):
            renderer.render("agent_monitor.conf", {"monitorPort": 13243})

    def test_bundled_templates_render(self) -> None:
        """The templates shipped with the package render with their parameters."""
        from ngrinder_packager.core.config import DEFAULT_RESOURCES_DIR

        renderer = ConfigRenderer(FileSystemResourceLoader(DEFAULT_RESOURCES_DIR))
        content = renderer.render("agent_monitor.conf", {"monitorPort": "13243"})
        assert "13243" in content
