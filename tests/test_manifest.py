"""Unit tests for manifest loading and registration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from template_deps.graph.manager import create_dependency_manager
from template_deps.manifest import ManifestConfig

MANIFEST_YAML = """
templates:
  login/desktop/default:
    - targetId: form/desktop/single-column
      reason: embeds the login form
    - theme/base
    - targetId: analytics/tracker
      optional: true
  form/desktop/single-column:
    - theme/base
  theme/base: []
"""


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    """Fixture providing a small manifest file."""
    path = tmp_path / "templates.yaml"
    path.write_text(MANIFEST_YAML)
    return path


class TestManifestLoading:
    """Test parsing manifests."""

    def test_from_file(self, manifest_file: Path):
        """Test that entries, aliases and bare ids are parsed."""
        manifest = ManifestConfig.from_file(manifest_file)

        login = manifest.templates["login/desktop/default"]
        assert list(manifest.templates) == ["login/desktop/default", "form/desktop/single-column", "theme/base"]
        assert login[0].target_id == "form/desktop/single-column"
        assert login[0].reason == "embeds the login form"
        assert login[1].target_id == "theme/base"
        assert login[2].optional is True

    def test_null_dependencies(self, tmp_path: Path):
        """Test that an entry without a list means no dependencies."""
        path = tmp_path / "templates.yaml"
        path.write_text("templates:\n  lonely:\n")

        assert ManifestConfig.from_file(path).templates == {"lonely": []}

    def test_empty_file(self, tmp_path: Path):
        """Test that an empty manifest is rejected."""
        path = tmp_path / "templates.yaml"
        path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            ManifestConfig.from_file(path)

    def test_directory_path(self, tmp_path: Path):
        """Test that a directory is not read as a manifest."""
        with pytest.raises(ValueError, match="Not a regular file"):
            ManifestConfig.from_file(tmp_path)

    def test_malformed_entry(self, tmp_path: Path):
        """Test that an entry without a target is rejected."""
        path = tmp_path / "templates.yaml"
        path.write_text("templates:\n  a:\n    - reason: nothing\n")

        with pytest.raises(ValidationError):
            ManifestConfig.from_file(path)


class TestManifestRegistration:
    """Test feeding a manifest into a manager."""

    def test_register_into(self, manifest_file: Path):
        """Test that every template is registered and the graph validates."""
        manager = create_dependency_manager()
        ManifestConfig.from_file(manifest_file).register_into(manager)

        report = manager.validate()

        assert report.valid
        assert report.warnings == [
            "Optional dependency not registered: login/desktop/default optionally requires analytics/tracker",
        ]
        assert manager.get_load_order(["login/desktop/default"]) == [
            "theme/base",
            "form/desktop/single-column",
            "login/desktop/default",
        ]
