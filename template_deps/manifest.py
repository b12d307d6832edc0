"""Template dependency manifests.

A manifest is the declarative form of what a discovery layer would feed the
engine: one entry per template with its declared requirements.

Example manifest::

    templates:
      login/desktop/default:
        - targetId: form/desktop/single-column
          reason: embeds the login form
        - theme/base
      form/desktop/single-column: []
"""

from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, field_validator

from template_deps.config import read_yaml_file
from template_deps.graph.models import DependencyDeclaration

if TYPE_CHECKING:
    from template_deps.graph.manager import DependencyManager

logger = structlog.get_logger(__name__)


class ManifestConfig(BaseModel):
    """Declared dependencies for a set of templates.

    Attributes:
        templates: Template id -> declarations, in registration order
    """

    templates: dict[str, list[DependencyDeclaration]] = Field(default_factory=dict)

    @field_validator("templates", mode="before")
    @classmethod
    def normalize_entries(cls, v: object) -> object:
        """Accept bare string ids and null dependency lists."""
        if not isinstance(v, dict):
            return v
        normalized = {}
        for template_id, deps in v.items():
            if deps is None:
                deps = []
            if isinstance(deps, list):
                deps = [{"target_id": dep} if isinstance(dep, str) else dep for dep in deps]
            normalized[template_id] = deps
        return normalized

    @classmethod
    def from_file(cls, path: str | Path) -> "ManifestConfig":
        """Load a manifest from a YAML or JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the path is not a regular file, or the file is empty or not valid YAML
            pydantic.ValidationError: If an entry is malformed
        """
        data = read_yaml_file(path)
        if not data:
            msg = f"Manifest file is empty: {path}"
            raise ValueError(msg)
        if not isinstance(data, dict):
            msg = f"Manifest must contain a mapping: {path}"
            raise ValueError(msg)

        manifest = cls(**data)
        logger.info("manifest_loaded", path=str(path), template_count=len(manifest.templates))
        return manifest

    def register_into(self, manager: "DependencyManager") -> None:
        """Register every template of the manifest, in file order."""
        for template_id, dependencies in self.templates.items():
            manager.register(template_id, dependencies)
