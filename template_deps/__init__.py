"""Template dependency resolution engine."""

from template_deps.config import EngineConfig
from template_deps.graph import (
    CircularChain,
    DependencyDeclaration,
    DependencyInputError,
    DependencyManager,
    GraphStats,
    ValidationReport,
    create_dependency_manager,
    shared_dependency_manager,
)
from template_deps.manifest import ManifestConfig

__version__ = "0.1.0"

__all__ = [
    "CircularChain",
    "DependencyDeclaration",
    "DependencyInputError",
    "DependencyManager",
    "EngineConfig",
    "GraphStats",
    "ManifestConfig",
    "ValidationReport",
    "create_dependency_manager",
    "shared_dependency_manager",
]
