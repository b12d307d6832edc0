"""Graph module for template dependency resolution.

This module tracks "template A requires template B" relationships, detects
circular dependencies, computes load order and levels, and validates that
every required template was registered.
"""

from template_deps.graph.cycles import CycleDetector
from template_deps.graph.levels import LevelCalculator
from template_deps.graph.manager import (
    DependencyManager,
    create_dependency_manager,
    reset_shared_dependency_manager,
    shared_dependency_manager,
)
from template_deps.graph.models import (
    CircularChain,
    DependencyDeclaration,
    DependencyInputError,
    GraphNode,
)
from template_deps.graph.sorter import TopologicalSorter
from template_deps.graph.store import GraphStore
from template_deps.graph.tree import TreeBuilder
from template_deps.graph.validator import GraphStats, ValidationReport, Validator

__all__ = [
    "CircularChain",
    "CycleDetector",
    "DependencyDeclaration",
    "DependencyInputError",
    "DependencyManager",
    "GraphNode",
    "GraphStats",
    "GraphStore",
    "LevelCalculator",
    "TopologicalSorter",
    "TreeBuilder",
    "ValidationReport",
    "Validator",
    "create_dependency_manager",
    "reset_shared_dependency_manager",
    "shared_dependency_manager",
]
