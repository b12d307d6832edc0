"""Dependency manager facade and its factories.

DependencyManager wires every graph component to one GraphStore. Hosts build
one with ``create_dependency_manager()`` and pass it to their discovery and
loading code. ``shared_dependency_manager()`` is an explicit opt-in for hosts
that want a process-wide instance.
"""

import threading
from collections.abc import Iterable
from typing import Any

import structlog

from template_deps.config import EngineConfig
from template_deps.graph.cycles import CycleDetector
from template_deps.graph.levels import LevelCalculator
from template_deps.graph.models import CircularChain, DependencyDeclaration
from template_deps.graph.sorter import TopologicalSorter
from template_deps.graph.store import DeclarationInput, GraphStore
from template_deps.graph.tree import TreeBuilder
from template_deps.graph.validator import GraphStats, ValidationReport, Validator

logger = structlog.get_logger(__name__)


class DependencyManager:
    """Template dependency resolution engine.

    Thread-safety:
        This class is NOT thread-safe. Reads may run concurrently with each
        other, but ``register()`` and ``clear()`` must be serialized against
        every other call (e.g. with a threading.Lock held by the host).

    Example:
        >>> manager = create_dependency_manager()
        >>> manager.register("a", [{"targetId": "b"}])
        >>> manager.register("b", [{"targetId": "c"}])
        >>> manager.register("c", [])
        >>> manager.get_load_order(["a", "b", "c"])
        ['c', 'b', 'a']
        >>> manager.validate().valid
        True
    """

    def __init__(self, config: EngineConfig | None = None):
        """Initialize an empty manager.

        Args:
            config: Engine settings; defaults are used when omitted
        """
        self.config = config or EngineConfig()
        self.store = GraphStore(LevelCalculator())
        self.cycle_detector = CycleDetector(self.store)
        self.sorter = TopologicalSorter(self.store)
        self.tree_builder = TreeBuilder(self.store, max_depth=self.config.tree_max_depth)
        self.validator = Validator(
            self.store,
            cycle_detector=self.cycle_detector,
            warn_on_optional_missing=self.config.warn_on_optional_missing,
        )

        logger.debug("dependency_manager_initialized", tree_max_depth=self.config.tree_max_depth)

    def register(self, template_id: str, dependencies: Iterable[DeclarationInput]) -> None:
        self.store.register(template_id, dependencies)

    def get_dependencies(self, template_id: str, recursive: bool = False) -> list[DependencyDeclaration]:
        return self.store.get_dependencies(template_id, recursive=recursive)

    def get_dependents(self, template_id: str, recursive: bool = False) -> list[str]:
        return self.store.get_dependents(template_id, recursive=recursive)

    def detect_circular(self, template_id: str) -> list[CircularChain]:
        return self.cycle_detector.detect_circular(template_id)

    def detect_all_circular(self) -> list[CircularChain]:
        return self.cycle_detector.detect_all_circular()

    def get_load_order(self, template_ids: Iterable[str]) -> list[str]:
        return self.sorter.get_load_order(template_ids)

    def get_dependency_tree(self, template_id: str, max_depth: int | None = None) -> dict[str, Any] | None:
        return self.tree_builder.get_dependency_tree(template_id, max_depth=max_depth)

    def get_dependency_chains(self, template_id: str) -> list[list[str]]:
        return self.tree_builder.get_dependency_chains(template_id)

    def validate(self) -> ValidationReport:
        return self.validator.validate()

    def get_stats(self) -> GraphStats:
        return self.validator.get_stats()

    def generate_visualization(self, output_format: str = "mermaid") -> str:
        return self.validator.generate_visualization(output_format)

    def clear(self) -> None:
        """Drop every template. The only way to remove nodes."""
        self.store.clear()
        logger.info("dependency_manager_cleared")


def create_dependency_manager(config: EngineConfig | None = None) -> DependencyManager:
    """Create an independent manager owned by the caller."""
    return DependencyManager(config)


class _SharedManager:
    """Holder for the opt-in process-wide manager."""

    _instance: DependencyManager | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def get(cls, config: EngineConfig | None = None) -> DependencyManager:
        # First check (without lock) - fast path for already initialized instance
        if cls._instance is not None:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None:
                cls._instance = DependencyManager(config)
                logger.info("shared_dependency_manager_created")
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        with cls._init_lock:
            cls._instance = None


def shared_dependency_manager(config: EngineConfig | None = None) -> DependencyManager:
    """Return the process-wide manager, creating it on first use.

    Only for hosts that explicitly want shared state. ``config`` is applied
    on the first call only.
    """
    return _SharedManager.get(config)


def reset_shared_dependency_manager() -> None:
    """Forget the process-wide manager."""
    _SharedManager.reset()
