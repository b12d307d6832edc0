"""Node table for the template dependency graph.

GraphStore owns every node and is the only place the graph is mutated. All
other components (cycle detection, ordering, trees, validation) read from it.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import structlog

from template_deps.graph.levels import LevelCalculator
from template_deps.graph.models import DependencyDeclaration, DependencyInputError, GraphNode

logger = structlog.get_logger(__name__)

DeclarationInput = DependencyDeclaration | Mapping[str, Any] | str


def ensure_template_id(template_id: Any) -> str:
    """Validate a template id, failing fast on anything but a non-empty string.

    Raises:
        DependencyInputError: If the id is not a non-empty string
    """
    if not isinstance(template_id, str):
        msg = f"Template id must be a string, got {type(template_id).__name__}"
        raise DependencyInputError(msg, template_id)
    if not template_id.strip():
        msg = "Template id must not be empty"
        raise DependencyInputError(msg, template_id)
    return template_id


class GraphStore:
    """In-memory table of template id -> GraphNode.

    Nodes are created lazily: registering a template creates its node, and
    naming an id as a dependency target creates a stub node for it. ``clear()``
    is the only way to remove nodes.

    Thread-safety:
        This class is NOT thread-safe. ``register()`` re-levels the whole
        graph, so hosts must serialize mutations against all reads.

    Example:
        >>> store = GraphStore()
        >>> store.register("login", [{"targetId": "form"}])
        >>> store.get_dependents("form")
        ['login']
    """

    def __init__(self, level_calculator: LevelCalculator | None = None):
        """Initialize an empty store.

        Args:
            level_calculator: Calculator run after every mutation
        """
        self._nodes: dict[str, GraphNode] = {}
        self._level_calculator = level_calculator or LevelCalculator()

    def register(self, template_id: str, dependencies: Iterable[DeclarationInput]) -> None:
        """Replace a template's dependency list and re-level the graph.

        Args:
            template_id: Id of the template being registered
            dependencies: Declarations, mappings (``targetId``/``target_id``) or bare ids

        Raises:
            DependencyInputError: If the id or any declaration is malformed;
                the graph is left untouched in that case
        """
        ensure_template_id(template_id)
        if isinstance(dependencies, (str, Mapping)) or not isinstance(dependencies, Iterable):
            msg = f"Dependencies for {template_id!r} must be a list of declarations"
            raise DependencyInputError(msg, dependencies)
        declarations = [DependencyDeclaration.coerce(dep) for dep in dependencies]

        node = self._ensure_node(template_id)
        previous_targets = {dep.target_id for dep in node.dependencies}
        node.dependencies = declarations
        node.registered = True

        current_targets = set()
        for dep in declarations:
            current_targets.add(dep.target_id)
            target = self._ensure_node(dep.target_id)
            if template_id not in target.dependents:
                target.dependents.append(template_id)

        for stale_id in previous_targets - current_targets:
            stale = self._nodes.get(stale_id)
            if stale is not None and template_id in stale.dependents:
                stale.dependents.remove(template_id)

        self._level_calculator.recalculate(self)

        logger.debug(
            "template_registered",
            template_id=template_id,
            dependencies=[dep.target_id for dep in declarations],
            dependency_count=len(declarations),
            dropped_backlinks=sorted(previous_targets - current_targets),
        )

    def get_dependencies(self, template_id: str, recursive: bool = False) -> list[DependencyDeclaration]:
        """Return a template's declarations, optionally transitively.

        The recursive form appends one declaration per traversed edge; the
        visited set only stops a node from being expanded twice, so the same
        declaration value can appear more than once.
        """
        ensure_template_id(template_id)
        node = self._nodes.get(template_id)
        if node is None:
            return []
        if not recursive:
            return list(node.dependencies)

        collected: list[DependencyDeclaration] = []
        visited = {template_id}
        stack = [iter(node.dependencies)]
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                continue
            collected.append(dep)
            if dep.target_id in visited:
                continue
            visited.add(dep.target_id)
            target = self._nodes.get(dep.target_id)
            if target is not None:
                stack.append(iter(target.dependencies))
        return collected

    def get_dependents(self, template_id: str, recursive: bool = False) -> list[str]:
        """Return ids that depend on a template, optionally transitively."""
        ensure_template_id(template_id)
        node = self._nodes.get(template_id)
        if node is None:
            return []
        if not recursive:
            return list(node.dependents)

        collected: list[str] = []
        visited = {template_id}
        stack = [iter(list(node.dependents))]
        while stack:
            dependent_id = next(stack[-1], None)
            if dependent_id is None:
                stack.pop()
                continue
            collected.append(dependent_id)
            if dependent_id in visited:
                continue
            visited.add(dependent_id)
            dependent = self._nodes.get(dependent_id)
            if dependent is not None:
                stack.append(iter(list(dependent.dependents)))
        return collected

    def clear(self) -> None:
        """Drop every node."""
        count = len(self._nodes)
        self._nodes.clear()
        logger.debug("graph_store_cleared", removed_nodes=count)

    def get_node(self, template_id: str) -> GraphNode | None:
        return self._nodes.get(template_id)

    def has_node(self, template_id: str) -> bool:
        return template_id in self._nodes

    def is_registered(self, template_id: str) -> bool:
        """Check whether ``register()`` was called for this id (stubs are not)."""
        node = self._nodes.get(template_id)
        return node is not None and node.registered

    def ids(self) -> list[str]:
        """Known ids in insertion order."""
        return list(self._nodes)

    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._nodes

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(list(self._nodes.values()))

    def _ensure_node(self, template_id: str) -> GraphNode:
        node = self._nodes.get(template_id)
        if node is None:
            node = GraphNode(id=template_id)
            self._nodes[template_id] = node
        return node
