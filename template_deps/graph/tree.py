"""Nested views of a template's dependency subtree."""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import structlog

from template_deps.graph.models import DependencyDeclaration, DependencyInputError
from template_deps.graph.store import ensure_template_id

if TYPE_CHECKING:
    from template_deps.graph.store import GraphStore

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 10


class TreeBuilder:
    """Builds bounded-depth dependency trees and root-to-leaf chains."""

    def __init__(self, store: "GraphStore", max_depth: int = DEFAULT_MAX_DEPTH):
        """Initialize the builder.

        Args:
            store: Graph to read from
            max_depth: Depth used when a call does not pass its own
        """
        self.store = store
        self.max_depth = max_depth

    def get_dependency_tree(self, template_id: str, max_depth: int | None = None) -> dict[str, Any] | None:
        """Build ``{"id", "level", "dependencies": [...]}`` for a template.

        The root is depth 0. A node deeper than ``max_depth``, or one already
        expanded earlier in the same call, is rendered as
        ``{"id": ..., "truncated": True}``. An id with no node is rendered as
        ``{"id": ..., "not_found": True}``.

        Args:
            template_id: Root template id
            max_depth: Deepest level that is still expanded

        Returns:
            The nested tree, or None when the root has no node
        """
        ensure_template_id(template_id)
        depth_limit = self.max_depth if max_depth is None else max_depth
        if not isinstance(depth_limit, int) or depth_limit < 0:
            msg = f"max_depth must be a non-negative integer, got {depth_limit!r}"
            raise DependencyInputError(msg, depth_limit)

        if not self.store.has_node(template_id):
            return None

        visited: set[str] = set()

        def expand(current_id: str, depth: int) -> tuple[dict[str, Any], Iterator[DependencyDeclaration] | None]:
            if depth > depth_limit or current_id in visited:
                return {"id": current_id, "truncated": True}, None

            visited.add(current_id)
            node = self.store.get_node(current_id)
            if node is None:
                return {"id": current_id, "not_found": True}, None

            return {"id": current_id, "level": node.level, "dependencies": []}, iter(node.dependencies)

        tree, pending = expand(template_id, 0)
        # Each frame fills one subtree before its next sibling is expanded
        stack = [(tree, pending, 0)] if pending is not None else []
        while stack:
            result, pending, depth = stack[-1]
            dep = next(pending, None)
            if dep is None:
                stack.pop()
                continue
            child, child_pending = expand(dep.target_id, depth + 1)
            result["dependencies"].append({**dep.model_dump(), "tree": child})
            if child_pending is not None:
                stack.append((child, child_pending, depth + 1))
        return tree

    def get_dependency_chains(self, template_id: str) -> list[list[str]]:
        """List paths from a template down to templates with no required dependencies.

        Each node is entered once per call, so on diamond shapes only the
        first path through the shared node is reported.
        """
        ensure_template_id(template_id)
        if not self.store.has_node(template_id):
            return []

        chains: list[list[str]] = []
        visited: set[str] = set()

        def enter(current_id: str, path: list[str]) -> tuple[list[str], Iterator[str]] | None:
            if current_id in visited:
                return None
            visited.add(current_id)
            node = self.store.get_node(current_id)
            if node is None:
                return None

            new_path = [*path, current_id]
            required = node.required_dependencies()
            if not required:
                chains.append(new_path)
                return None
            return new_path, iter([dep.target_id for dep in required])

        root = enter(template_id, [])
        stack = [root] if root is not None else []
        while stack:
            path, targets = stack[-1]
            next_id = next(targets, None)
            if next_id is None:
                stack.pop()
                continue
            frame = enter(next_id, path)
            if frame is not None:
                stack.append(frame)

        logger.debug("dependency_chains_computed", template_id=template_id, count=len(chains))
        return chains
