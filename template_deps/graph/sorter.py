"""Best-effort load ordering for templates.

The order is dependency-first for the acyclic part of the graph. Re-entrant
edges are skipped instead of raised, so callers always get an order back;
callers that need strict guarantees must check for cycles first.
"""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import structlog

from template_deps.graph.models import DependencyInputError
from template_deps.graph.store import ensure_template_id

if TYPE_CHECKING:
    from template_deps.graph.store import GraphStore

logger = structlog.get_logger(__name__)


class TopologicalSorter:
    """Post-order DFS sorter over required dependency edges.

    Example:
        >>> store = GraphStore()
        >>> store.register("a", ["b"])
        >>> store.register("b", ["c"])
        >>> store.register("c", [])
        >>> TopologicalSorter(store).get_load_order(["a", "b", "c"])
        ['c', 'b', 'a']
    """

    def __init__(self, store: "GraphStore"):
        self.store = store

    def get_load_order(self, template_ids: Iterable[str]) -> list[str]:
        """Return ``template_ids`` plus their required dependencies, dependencies first.

        Ids are visited in the given order and each appears once. Ids without
        a node are still emitted so the loader can decide how to handle them.
        """
        if isinstance(template_ids, str):
            msg = "get_load_order expects a list of template ids, not a single string"
            raise DependencyInputError(msg, template_ids)
        requested = [ensure_template_id(template_id) for template_id in template_ids]
        order: list[str] = []
        visited: set[str] = set()
        visiting: set[str] = set()
        skipped_edges = 0

        def enter(current_id: str) -> tuple[str, Iterator[str]]:
            visiting.add(current_id)
            node = self.store.get_node(current_id)
            targets = [dep.target_id for dep in node.required_dependencies()] if node is not None else []
            return current_id, iter(targets)

        for template_id in requested:
            if template_id in visited:
                continue

            # Explicit stack keeps deep chains clear of the recursion limit
            stack = [enter(template_id)]
            while stack:
                current_id, targets = stack[-1]
                next_id = next(targets, None)
                if next_id is None:
                    stack.pop()
                    visiting.discard(current_id)
                    visited.add(current_id)
                    order.append(current_id)
                elif next_id in visiting:
                    skipped_edges += 1
                elif next_id not in visited:
                    stack.append(enter(next_id))

        if skipped_edges:
            logger.warning(
                "load_order_skipped_circular_edges",
                skipped_edges=skipped_edges,
                requested=requested,
            )
        logger.debug("load_order_computed", requested_count=len(requested), order=order)
        return order
