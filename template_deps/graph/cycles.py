"""Circular dependency detection using depth-first search.

Only required edges are followed: an optional dependency can never close a
cycle. Cycles are reported as CircularChain values, never raised.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING

import structlog

from template_deps.graph.models import CircularChain
from template_deps.graph.store import ensure_template_id

if TYPE_CHECKING:
    from template_deps.graph.store import GraphStore

logger = structlog.get_logger(__name__)


class CycleDetector:
    """DFS cycle finder over a GraphStore.

    Example:
        >>> store = GraphStore()
        >>> store.register("a", ["b"])
        >>> store.register("b", ["a"])
        >>> [str(c) for c in CycleDetector(store).detect_circular("a")]
        ['a -> b -> a']
    """

    def __init__(self, store: "GraphStore"):
        self.store = store

    def detect_circular(self, template_id: str) -> list[CircularChain]:
        """Return every cycle reachable from ``template_id``.

        Args:
            template_id: Root of the search

        Returns:
            Chains in discovery order; a root can close several distinct cycles
        """
        ensure_template_id(template_id)
        chains: list[CircularChain] = []
        visiting: set[str] = set()
        visited: set[str] = set()

        # stack[i] holds the pending targets of path[i]
        path: list[str] = []
        stack: list[Iterator[str]] = []

        def enter(current_id: str) -> None:
            visiting.add(current_id)
            path.append(current_id)
            node = self.store.get_node(current_id)
            targets = [dep.target_id for dep in node.required_dependencies()] if node is not None else []
            stack.append(iter(targets))

        enter(template_id)
        while stack:
            next_id = next(stack[-1], None)
            if next_id is None:
                stack.pop()
                finished = path.pop()
                visiting.discard(finished)
                visited.add(finished)
            elif next_id in visiting:
                start = path.index(next_id)
                chains.append(CircularChain(chain=[*path[start:], next_id]))
            elif next_id not in visited:
                enter(next_id)

        if chains:
            logger.debug(
                "circular_dependencies_found",
                template_id=template_id,
                count=len(chains),
                chains=[str(chain) for chain in chains],
            )
        return chains

    def detect_all_circular(self) -> list[CircularChain]:
        """Scan the whole graph for cycles.

        Every id that appears in a recorded chain is marked as checked and is
        not used as a fresh search root. Chains are deduplicated by their key.
        """
        found: list[CircularChain] = []
        seen_keys: set[str] = set()
        checked: set[str] = set()

        for template_id in self.store.ids():
            if template_id in checked:
                continue
            for chain in self.detect_circular(template_id):
                if chain.key in seen_keys:
                    continue
                seen_keys.add(chain.key)
                found.append(chain)
                checked.update(chain.chain)

        if found:
            logger.info("circular_dependency_scan_complete", cycle_count=len(found))
        return found
