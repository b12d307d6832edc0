"""Level computation for the dependency graph.

A node's level is the length of its longest chain of required dependencies:
templates with no required dependencies sit at level 0, and every other node
sits one above its deepest required dependency.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from template_deps.graph.store import GraphStore

logger = structlog.get_logger(__name__)


class LevelCalculator:
    """Full re-leveling of a GraphStore over its strongly connected components.

    Components are found with an iterative Tarjan pass over required edges.
    Tarjan completes a component only after every component it depends on,
    so levels are assigned in a single pass, dependencies first. Inside a
    cycle, each member is levelled from its dependencies outside the cycle
    only; nodes downstream of the cycle continue from there. Cycle islands
    stay at 0.
    """

    def recalculate(self, store: "GraphStore") -> None:
        """Reset every level and recompute it from the current edges."""
        index: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        stack: list[str] = []
        on_stack: set[str] = set()
        cyclic_components = 0

        def required_targets(template_id: str) -> Iterator[str]:
            node = store.get_node(template_id)
            return iter([dep.target_id for dep in node.required_dependencies() if store.has_node(dep.target_id)])

        def open_node(template_id: str) -> tuple[str, Iterator[str]]:
            index[template_id] = lowlink[template_id] = len(index)
            stack.append(template_id)
            on_stack.add(template_id)
            return template_id, required_targets(template_id)

        for root in store.ids():
            if root in index:
                continue

            work = [open_node(root)]
            while work:
                current, targets = work[-1]
                descended = False
                for target in targets:
                    if target not in index:
                        work.append(open_node(target))
                        descended = True
                        break
                    if target in on_stack:
                        lowlink[current] = min(lowlink[current], index[target])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[current])

                if lowlink[current] == index[current]:
                    members = set()
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        members.add(member)
                        if member == current:
                            break
                    if len(members) > 1 or current in list(required_targets(current)):
                        cyclic_components += 1
                    self._assign_levels(store, members)

        if cyclic_components:
            logger.debug("levels_computed_with_cycles", cyclic_components=cyclic_components)

    @staticmethod
    def _assign_levels(store: "GraphStore", members: set[str]) -> None:
        for member in members:
            node = store.get_node(member)
            level = 0
            for dep in node.required_dependencies():
                if dep.target_id in members:
                    continue
                target = store.get_node(dep.target_id)
                if target is not None:
                    level = max(level, target.level + 1)
            node.level = level
