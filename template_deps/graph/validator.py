"""Graph validation with cycle and missing-reference reporting.

This module checks a dependency graph for completeness: it reports every
circular chain and every required dependency on a template that was never
registered. It also exposes summary statistics and text diagrams of the graph.
Nothing here raises for an invalid graph; problems are returned as data.
"""

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from template_deps.graph.cycles import CycleDetector
from template_deps.graph.models import CircularChain

if TYPE_CHECKING:
    from template_deps.graph.store import GraphStore

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    """Report containing validation results for a dependency graph.

    Attributes:
        valid: Whether the graph passed all validation checks
        errors: List of error messages (cycles and missing required templates)
        warnings: List of warning messages (never affect ``valid``)
        cycles: Detected circular chains
        missing_refs: Ids required by some template but never registered
    """

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[CircularChain] = field(default_factory=list)
    missing_refs: set[str] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = []
        lines.append(f"Validation Status: {'PASS' if self.valid else 'FAIL'}")
        lines.append(f"Errors: {len(self.errors)}")
        lines.append(f"Warnings: {len(self.warnings)}")
        lines.append(f"Cycles: {len(self.cycles)}")
        lines.append(f"Missing References: {len(self.missing_refs)}")

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            lines.extend(f"  {i}. {cycle}" for i, cycle in enumerate(self.cycles, 1))

        if self.missing_refs:
            lines.append(f"\nMissing References: {', '.join(sorted(self.missing_refs))}")

        return "\n".join(lines)


@dataclass
class GraphStats:
    """Counts describing the current graph. Informational only."""

    total_templates: int = 0
    with_dependencies: int = 0
    with_dependents: int = 0
    isolated_templates: int = 0
    total_dependencies: int = 0
    avg_dependencies: float = 0.0
    max_dependencies: int = 0
    max_level: int = 0
    circular_dependencies: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Validator:
    """Validator for a GraphStore with detailed error reporting.

    This class provides:
    - Circular dependency reporting with complete chains
    - Missing reference validation
    - Summary statistics
    - Mermaid and Graphviz diagrams
    """

    def __init__(
        self,
        store: "GraphStore",
        cycle_detector: CycleDetector | None = None,
        warn_on_optional_missing: bool = True,
    ):
        """Initialize the validator.

        Args:
            store: Graph to validate
            cycle_detector: Detector sharing the same store
            warn_on_optional_missing: Report optional references to unregistered ids as warnings
        """
        self.store = store
        self.cycle_detector = cycle_detector or CycleDetector(store)
        self.warn_on_optional_missing = warn_on_optional_missing

    def validate(self) -> ValidationReport:
        """Validate the graph and generate a detailed report.

        Returns:
            ValidationReport containing all validation results
        """
        logger.info("starting_graph_validation", template_count=len(self.store))

        report = ValidationReport()

        cycles = self.cycle_detector.detect_all_circular()
        report.cycles = cycles
        for cycle in cycles:
            report.add_error(f"Circular dependency detected: {cycle}")

        for node in self.store.nodes():
            for dep in node.dependencies:
                if self.store.is_registered(dep.target_id):
                    continue
                if not dep.optional:
                    report.missing_refs.add(dep.target_id)
                    report.add_error(f"Missing dependency: {node.id} requires {dep.target_id}")
                elif self.warn_on_optional_missing:
                    report.add_warning(
                        f"Optional dependency not registered: {node.id} optionally requires {dep.target_id}",
                    )

        logger.info(
            "graph_validation_complete",
            valid=report.valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def get_stats(self) -> GraphStats:
        """Compute summary statistics for the graph."""
        nodes = self.store.nodes()
        stats = GraphStats(total_templates=len(nodes))

        for node in nodes:
            dependency_count = len(node.dependencies)
            if dependency_count:
                stats.with_dependencies += 1
            if node.dependents:
                stats.with_dependents += 1
            if not dependency_count and not node.dependents:
                stats.isolated_templates += 1
            stats.total_dependencies += dependency_count
            stats.max_dependencies = max(stats.max_dependencies, dependency_count)
            stats.max_level = max(stats.max_level, node.level)

        if nodes:
            stats.avg_dependencies = stats.total_dependencies / len(nodes)
            stats.circular_dependencies = len(self.cycle_detector.detect_all_circular())

        logger.debug("graph_stats_retrieved", **stats.to_dict())

        return stats

    def generate_visualization(self, output_format: str = "mermaid") -> str:
        """Generate a visual representation of the dependency graph.

        Arrows point from a dependency to the template that requires it.
        Optional dependencies are drawn dashed.

        Args:
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        if output_format == "mermaid":
            return self._generate_mermaid()
        if output_format == "dot":
            return self._generate_graphviz()
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _edges(self) -> list[tuple[str, str, bool]]:
        edges = set()
        for node in self.store.nodes():
            for dep in node.dependencies:
                edges.add((dep.target_id, node.id, dep.optional))
        return sorted(edges)

    def _generate_mermaid(self) -> str:
        lines = ["graph TD"]

        if not len(self.store):
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        # Positional node ids stay unique whatever characters the template ids use
        node_ids = {template_id: f"n{index}" for index, template_id in enumerate(sorted(self.store.ids()))}

        def escape_mermaid_label(s: str) -> str:
            return s.replace('"', "#quot;")

        for template_id, node_id in node_ids.items():
            lines.append(f'    {node_id}["{escape_mermaid_label(template_id)}"]')

        for source, target, optional in self._edges():
            arrow = "-.->" if optional else "-->"
            lines.append(f"    {node_ids[source]} {arrow} {node_ids[target]}")

        return "\n".join(lines)

    def _generate_graphviz(self) -> str:
        def escape_dot_string(s: str) -> str:
            return s.replace('"', '\\"')

        lines = ["digraph TemplateDependencies {"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box, style=rounded];")

        if not len(self.store):
            lines.append('    Empty [label="Empty Graph"];')
        else:
            lines.extend(
                f'    "{escape_dot_string(template_id)}";' for template_id in sorted(self.store.ids())
            )
            for source, target, optional in self._edges():
                style = " [style=dashed]" if optional else ""
                lines.append(
                    f'    "{escape_dot_string(source)}" -> "{escape_dot_string(target)}"{style};',
                )

        lines.append("}")
        return "\n".join(lines)
