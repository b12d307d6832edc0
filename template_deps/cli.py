"""Diagnostic command-line interface.

Loads a dependency manifest into a fresh DependencyManager and reports on it:
validation, load order, trees, statistics and diagrams. ``validate`` exits
non-zero when the graph is invalid so it can gate a build.
"""

import argparse
import json
import sys
from collections.abc import Sequence

import structlog

from template_deps.config import EngineConfig
from template_deps.graph.manager import DependencyManager, create_dependency_manager
from template_deps.log_config import bind_context, clear_context, configure_logging
from template_deps.manifest import ManifestConfig

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def build_manager(manifest_path: str, config: EngineConfig) -> DependencyManager:
    """Load a manifest and register every template it declares."""
    manifest = ManifestConfig.from_file(manifest_path)
    manager = create_dependency_manager(config)
    manifest.register_into(manager)
    return manager


def cmd_validate(manager: DependencyManager, _args: argparse.Namespace) -> int:
    report = manager.validate()
    print(report.summary())
    return EXIT_OK if report.valid else EXIT_INVALID


def cmd_order(manager: DependencyManager, args: argparse.Namespace) -> int:
    template_ids = args.ids or [node.id for node in manager.store.nodes() if node.registered]
    for template_id in manager.get_load_order(template_ids):
        print(template_id)
    return EXIT_OK


def cmd_tree(manager: DependencyManager, args: argparse.Namespace) -> int:
    tree = manager.get_dependency_tree(args.id, max_depth=args.max_depth)
    if tree is None:
        logger.error("template_not_found", template_id=args.id)
        return EXIT_INVALID
    print(json.dumps(tree, indent=2))
    return EXIT_OK


def cmd_stats(manager: DependencyManager, _args: argparse.Namespace) -> int:
    print(json.dumps(manager.get_stats().to_dict(), indent=2))
    return EXIT_OK


def cmd_graph(manager: DependencyManager, args: argparse.Namespace) -> int:
    print(manager.generate_visualization(args.format))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per report."""
    parser = argparse.ArgumentParser(
        prog="template-deps",
        description="Template dependency diagnostics - cycles, missing templates and load order",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fail a build when the manifest has cycles or missing templates
  template-deps validate templates.yaml

  # Load order for two entry templates
  template-deps order templates.yaml login/desktop/default list/desktop/table

  # Dependency tree, two levels deep
  template-deps tree templates.yaml login/desktop/default --max-depth 2
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to engine configuration YAML file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured logging level",
    )
    parser.add_argument(
        "--console-logs",
        action="store_true",
        help="Render logs for humans instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Report cycles and missing templates")
    validate.add_argument("manifest", help="Manifest YAML/JSON file")
    validate.set_defaults(handler=cmd_validate)

    order = subparsers.add_parser("order", help="Print a dependency-first load order")
    order.add_argument("manifest", help="Manifest YAML/JSON file")
    order.add_argument("ids", nargs="*", help="Template ids (default: every registered template)")
    order.set_defaults(handler=cmd_order)

    tree = subparsers.add_parser("tree", help="Print a template's dependency tree as JSON")
    tree.add_argument("manifest", help="Manifest YAML/JSON file")
    tree.add_argument("id", help="Root template id")
    tree.add_argument("--max-depth", type=int, default=None, help="Depth limit (default: from config)")
    tree.set_defaults(handler=cmd_tree)

    stats = subparsers.add_parser("stats", help="Print graph statistics as JSON")
    stats.add_argument("manifest", help="Manifest YAML/JSON file")
    stats.set_defaults(handler=cmd_stats)

    graph = subparsers.add_parser("graph", help="Print a Mermaid or Graphviz diagram")
    graph.add_argument("manifest", help="Manifest YAML/JSON file")
    graph.add_argument("--format", choices=["mermaid", "dot"], default="mermaid")
    graph.set_defaults(handler=cmd_graph)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return its exit code."""
    args = build_parser().parse_args(argv)

    # Route logs to stderr before the config file is read, then apply its settings
    configure_logging(level=args.log_level or "INFO", json_logs=not args.console_logs)

    try:
        config = EngineConfig.from_yaml(args.config) if args.config else EngineConfig.from_env()
        configure_logging(
            level=args.log_level or config.logging_level,
            json_logs=config.json_logs and not args.console_logs,
        )
        bind_context(command=args.command, manifest=args.manifest)

        manager = build_manager(args.manifest, config)
        return args.handler(manager, args)

    except FileNotFoundError as e:
        logger.error("file_not_found", error=str(e))
        return EXIT_USAGE

    except ValueError as e:
        logger.error("invalid_input", error=str(e))
        return EXIT_USAGE

    finally:
        clear_context()


if __name__ == "__main__":
    sys.exit(main())
