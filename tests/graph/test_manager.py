"""Tests for the DependencyManager facade and its factories.

The scenario tests walk the end-to-end flows a discovery layer and a loader
go through: register everything, then ask for an order, a tree or a verdict.
"""

import pytest

from template_deps.config import EngineConfig
from template_deps.graph.manager import (
    DependencyManager,
    create_dependency_manager,
    reset_shared_dependency_manager,
    shared_dependency_manager,
)


# Deeper than the default interpreter recursion limit
DEEP_CHAIN_LENGTH = 1500

@pytest.fixture
def manager() -> DependencyManager:
    """Fixture providing a fresh manager."""
    return create_dependency_manager()


class TestScenarios:
    """End-to-end registration and query flows."""

    def test_load_order_for_chain(self, manager):
        """Test that a -> b -> c loads c first."""
        manager.register("a", [{"targetId": "b"}])
        manager.register("b", [{"targetId": "c"}])
        manager.register("c", [])

        assert manager.get_load_order(["a", "b", "c"]) == ["c", "b", "a"]

    def test_two_node_cycle_detected(self, manager):
        """Test that a <-> b is reported."""
        manager.register("a", [{"targetId": "b"}])
        manager.register("b", [{"targetId": "a"}])

        assert len(manager.detect_circular("a")) >= 1
        assert not manager.validate().valid

    def test_missing_dependency_fails_validation(self, manager):
        """Test that x -> missing is invalid and the message names both ids."""
        manager.register("x", [{"targetId": "missing"}])

        report = manager.validate()

        assert report.valid is False
        assert any("x" in error and "missing" in error for error in report.errors)

    def test_tree_depth_one(self, manager):
        """Test that depth 1 truncates the second-level node."""
        manager.register("a", [{"targetId": "b"}])
        manager.register("b", [{"targetId": "c"}])
        manager.register("c", [])

        tree = manager.get_dependency_tree("a", 1)

        assert tree["dependencies"][0]["tree"]["dependencies"][0]["tree"] == {"id": "c", "truncated": True}

    def test_optional_edge_breaks_cycle(self, manager):
        """Test that an optional back edge is not a cycle."""
        manager.register("a", [{"targetId": "b", "optional": True}])
        manager.register("b", [{"targetId": "a"}])

        assert manager.detect_circular("a") == []
        assert manager.detect_all_circular() == []
        assert manager.validate().valid

    def test_level_law(self, manager):
        """Test that a node above a level-2 dependency is level 3."""
        manager.register("top", ["two"])
        manager.register("two", ["one"])
        manager.register("one", ["zero"])
        manager.register("zero", [])

        tree = manager.get_dependency_tree("top")

        assert tree["level"] == 3
        assert manager.get_stats().max_level == 3

    def test_clear_resets_everything(self, manager):
        """Test that clear() empties every query."""
        manager.register("a", ["b"])
        manager.register("b", ["a"])

        manager.clear()

        assert manager.get_dependencies("a") == []
        assert manager.get_dependents("b") == []
        assert manager.detect_all_circular() == []
        assert manager.get_dependency_tree("a") is None
        assert manager.get_stats().total_templates == 0
        assert manager.validate().valid

    def test_register_then_query(self, manager):
        """Test that dependencies and chains come back through the facade."""
        manager.register("a", ["b", "c"])
        manager.register("b", [])

        assert [dep.target_id for dep in manager.get_dependencies("a")] == ["b", "c"]
        assert manager.get_dependents("b") == ["a"]
        assert manager.get_dependency_chains("a") == [["a", "b"], ["a", "c"]]
        assert "graph TD" in manager.generate_visualization()


class TestConfiguration:
    """Test configuration wiring."""

    def test_tree_depth_from_config(self):
        """Test that the configured depth is the tree default."""
        manager = DependencyManager(EngineConfig(tree_max_depth=0))
        manager.register("a", ["b"])

        tree = manager.get_dependency_tree("a")

        assert tree["dependencies"][0]["tree"] == {"id": "b", "truncated": True}

    def test_optional_warning_from_config(self):
        """Test that optional warnings follow the config flag."""
        manager = DependencyManager(EngineConfig(warn_on_optional_missing=False))
        manager.register("a", [{"targetId": "b", "optional": True}])

        assert manager.validate().warnings == []


class TestFactories:
    """Test instance creation."""

    def setup_method(self):
        """Reset shared state before each test."""
        reset_shared_dependency_manager()

    def teardown_method(self):
        """Reset shared state after each test."""
        reset_shared_dependency_manager()

    def test_create_returns_independent_instances(self):
        """Test that created managers do not share state."""
        first = create_dependency_manager()
        second = create_dependency_manager()
        first.register("a", [])

        assert first is not second
        assert second.get_stats().total_templates == 0

    def test_shared_manager_is_singleton(self):
        """Test that the opt-in shared manager is reused."""
        assert shared_dependency_manager() is shared_dependency_manager()

    def test_shared_manager_reset(self):
        """Test that reset produces a new shared instance."""
        first = shared_dependency_manager()
        reset_shared_dependency_manager()

        assert shared_dependency_manager() is not first


class TestDeepGraphs:
    """Long dependency chains must not exhaust the interpreter stack."""

    @pytest.fixture
    def deep_manager(self) -> DependencyManager:
        """Fixture providing n0 -> n1 -> ... -> n{DEEP_CHAIN_LENGTH}."""
        manager = create_dependency_manager()
        for index in range(DEEP_CHAIN_LENGTH):
            manager.register(f"n{index}", [f"n{index + 1}"])
        manager.register(f"n{DEEP_CHAIN_LENGTH}", [])
        return manager

    def test_load_order(self, deep_manager):
        """Test that the whole chain is ordered leaf first."""
        order = deep_manager.get_load_order(["n0"])

        assert order == [f"n{index}" for index in range(DEEP_CHAIN_LENGTH, -1, -1)]

    def test_levels(self, deep_manager):
        """Test that the head of the chain sits at the chain length."""
        assert deep_manager.store.get_node("n0").level == DEEP_CHAIN_LENGTH

    def test_validate_and_cycles(self, deep_manager):
        """Test that validation and cycle scans finish on an acyclic chain."""
        assert deep_manager.validate().valid
        assert deep_manager.detect_circular("n0") == []
        assert deep_manager.detect_all_circular() == []

    def test_cycle_closing_a_long_chain(self, deep_manager):
        """Test that a cycle spanning the whole chain is reported once."""
        deep_manager.register(f"n{DEEP_CHAIN_LENGTH}", ["n0"])

        chains = deep_manager.detect_circular("n0")

        assert len(chains) == 1
        assert len(chains[0].chain) == DEEP_CHAIN_LENGTH + 2

    def test_recursive_queries(self, deep_manager):
        """Test transitive dependencies and dependents across the chain."""
        deps = deep_manager.get_dependencies("n0", recursive=True)
        dependents = deep_manager.get_dependents(f"n{DEEP_CHAIN_LENGTH}", recursive=True)

        assert [dep.target_id for dep in deps] == [f"n{index}" for index in range(1, DEEP_CHAIN_LENGTH + 1)]
        assert dependents == [f"n{index}" for index in range(DEEP_CHAIN_LENGTH - 1, -1, -1)]

    def test_tree_and_chains(self, deep_manager):
        """Test that an unbounded tree and the single chain reach the leaf."""
        tree = deep_manager.get_dependency_tree("n0", max_depth=DEEP_CHAIN_LENGTH * 2)
        depth = 0
        while tree["dependencies"]:
            tree = tree["dependencies"][0]["tree"]
            depth += 1

        assert depth == DEEP_CHAIN_LENGTH
        assert tree == {"id": f"n{DEEP_CHAIN_LENGTH}", "level": 0, "dependencies": []}
        assert deep_manager.get_dependency_chains("n0") == [[f"n{index}" for index in range(DEEP_CHAIN_LENGTH + 1)]]
