"""Unit tests for the reentrancy guard and routing context."""

import threading

import pytest

from durable_agents.runtime.context import ReentrancyGuard, RoutingContext


class TestReentrancyGuard:
    """Test ReentrancyGuard scoping."""

    def test_inactive_by_default(self):
        """Test that a new guard is not active."""
        assert ReentrancyGuard().is_active() is False

    def test_active_inside_block(self):
        """Test that the guard is set only inside activate()."""
        guard = ReentrancyGuard()
        with guard.activate():
            assert guard.is_active() is True
        assert guard.is_active() is False

    def test_cleared_on_exception(self):
        """Test that the guard is cleared when the block raises."""
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard.activate():
                raise RuntimeError("boom")
        assert guard.is_active() is False

    def test_not_visible_from_other_threads(self):
        """Test that an active guard does not leak to another thread."""
        guard = ReentrancyGuard()
        seen = []
        with guard.activate():
            thread = threading.Thread(target=lambda: seen.append(guard.is_active()))
            thread.start()
            thread.join()
        assert seen == [False]

    def test_guards_are_independent(self):
        """Test that two guards do not share state."""
        first, second = ReentrancyGuard(), ReentrancyGuard()
        with first.activate():
            assert second.is_active() is False


class TestRoutingContext:
    """Test RoutingContext binding."""

    def test_set_and_clear(self):
        """Test setting and clearing the run id."""
        routing = RoutingContext()
        assert routing.get_run_id() is None
        routing.set_run_id("r1")
        assert routing.get_run_id() == "r1"
        routing.clear()
        assert routing.get_run_id() is None

    def test_bind_restores_previous(self):
        """Test that bind() restores the outer run id."""
        routing = RoutingContext()
        with routing.bind("outer"):
            with routing.bind("inner"):
                assert routing.get_run_id() == "inner"
            assert routing.get_run_id() == "outer"
        assert routing.get_run_id() is None

    def test_thread_isolation(self):
        """Test that each thread sees its own run id."""
        routing = RoutingContext()
        seen = {}

        def worker(name):
            with routing.bind(name):
                threading.Event().wait(0.01)
                seen[name] = routing.get_run_id()

        threads = [threading.Thread(target=worker, args=(f"r{i}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert seen == {f"r{i}": f"r{i}" for i in range(4)}
