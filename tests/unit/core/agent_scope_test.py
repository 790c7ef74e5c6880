"""Unit tests for the agent scope module."""

import threading

from durable_agents.core.agent_scope import AgentScope


class TestAgentScope:
    """Test AgentScope state access."""

    def test_of_merges_state_and_values(self):
        """Test creating a pre-populated scope."""
        scope = AgentScope.of({"a": 1}, b=2)
        assert scope.snapshot() == {"a": 1, "b": 2}

    def test_read_default(self):
        """Test reading a missing key."""
        scope = AgentScope()
        assert scope.read_state("missing") is None
        assert scope.read_state("missing", "fallback") == "fallback"
        assert scope.has_state("missing") is False

    def test_write_and_read(self):
        """Test writing then reading a key."""
        scope = AgentScope()
        scope.write_state("summary", "short")
        assert scope.has_state("summary")
        assert scope.read_state("summary") == "short"

    def test_snapshot_is_a_copy(self):
        """Test that mutating a snapshot does not touch the scope."""
        scope = AgentScope.of(a=1)
        snapshot = scope.snapshot()
        snapshot["a"] = 2
        assert scope.read_state("a") == 1

    def test_concurrent_writes(self):
        """Test that writes from many threads are all kept."""
        scope = AgentScope()

        def write(index):
            scope.write_state(f"key-{index}", index)

        threads = [threading.Thread(target=write, args=(i,)) for i in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(scope.snapshot()) == 50
