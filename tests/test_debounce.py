"""Tests for the debounce set."""

from pathlib import Path

from frouter.engine import DebounceSet


class TestDebounceSet:
    """Tests for DebounceSet."""

    def test_first_sight_is_accepted(self, clock):
        """A path never seen before passes."""
        debounce = DebounceSet(window=10, clock=clock)

        assert debounce.accept(Path("/in/a.txt")) is True
        assert Path("/in/a.txt") in debounce

    def test_repeat_within_window_is_suppressed(self, clock):
        """create + modify + metadata change collapse into one event."""
        debounce = DebounceSet(window=10, clock=clock)

        assert debounce.accept("/in/a.txt") is True
        clock.advance(0.1)
        assert debounce.accept("/in/a.txt") is False
        clock.advance(5)
        assert debounce.accept("/in/a.txt") is False

    def test_accepted_again_after_window(self, clock):
        """Once the window elapses the path is fresh again."""
        debounce = DebounceSet(window=10, clock=clock)

        debounce.accept("/in/a.txt")
        clock.advance(10.5)

        assert debounce.accept("/in/a.txt") is True

    def test_resight_refreshes_timestamp(self, clock):
        """A suppressed repeat still pushes the expiry out."""
        debounce = DebounceSet(window=10, clock=clock)

        debounce.accept("/in/a.txt")
        clock.advance(8)
        assert debounce.accept("/in/a.txt") is False
        clock.advance(8)

        # 16s after first sight but only 8s after the refresh
        assert debounce.accept("/in/a.txt") is False

    def test_boundary_is_exclusive(self, clock):
        """An entry exactly window seconds old is not yet expired."""
        debounce = DebounceSet(window=10, clock=clock)

        debounce.accept("/in/a.txt")
        clock.advance(10)

        assert debounce.accept("/in/a.txt") is False

    def test_distinct_paths_are_independent(self, clock):
        debounce = DebounceSet(window=10, clock=clock)

        assert debounce.accept("/in/a.txt") is True
        assert debounce.accept("/in/b.txt") is True
        assert len(debounce) == 2

    def test_sweep_is_lazy(self, clock):
        """Expired entries linger until the next accept sweeps them."""
        debounce = DebounceSet(window=10, clock=clock)

        debounce.accept("/in/a.txt")
        debounce.accept("/in/b.txt")
        clock.advance(11)
        assert len(debounce) == 2

        debounce.accept("/in/c.txt")

        assert len(debounce) == 1
        assert "/in/c.txt" in debounce

    def test_sweep_returns_evicted_count(self, clock):
        debounce = DebounceSet(window=10, clock=clock)
        debounce.accept("/in/a.txt")
        clock.advance(3)
        debounce.accept("/in/b.txt")
        clock.advance(8)

        assert debounce.sweep() == 1
        assert "/in/b.txt" in debounce
