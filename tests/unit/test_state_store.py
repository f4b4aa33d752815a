"""
Unit tests for StateStore.

Tests cover:
- apply() stamping and monotonic stamps
- Failed updaters leave state unchanged
- replace() sanitizes and reports its origin
- Listener registration and isolation
"""

import pytest

from school.datastore.state import ChangeOrigin, StateStore
from tests.conftest import FakeClock, defaults_factory


class TestStateStore:
    """Tests for StateStore."""

    @pytest.fixture
    def store(self, clock):
        return StateStore(defaults_factory(), defaults_factory, clock=clock)

    def test_current_is_initial(self, store, defaults):
        assert store.current() == defaults
        assert store.version == 0

    def test_apply_installs_and_stamps(self, store, clock):
        """apply() installs the updater result stamped with now()."""
        installed = store.apply(lambda s: s.with_collection("subjects", []))

        assert installed.subjects == ()
        assert installed.last_updated == clock.now
        assert store.current() is installed
        assert store.version == 1

    def test_stamps_strictly_increase(self):
        """A stalled clock still produces increasing stamps."""
        clock = FakeClock(now=500)
        store = StateStore(defaults_factory(), defaults_factory, clock=clock)

        first = store.apply(lambda s: s)
        second = store.apply(lambda s: s)

        assert first.last_updated == 500
        assert second.last_updated == 501

    def test_clock_behind_existing_stamp(self, clock):
        """Stamps never go backwards relative to the installed snapshot."""
        store = StateStore(defaults_factory().stamped(10_000), defaults_factory, clock=clock)

        installed = store.apply(lambda s: s)

        assert installed.last_updated == 10_001

    def test_failing_updater_leaves_state(self, store):
        """An updater that raises changes nothing."""
        before = store.current()

        def broken(snapshot):
            raise ValueError("boom")

        with pytest.raises(ValueError):
            store.apply(broken)

        assert store.current() is before
        assert store.version == 0

    def test_non_snapshot_result_rejected(self, store):
        before = store.current()

        with pytest.raises(TypeError):
            store.apply(lambda s: s.to_document())

        assert store.current() is before

    def test_replace_sanitizes(self, store, clock):
        """replace() routes the candidate through the sanitizer."""
        installed = store.replace({"students": "garbage", "users": []})

        assert installed.students == store.defaults_factory().students
        assert any(u["email"] == "admin@school.com" for u in installed.users)
        assert installed.last_updated == clock.now

    def test_replace_keeps_remote_stamp(self, store):
        installed = store.replace({"lastUpdated": 2000}, origin=ChangeOrigin.REMOTE, stamp=False)

        assert installed.last_updated == 2000

    def test_listeners_receive_origin(self, store):
        seen = []
        store.subscribe(lambda snapshot, origin: seen.append((snapshot.last_updated, origin)))

        store.apply(lambda s: s)
        store.replace({}, origin=ChangeOrigin.REMOTE, stamp=False)

        assert [o for _, o in seen] == [ChangeOrigin.LOCAL_EDIT, ChangeOrigin.REMOTE]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda s, o: seen.append(o))

        unsubscribe()
        store.apply(lambda s: s)

        assert seen == []

    def test_failing_listener_isolated(self, store):
        """A raising listener doesn't stop later listeners or the change."""
        seen = []

        def bad(snapshot, origin):
            raise RuntimeError("listener bug")

        store.subscribe(bad)
        store.subscribe(lambda s, o: seen.append(o))

        installed = store.apply(lambda s: s)

        assert seen == [ChangeOrigin.LOCAL_EDIT]
        assert store.current() is installed
