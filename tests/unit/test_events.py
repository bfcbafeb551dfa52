"""
Unit tests for the event log.
"""

import json

import pytest

from registry.clock import FixedClock
from registry.events import EventLog, EventType
from registry.manager import CollectionGroupRegistry


class TestEventLog:
    """Test event emission and delivery."""

    def test_sequence_numbers(self, events):
        first = events.emit(EventType.GROUP_CREATED, id=1)
        second = events.emit(EventType.GROUP_CLOSED, id=1)

        assert (first.sequence, second.sequence) == (1, 2)
        assert len(events) == 2
        assert events.last() is second

    def test_filter_by_type(self, events):
        events.emit(EventType.DEPOSIT, id=1, owner=None)
        events.emit(EventType.WITHDRAW, id=1, owner=None)
        events.emit(EventType.DEPOSIT, id=2, owner=None)

        assert [e.payload['id'] for e in events.events(EventType.DEPOSIT)] == [1, 2]

    def test_events_returns_copy(self, events):
        events.emit(EventType.BURNED, id=1)
        snapshot = events.events()
        snapshot.clear()

        assert len(events) == 1

    def test_subscriber_receives_events(self, events):
        received = []
        events.subscribe(received.append)

        events.emit(EventType.MINTED, id=1)
        assert [e.event_type for e in received] == [EventType.MINTED]

    def test_failing_subscriber_does_not_break_emit(self, events):
        def broken(event):
            raise RuntimeError("indexer down")

        received = []
        events.subscribe(broken)
        events.subscribe(received.append)

        event = events.emit(EventType.MINTED, id=1)
        assert received == [event]

    def test_jsonl_sink(self, tmp_path):
        path = tmp_path / "audit" / "events.jsonl"
        log = EventLog(path=path)

        log.emit(EventType.GROUP_CREATED, id=1, name="Finals2024")
        log.emit(EventType.GROUP_CLOSED, id=1)

        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert [line['event_type'] for line in lines] == [
            "CollectionGroupCreated", "CollectionGroupClosed"
        ]
        assert lines[0]['payload'] == {'id': 1, 'name': "Finals2024"}

    def test_empty_log(self, events):
        assert events.last() is None
        assert events.events() == []

    def test_timestamps_come_from_clock(self, clock, events):
        clock.set(42.0)
        assert events.emit(EventType.BURNED, id=1).timestamp == 42.0

    def test_registry_log_uses_registry_clock(self):
        registry = CollectionGroupRegistry(clock=FixedClock(7.5))
        registry.issue_admin().create_collection_group("A", "/a")

        assert registry.events.last().timestamp == 7.5

    def test_sequence_continues_across_sink_reopen(self, tmp_path):
        path = tmp_path / "events.jsonl"
        first = EventLog(path=path)
        first.emit(EventType.GROUP_CREATED, id=1)
        first.emit(EventType.GROUP_CLOSED, id=1)

        second = EventLog(path=path)
        event = second.emit(EventType.MINTED, id=1)

        assert event.sequence == 3
        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert [line["sequence"] for line in lines] == [1, 2, 3]


class TestDeferredSink:
    """Test holding sink writes until flush."""

    def test_flush_writes_held_events(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = EventLog(path=path, deferred=True)
        log.emit(EventType.GROUP_CREATED, id=1)

        assert not path.exists()
        assert log.pending == 1
        assert log.flush() == 1
        assert len(path.read_text().splitlines()) == 1
        assert log.pending == 0

    def test_discard_drops_and_rewinds(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = EventLog(path=path, deferred=True)
        log.emit(EventType.GROUP_CREATED, id=1)
        log.flush()
        log.emit(EventType.GROUP_CLOSED, id=1)

        assert log.discard() == 1
        assert len(log) == 1
        assert log.emit(EventType.GROUP_CLOSED, id=1).sequence == 2

        log.flush()
        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert [line["sequence"] for line in lines] == [1, 2]


class TestRegistryEventOrder:
    """Test that every state change emits exactly one event, in order."""

    def test_lifecycle_events(self, events, accounts, admin):
        group_id = admin.create_collection_group("Finals2024", "/public/finals2024")
        admin.add_edition_to_group(group_id, 1)
        admin.close_collection_group(group_id)
        collection = accounts.setup_account("0x01")
        admin.mint_to(collection, group_id, "alice", 2)
        collection.burn(1)

        assert [e.event_type for e in events.events()] == [
            EventType.GROUP_CREATED,
            EventType.EDITION_ADDED,
            EventType.GROUP_CLOSED,
            EventType.MINTED,
            EventType.DEPOSIT,
            EventType.WITHDRAW,
            EventType.BURNED,
        ]

    @pytest.mark.parametrize("level", [11, -1])
    def test_failed_mint_emits_nothing(self, events, admin, closed_group, level):
        before = len(events)
        with pytest.raises(Exception):
            admin.mint_nft(closed_group, "alice", level)
        assert len(events) == before
