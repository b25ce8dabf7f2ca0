"""
Bounded batch writer and live snapshot feed tests.
"""

import pytest

from starweb.models import Destination
from starweb.services import reference_service, snapshot_service
from starweb.services.batch_service import DEFAULT_BATCH_LIMIT, BatchWriter
from starweb.services.snapshot_service import UnknownCollectionError


class TestBatchWriter:

    def test_default_limit_comes_from_config(self, app):
        with app.app_context():
            assert BatchWriter().limit == DEFAULT_BATCH_LIMIT == 499

    def test_limit_must_be_positive(self, app):
        with app.app_context():
            with pytest.raises(ValueError):
                BatchWriter(limit=0)

    def test_commits_in_chunks(self, db_session):
        with BatchWriter(limit=3) as batch:
            for i in range(7):
                batch.add(Destination(name=f"Stop {i}"))

        assert batch.total == 7
        assert batch.flushes == 3
        assert batch.pending == 0
        assert db_session.query(Destination).count() == 7

    def test_exact_multiple_does_not_add_an_empty_flush(self, db_session):
        with BatchWriter(limit=2) as batch:
            for i in range(4):
                batch.add(Destination(name=f"Stop {i}"))

        assert batch.flushes == 2

    def test_failure_rolls_back_only_the_open_chunk(self, db_session):
        with pytest.raises(RuntimeError):
            with BatchWriter(limit=2) as batch:
                for i in range(3):
                    batch.add(Destination(name=f"Stop {i}"))
                raise RuntimeError("boom")

        assert db_session.query(Destination).count() == 2

    def test_update_and_delete_count_as_operations(self, db_session):
        keep = Destination(name="Keep")
        drop = Destination(name="Drop")
        with BatchWriter(limit=10) as batch:
            batch.add(keep)
            batch.add(drop)

        with BatchWriter(limit=10) as batch:
            batch.update(keep, name="Kept")
            batch.delete(drop)

        assert batch.total == 2
        assert [d.name for d in db_session.query(Destination).all()] == ["Kept"]

    def test_each_flush_publishes_full_snapshot(self, db_session):
        seen = []
        unsubscribe = snapshot_service.subscribe("destinations", lambda c, rev, rows: seen.append(len(rows)))
        try:
            with BatchWriter(limit=2) as batch:
                for i in range(5):
                    batch.add(Destination(name=f"Stop {i}"))
        finally:
            unsubscribe()

        assert seen == [2, 4, 5]


class TestSnapshots:

    def test_subscriber_receives_full_result_set(self, db_session):
        events = []
        unsubscribe = snapshot_service.subscribe("parties", lambda c, rev, rows: events.append((c, rev, rows)))
        try:
            reference_service.create_item("parties", payload={"name": "Everest Fuels", "type": "Vendor"})
            reference_service.create_item("parties", payload={"name": "Himal Traders", "type": "Client"})
        finally:
            unsubscribe()

        assert len(events) == 2
        collection, first_rev, rows = events[0]
        assert collection == "parties"
        assert [r["name"] for r in rows] == ["Everest Fuels"]
        assert events[1][1] == first_rev + 1
        assert [r["name"] for r in events[1][2]] == ["Everest Fuels", "Himal Traders"]

    def test_unsubscribe_stops_delivery(self, db_session):
        events = []
        unsubscribe = snapshot_service.subscribe("parties", lambda *args: events.append(args))
        unsubscribe()

        reference_service.create_item("parties", payload={"name": "Everest Fuels", "type": "Vendor"})

        assert events == []

    def test_failing_listener_does_not_block_others(self, db_session):
        def broken(*args):
            raise RuntimeError("listener failed")

        events = []
        unsubscribe_broken = snapshot_service.subscribe("parties", broken)
        unsubscribe_ok = snapshot_service.subscribe("parties", lambda *args: events.append(args))
        try:
            reference_service.create_item("parties", payload={"name": "Everest Fuels", "type": "Vendor"})
        finally:
            unsubscribe_broken()
            unsubscribe_ok()

        assert len(events) == 1

    def test_get_snapshot_tracks_revision(self, db_session):
        before = snapshot_service.get_snapshot("vehicles")["revision"]

        reference_service.create_item("vehicles", payload={"name": "Ba 2 Kha 1234"})
        snapshot = snapshot_service.get_snapshot("vehicles")

        assert snapshot["revision"] == before + 1
        assert snapshot["count"] == 1
        assert snapshot["items"][0]["name"] == "Ba 2 Kha 1234"

    def test_unknown_collection(self, db_session):
        with pytest.raises(UnknownCollectionError):
            snapshot_service.get_snapshot("users")
        with pytest.raises(UnknownCollectionError):
            snapshot_service.subscribe("sessions", lambda *args: None)

    def test_collections_are_table_names(self, app):
        with app.app_context():
            names = snapshot_service.collections()
        assert "trips" in names
        assert "attendance_records" in names
        assert "users" not in names
