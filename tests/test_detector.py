from pollwatch.detector import diff
from pollwatch.events import ChangeEvent, ChangeKind


def test_identical_snapshots_yield_no_events():
    snapshot = {"/w/a.txt": 100, "/w/b.zip": 200}

    assert diff(snapshot, dict(snapshot)) == []


def test_new_path_is_created_only():
    events = diff({}, {"/w/a.txt": 100})

    assert events == [ChangeEvent(ChangeKind.CREATED, "/w/a.txt")]


def test_missing_path_is_deleted():
    events = diff({"/w/a.txt": 100}, {})

    assert events == [ChangeEvent(ChangeKind.DELETED, "/w/a.txt")]


def test_timestamp_change_is_modified_once():
    events = diff({"/w/a.txt": 100, "/w/b.txt": 5}, {"/w/a.txt": 101, "/w/b.txt": 5})

    assert events == [ChangeEvent(ChangeKind.MODIFIED, "/w/a.txt")]


def test_deletions_come_before_creations_and_modifications():
    previous = {"/w/gone.txt": 1, "/w/same.txt": 2, "/w/changed.txt": 3}
    current = {"/w/same.txt": 2, "/w/changed.txt": 4, "/w/new.txt": 5}

    events = diff(previous, current)

    assert events[0] == ChangeEvent(ChangeKind.DELETED, "/w/gone.txt")
    assert set(events[1:]) == {
        ChangeEvent(ChangeKind.MODIFIED, "/w/changed.txt"),
        ChangeEvent(ChangeKind.CREATED, "/w/new.txt"),
    }
    assert len(events) == len(set(events))


def test_marked_path_is_suppressed_and_consumed(ledger):
    ledger.mark("/w/optimized_a.jpg")

    events = diff({}, {"/w/optimized_a.jpg": 10, "/w/a.jpg": 10}, ledger)

    assert events == [ChangeEvent(ChangeKind.CREATED, "/w/a.jpg")]
    assert "/w/optimized_a.jpg" not in ledger


def test_marked_deletion_is_suppressed(ledger):
    ledger.mark("/w/b.zip")

    assert diff({"/w/b.zip": 10}, {}, ledger) == []
    assert diff({"/w/b.zip": 10}, {}, ledger) == [ChangeEvent(ChangeKind.DELETED, "/w/b.zip")]


def test_unchanged_marked_path_keeps_its_entry(ledger):
    ledger.mark("/w/a.txt")

    assert diff({"/w/a.txt": 10}, {"/w/a.txt": 10}, ledger) == []
    assert "/w/a.txt" in ledger
