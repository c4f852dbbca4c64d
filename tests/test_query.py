from datetime import UTC, datetime, timedelta

from callmem.memory.query import apply_query, matches
from callmem.models import MemoryQuery, StoredEntry

BASE = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _stored(id: str, minutes: int = 0, **kwargs) -> StoredEntry:
    defaults = {
        "step": "workflow_summarization",
        "input": {},
        "output": {},
        "session_id": "S1",
        "timestamp": BASE + timedelta(minutes=minutes),
    }
    defaults.update(kwargs)
    return StoredEntry(id=id, **defaults)


def test_absent_filters_match_everything():
    assert matches(_stored("a"), MemoryQuery()) is True


def test_filters_on_fields():
    entry = _stored("a", user_id="u1", workflow_type="sop", step="transcribe")
    assert matches(entry, MemoryQuery(session_id="S1", user_id="u1")) is True
    assert matches(entry, MemoryQuery(session_id="S2")) is False
    assert matches(entry, MemoryQuery(user_id="u2")) is False
    assert matches(entry, MemoryQuery(workflow_type="other")) is False
    assert matches(entry, MemoryQuery(step="transcribe")) is True


def test_date_bounds_are_inclusive():
    entry = _stored("a")
    assert matches(entry, MemoryQuery(start_date=BASE, end_date=BASE)) is True
    assert matches(entry, MemoryQuery(start_date=BASE + timedelta(seconds=1))) is False
    assert matches(entry, MemoryQuery(end_date=BASE - timedelta(seconds=1))) is False


def test_naive_query_dates_compare_as_utc():
    entry = _stored("a")
    assert matches(entry, MemoryQuery(start_date=datetime(2024, 6, 1, 12, 0))) is True


def test_sorted_newest_first():
    entries = [_stored("old", 0), _stored("new", 10), _stored("mid", 5)]
    result = apply_query(entries, MemoryQuery())
    assert [e.id for e in result] == ["new", "mid", "old"]


def test_ties_keep_retrieval_order():
    entries = [_stored("first", 1), _stored("second", 1), _stored("third", 1)]
    result = apply_query(entries, MemoryQuery())
    assert [e.id for e in result] == ["first", "second", "third"]


def test_paging_after_filtering():
    entries = [_stored(f"s2-{i}", i, session_id="S2") for i in range(5)]
    entries += [_stored(f"s1-{i}", i) for i in range(5)]

    result = apply_query(entries, MemoryQuery(session_id="S1", offset=1, limit=2))
    assert [e.id for e in result] == ["s1-3", "s1-2"]


def test_limit_zero_is_empty():
    assert apply_query([_stored("a")], MemoryQuery(limit=0)) == []


def test_offset_past_end_is_empty():
    entries = [_stored("a"), _stored("b", 1)]
    assert apply_query(entries, MemoryQuery(offset=2)) == []
    assert apply_query(entries, MemoryQuery(offset=10, limit=5)) == []


def test_limit_bounds_length():
    entries = [_stored(str(i), i) for i in range(10)]
    for limit in (1, 3, 10, 50):
        assert len(apply_query(entries, MemoryQuery(limit=limit))) <= limit
