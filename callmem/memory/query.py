from __future__ import annotations

from callmem.models import MemoryQuery, StoredEntry, ensure_utc


def matches(entry: StoredEntry, query: MemoryQuery) -> bool:
    """True if *entry* satisfies every filter set on *query*; unset filters match anything."""
    if query.session_id is not None and entry.session_id != query.session_id:
        return False
    if query.user_id is not None and entry.user_id != query.user_id:
        return False
    if query.workflow_type is not None and entry.workflow_type != query.workflow_type:
        return False
    if query.step is not None and entry.step != query.step:
        return False
    if query.start_date is not None and entry.timestamp < ensure_utc(query.start_date):
        return False
    if query.end_date is not None and entry.timestamp > ensure_utc(query.end_date):
        return False
    return True


def apply_query(entries: list[StoredEntry], query: MemoryQuery) -> list[StoredEntry]:
    """Filter, order newest first, then page.

    The sort is stable, so entries sharing a timestamp keep retrieval order.
    Offset and limit run after filtering so paging is over relevant entries only.
    """
    filtered = [entry for entry in entries if matches(entry, query)]
    ordered = sorted(filtered, key=lambda entry: entry.timestamp, reverse=True)

    start = query.offset or 0
    if query.limit is None:
        return ordered[start:]
    return ordered[start : start + query.limit]
