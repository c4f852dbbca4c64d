"""Structural checks run before any call reaches the memory store.

Both validators are pure and never raise; callers decide how to report a
rejected entry or query.
"""

from __future__ import annotations

from datetime import datetime

from callmem.models import CallEntry, MemoryQuery, ensure_utc


def _is_non_blank(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_plain_map(value: object) -> bool:
    return isinstance(value, dict)


def _is_count(value: object) -> bool:
    # bool is an int subclass but never a valid count
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_entry(entry: object) -> bool:
    """Return True if *entry* is a CallEntry that can be written to the store."""
    if not isinstance(entry, CallEntry):
        return False

    if not _is_non_blank(entry.step) or not _is_non_blank(entry.session_id):
        return False

    if not _is_plain_map(entry.input) or not _is_plain_map(entry.output):
        return False

    if not isinstance(entry.timestamp, datetime):
        return False

    if entry.user_id is not None and not _is_non_blank(entry.user_id):
        return False
    if entry.workflow_type is not None and not _is_non_blank(entry.workflow_type):
        return False
    if entry.metadata is not None and not _is_plain_map(entry.metadata):
        return False

    return True


def validate_query(query: object) -> bool:
    """Return True if *query* is a MemoryQuery with usable filters and paging."""
    if not isinstance(query, MemoryQuery):
        return False

    if query.limit is not None and not _is_count(query.limit):
        return False
    if query.offset is not None and not _is_count(query.offset):
        return False

    for value in (query.session_id, query.user_id, query.workflow_type, query.step):
        if value is not None and not _is_non_blank(value):
            return False

    for value in (query.start_date, query.end_date):
        if value is not None and not isinstance(value, datetime):
            return False

    if query.start_date is not None and query.end_date is not None:
        if ensure_utc(query.start_date) > ensure_utc(query.end_date):
            return False

    return True
