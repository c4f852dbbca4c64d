"""Turn raw memory-store records into StoredEntry objects.

Store records are loosely shaped: the call payload we wrote lives in two chat
messages (user = call context, assistant = output) serialized as JSON, plus a
flat ``metadata`` dict. Any of these may be missing or garbled. Normalization
is per record: a record that cannot be used is dropped with a warning and the
rest of the batch goes on.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from callmem.models import StoredEntry, ensure_utc

logger = logging.getLogger(__name__)

UNKNOWN_STEP = "unknown"


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return ensure_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            logger.debug("Unparseable timestamp in memory record: %r", value)
    return None


def _parse_json_object(content: str) -> dict[str, Any] | None:
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _text_or_none(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def normalize(raw: Any) -> StoredEntry | None:
    """Normalize one store record; returns None if the record is unusable."""
    if not isinstance(raw, dict):
        logger.warning("Dropping memory record of type %s", type(raw).__name__)
        return None

    memory_id = raw.get("id")
    if memory_id is None or memory_id == "":
        logger.warning("Dropping memory record without id")
        return None

    try:
        backend_metadata = raw.get("metadata")
        backend_metadata = dict(backend_metadata) if isinstance(backend_metadata, dict) else {}

        step = _text_or_none(backend_metadata.get("step")) or UNKNOWN_STEP
        session_id = _text_or_none(backend_metadata.get("sessionId")) or ""
        workflow_type = _text_or_none(backend_metadata.get("workflowType"))
        user_id: str | None = None
        metadata: dict[str, Any] | None = None
        timestamp = _parse_timestamp(backend_metadata.get("timestamp"))
        input_data: dict[str, Any] = {}
        output_data: dict[str, Any] = {}

        messages = raw.get("messages")
        if not isinstance(messages, list):
            messages = []

        for message in messages:
            if not isinstance(message, dict):
                continue
            role = message.get("role")
            content = message.get("content")
            if not content or not isinstance(content, str):
                continue

            if role == "user":
                context = _parse_json_object(content)
                if context is None:
                    input_data = {"content": content}
                    continue
                step = _text_or_none(context.get("step")) or step
                session_id = _text_or_none(context.get("sessionId")) or session_id
                workflow_type = _text_or_none(context.get("workflowType")) or workflow_type
                user_id = _text_or_none(context.get("userId"))
                if isinstance(context.get("input"), dict):
                    input_data = context["input"]
                if isinstance(context.get("metadata"), dict):
                    metadata = context["metadata"]
                timestamp = _parse_timestamp(context.get("timestamp")) or timestamp
            elif role == "assistant":
                parsed = _parse_json_object(content)
                output_data = parsed if parsed is not None else {"content": content}

        if not messages and isinstance(raw.get("memory"), str):
            input_data = {"content": raw["memory"]}

        if timestamp is None:
            timestamp = _parse_timestamp(raw.get("created_at")) or datetime.now(UTC)

        return StoredEntry(
            id=str(memory_id),
            step=step,
            input=input_data,
            output=output_data,
            session_id=session_id,
            timestamp=timestamp,
            user_id=user_id,
            workflow_type=workflow_type,
            metadata=metadata,
            backend_metadata=backend_metadata,
        )
    except Exception:
        logger.warning("Failed to normalize memory record %s", memory_id, exc_info=True)
        return None


def extract_records(raw: Any) -> list[Any]:
    """Unwrap the store response into a list of records.

    The store answers either with a bare list or with a ``{"results": [...]}``
    envelope. Anything else yields no records.
    """
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("results"), list):
        return raw["results"]
    if raw is not None:
        logger.warning("Unexpected memory store response shape: %s", type(raw).__name__)
    return []


def normalize_batch(raw: Any) -> list[StoredEntry]:
    records = extract_records(raw)
    entries = [entry for entry in map(normalize, records) if entry is not None]
    dropped = len(records) - len(entries)
    if dropped:
        logger.warning("Dropped %d of %d memory records during normalization", dropped, len(records))
    return entries
