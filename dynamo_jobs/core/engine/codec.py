"""Mapping between JobRecord and DynamoDB attribute-value items.

Items use the low-level client representation, e.g. ``{"id": {"S": "..."}}``.
Attribute names below are the stored schema; renaming one needs a migration.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from dynamo_jobs.core.engine.errors import JobDecodeError
from dynamo_jobs.core.models.job_models import JobMessage, JobRecord, JobStatus, Level

ID = "id"
HOSTNAME = "hostname"
JOB_TYPE = "jobType"
STARTED = "started"
STATUS = "status"
STOPPED = "stopped"
LAST_UPDATED = "lastUpdated"
LAST_UPDATED_EPOCH = "lastUpdatedEpoch"
MESSAGES = "messages"

MSG_LEVEL = "level"
MSG_TEXT = "text"
MSG_TS = "timestamp"

# Everything except the message list, for projections that skip it.
SUMMARY_ATTRIBUTES = (ID, HOSTNAME, JOB_TYPE, STARTED, STATUS, STOPPED, LAST_UPDATED, LAST_UPDATED_EPOCH)

Item = Dict[str, Dict[str, Any]]

_FRACTION = re.compile(r"^(.*T\d{2}:\d{2}:\d{2})\.(\d+)(.*)$")


def string_value(value: str) -> dict:
    return {"S": value}


def number_value(value: int) -> dict:
    return {"N": str(value)}


def timestamp_value(value: datetime) -> dict:
    return string_value(value.isoformat())


def key_for(job_id: str) -> Item:
    return {ID: string_value(job_id)}


def encode_message(message: JobMessage) -> dict:
    return {
        "M": {
            MSG_LEVEL: string_value(message.level.key),
            MSG_TEXT: string_value(message.message),
            MSG_TS: timestamp_value(message.timestamp),
        }
    }


def encode_job(record: JobRecord) -> Item:
    item = {
        ID: string_value(record.job_id),
        HOSTNAME: string_value(record.hostname),
        JOB_TYPE: string_value(record.job_type),
        STARTED: timestamp_value(record.started),
        STATUS: string_value(record.status.name),
        MESSAGES: {"L": [encode_message(m) for m in record.messages]},
    }
    if record.stopped is not None:
        item[STOPPED] = timestamp_value(record.stopped)
    if record.last_updated is not None:
        item[LAST_UPDATED] = timestamp_value(record.last_updated)
        item[LAST_UPDATED_EPOCH] = number_value(record.last_updated_epoch)
    return item


def _typed(attrs: dict, key: str, type_tag: str, job_id: Optional[str]):
    if key not in attrs:
        raise JobDecodeError(f"missing required attribute '{key}'", job_id=job_id, attribute=key)
    value = attrs[key]
    if not isinstance(value, dict) or type_tag not in value:
        raise JobDecodeError(
            f"attribute '{key}' is not of type {type_tag}", job_id=job_id, attribute=key
        )
    return value[type_tag]


def _normalize_iso(raw: str) -> str:
    # Java OffsetDateTime text: "Z" suffix and up to nanosecond precision,
    # neither of which fromisoformat accepts before Python 3.11.
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    match = _FRACTION.match(raw)
    if match:
        raw = f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}{match.group(3)}"
    return raw


def _parse_timestamp(raw: str, key: str, job_id: Optional[str]) -> datetime:
    try:
        return datetime.fromisoformat(_normalize_iso(raw))
    except (TypeError, AttributeError, ValueError) as exc:
        raise JobDecodeError(
            f"attribute '{key}' is not a valid timestamp: {raw!r}", job_id=job_id, attribute=key
        ) from exc


def _timestamp(attrs: dict, key: str, job_id: Optional[str]) -> datetime:
    return _parse_timestamp(_typed(attrs, key, "S", job_id), key, job_id)


def _optional_timestamp(attrs: dict, key: str, job_id: Optional[str]) -> Optional[datetime]:
    if key not in attrs:
        return None
    return _timestamp(attrs, key, job_id)


def decode_status(raw: str, job_id: Optional[str] = None) -> JobStatus:
    try:
        return JobStatus[raw]
    except KeyError:
        raise JobDecodeError(f"unknown job status {raw!r}", job_id=job_id, attribute=STATUS) from None


def decode_message(value: dict, job_id: Optional[str] = None) -> JobMessage:
    if not isinstance(value, dict) or "M" not in value:
        raise JobDecodeError("message entry is not a map", job_id=job_id, attribute=MESSAGES)
    attrs = value["M"]
    level_key = _typed(attrs, MSG_LEVEL, "S", job_id)
    try:
        level = Level.of_key(level_key)
    except ValueError as exc:
        raise JobDecodeError(str(exc), job_id=job_id, attribute=MSG_LEVEL) from exc
    return JobMessage(
        level=level,
        message=_typed(attrs, MSG_TEXT, "S", job_id),
        timestamp=_timestamp(attrs, MSG_TS, job_id),
    )


def _decode_messages(item: Item, job_id: str) -> List[JobMessage]:
    # Absent when read through a projection without messages.
    if MESSAGES not in item:
        return []
    return [decode_message(v, job_id) for v in _typed(item, MESSAGES, "L", job_id)]


def decode_job(item: Item) -> JobRecord:
    job_id = _typed(item, ID, "S", None)
    return JobRecord(
        job_id=job_id,
        hostname=_typed(item, HOSTNAME, "S", job_id),
        job_type=_typed(item, JOB_TYPE, "S", job_id),
        status=decode_status(_typed(item, STATUS, "S", job_id), job_id),
        started=_timestamp(item, STARTED, job_id),
        stopped=_optional_timestamp(item, STOPPED, job_id),
        last_updated=_optional_timestamp(item, LAST_UPDATED, job_id),
        messages=_decode_messages(item, job_id),
    )
