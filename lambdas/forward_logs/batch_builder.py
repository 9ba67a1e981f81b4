# lambdas/forward_logs/batch_builder.py
import json
from typing import Any, Dict, Iterable, List, Optional

from extract_fields import extract_fields
from models import Batch, ExtractedFields, LogEntry, RawLogEvent
from severity import INFO, severity_for


def format_entry_text(fields: ExtractedFields, function_name: str, invocation_id: Optional[str]) -> str:
    """
    Builds the JSON body of a Coralogix entry.
    Keys without a value are left out rather than sent as null.
    """
    inv: Dict[str, Any] = {}
    if invocation_id is not None:
        inv["invocationId"] = invocation_id
    inv["functionName"] = function_name
    if fields.request_id:
        inv["requestId"] = fields.request_id

    body: Dict[str, Any] = {
        "inv": inv,
        "message": fields.message.rstrip("\n"),
        # the raw level, not the mapped one
        "level": fields.level.lower(),
    }
    if fields.timestamp:
        body["timestamp"] = fields.timestamp
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def build_log_entries(
    events: Iterable[RawLogEvent],
    function_name: str,
    invocation_id: Optional[str] = "n/a",
    min_severity: int = INFO,
) -> List[LogEntry]:
    """
    Turns raw log events into Coralogix entries, keeping their order.

    Events that are not log lines, or whose severity is below `min_severity`,
    are dropped.
    """
    entries = []
    for event in events:
        fields = extract_fields(event)
        if fields is None:
            continue
        severity = severity_for(fields.level)
        if severity < min_severity:
            continue
        entries.append(LogEntry(
            timestamp=event.timestamp,
            text=format_entry_text(fields, function_name, invocation_id),
            severity=severity,
        ))
    return entries


def build_batch(
    entries: List[LogEntry],
    private_key: str,
    application_name: str,
    subsystem_name: str,
    computer_name: Optional[str] = None,
) -> Batch:
    return Batch(
        private_key=private_key,
        application_name=application_name,
        subsystem_name=subsystem_name,
        computer_name=computer_name,
        log_entries=list(entries),
    )
