# lambdas/forward_logs/extract_fields.py
"""
Extracts level, message, request id and timestamp from Lambda log events.

Events either come with `extractedFields` (the subscription filter already
split the line) or as a raw message, in which case the line is matched
against the known Lambda runtime formats below.
"""
import re
from typing import Callable, List, Optional, Tuple

from models import ExtractedFields, RawLogEvent

REQUEST_ID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
TIMESTAMP = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z"


def _init_start(match: re.Match) -> ExtractedFields:
    return ExtractedFields(level="DEBUG", message=f"INIT_START {match['text']}")


def _lifecycle(match: re.Match) -> ExtractedFields:
    phase, text = match["phase"], match["text"] or ""
    level = "DEBUG"
    # REPORT lines only carry a Status segment when the invocation failed
    if phase == "REPORT" and any(s.startswith("Status: ") for s in text.split("\t")):
        level = "ERROR"
    return ExtractedFields(level=level, message=f"{phase}{text}", request_id=match["request_id"])


def _runtime_error(match: re.Match) -> ExtractedFields:
    return ExtractedFields(level="ERROR", message=match["text"], request_id=match["request_id"])


def _standard(match: re.Match) -> ExtractedFields:
    segments = match["text"].split("\t")
    message = segments.pop()
    if not segments:
        level = "ERROR" if message.startswith("Task timed out") else "INFO"
    else:
        level = segments.pop()
    return ExtractedFields(
        level=level,
        message=message,
        request_id=match["request_id"],
        timestamp=match["timestamp"],
    )


# Evaluated in order, first match wins. `text` must hold something besides the
# final newline, so a line with nothing after its prefix is not recognised.
MESSAGE_EXTRACTORS: List[Tuple[re.Pattern, Callable[[re.Match], ExtractedFields]]] = [
    (re.compile(r"INIT_START (?P<text>.*?[^\n].*?)\n?", re.DOTALL), _init_start),
    (
        re.compile(rf"(?P<phase>START|END|REPORT) RequestId: (?P<request_id>{REQUEST_ID})(?P<text>.*?[^\n].*?)??\n?", re.DOTALL),
        _lifecycle,
    ),
    # Lambda reports unexpected runtime errors this way
    (re.compile(rf"RequestId: (?P<request_id>{REQUEST_ID}) Error: (?P<text>.*?[^\n].*?)\n?", re.DOTALL), _runtime_error),
    # the standard format, i.e. filter pattern [timestamp=*Z, request_id="*-*", event]
    (
        re.compile(rf"(?P<timestamp>{TIMESTAMP})\t(?P<request_id>{REQUEST_ID})\t(?P<text>.*?[^\n].*?)\n?", re.DOTALL),
        _standard,
    ),
]


def _split_extracted(extracted: dict) -> ExtractedFields:
    level, sep, message = (extracted.get("event") or "").partition("\t")
    if not sep:
        level, message = "INFO", level
    return ExtractedFields(
        level=level,
        message=message,
        request_id=extracted.get("request_id"),
        timestamp=extracted.get("timestamp"),
    )


def extract_fields(event: RawLogEvent) -> Optional[ExtractedFields]:
    """
    Extract fields from a log event, either by using the `extractedFields`
    provided by the CloudWatch filter pattern, or by matching the raw message.

    Returns:
        The extracted fields, or None if the message is not a recognised log line.
    """
    if event.extracted_fields:
        return _split_extracted(event.extracted_fields)
    if not event.message:
        return None
    for pattern, extract in MESSAGE_EXTRACTORS:
        match = pattern.fullmatch(event.message)
        if match:
            return extract(match)
    return None
