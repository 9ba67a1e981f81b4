# lambdas/forward_logs/awslogs.py
import base64
import binascii
import gzip
import json
from typing import Any, Dict, Optional, Tuple

from errors import PayloadError
from models import DecodedLogs, RawLogEvent

LAMBDA_LOG_GROUP_PREFIX = "/aws/lambda/"


def get_awslogs_data(event: Dict[str, Any]) -> Optional[str]:
    """Returns the encoded CloudWatch Logs payload, or None if the event has none."""
    awslogs = (event or {}).get("awslogs") or {}
    return awslogs.get("data") or None


def decode_awslogs_data(data: str) -> DecodedLogs:
    """
    Decodes the `awslogs.data` of a CloudWatch Logs subscription event.
    The data is base64 encoded, gzip compressed JSON.

    Raises:
        PayloadError: If the data cannot be decoded.
    """
    try:
        raw = gzip.decompress(base64.b64decode(data))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, OSError, EOFError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadError(f"Unable to decode awslogs data: {e}") from e

    if not isinstance(payload, dict):
        raise PayloadError("Unable to decode awslogs data: payload is not an object")

    return DecodedLogs(
        log_group=payload.get("logGroup", ""),
        log_stream=payload.get("logStream", ""),
        log_events=[RawLogEvent.from_dict(e) for e in payload.get("logEvents", [])],
    )


def parse_log_group(log_group: str) -> Tuple[str, str]:
    """
    Splits a Lambda log group name into subsystem and function name,
    e.g. '/aws/lambda/helix-services--indexer' -> ('helix-services', 'indexer').
    """
    name = log_group
    if name.startswith(LAMBDA_LOG_GROUP_PREFIX):
        name = name[len(LAMBDA_LOG_GROUP_PREFIX):]
    subsystem, sep, function_name = name.partition("--")
    if not sep:
        return name, name
    return subsystem, function_name
