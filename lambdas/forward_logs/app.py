# lambdas/forward_logs/app.py
import json

import requests

from awslogs import decode_awslogs_data, get_awslogs_data, parse_log_group
from coralogix import CoralogixLogger
from errors import ConfigurationError, DeliveryError, PayloadError
from models import get_settings


def build_response(status_code: int, body: str = "", content_type: str = "text/plain") -> dict:
    """Helper function to build the API Gateway proxy response."""
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': content_type},
        'body': body,
    }


def forward_logs(data: str) -> dict:
    """
    Decodes a CloudWatch Logs payload and forwards its events to Coralogix.

    Returns:
        A summary of what was sent.
    """
    settings = get_settings()
    decoded = decode_awslogs_data(data)
    subsystem, function_name = parse_log_group(decoded.log_group)
    print(f"Forwarding {len(decoded.log_events)} events from {decoded.log_group} ({decoded.log_stream})")

    # Entries carry their own requestId, so no invocation id here.
    logger = CoralogixLogger(
        settings.api_key,
        function_name,
        settings.application_name,
        options=settings.logger_options(subsystem_name=subsystem, invocation_id=None),
    )
    sent = logger.send_entries(decoded.log_events)
    return {"status": "ok", "logGroup": decoded.log_group, "entriesSent": sent}


def handler(event, context):
    """
    Triggered by a CloudWatch Logs subscription. Delivery failures are
    turned into a 500 so the invocation shows up as failed.
    """
    data = get_awslogs_data(event)
    if not data:
        print("ℹ️ No awslogs payload in event. Nothing to do.")
        return build_response(204)

    try:
        result = forward_logs(data)
    except PayloadError as e:
        print(f"⚠️ Bad Request: {e}")
        return build_response(400, str(e))
    except ConfigurationError as e:
        print(f"❌ FATAL: Lambda is not configured correctly: {e}")
        return build_response(500, str(e))
    except (DeliveryError, requests.exceptions.RequestException) as e:
        print(f"❌ {e}")
        return build_response(500, str(e))

    return build_response(200, json.dumps(result), content_type="application/json")
