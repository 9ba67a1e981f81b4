import argparse
import base64
import gzip
import json
import sys
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# The Lambda modules import each other as top-level modules, like in the deployed asset
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "lambdas" / "forward_logs"))
from app import handler  # noqa: E402


def create_awslogs_event(lines, log_group, log_stream="local/[$LATEST]cli", start_ms=None) -> dict:
    """
    Wraps raw Lambda log lines into a CloudWatch Logs subscription event,
    the same shape the forwarder receives in AWS.
    """
    if start_ms is None:
        start_ms = int(time.time() * 1000)

    log_events = []
    for i, line in enumerate(lines):
        log_events.append({
            "id": str(uuid.uuid4()),
            "timestamp": start_ms + i,
            "message": line.rstrip("\n") + "\n",
        })

    payload = {
        "messageType": "DATA_MESSAGE",
        "logGroup": log_group,
        "logStream": log_stream,
        "subscriptionFilters": ["cli"],
        "logEvents": log_events,
    }
    data = base64.b64encode(gzip.compress(json.dumps(payload).encode('utf-8'))).decode('ascii')
    return {"awslogs": {"data": data}}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the log forwarder locally against a file of Lambda log lines.")
    parser.add_argument("log_file", help="file with one Lambda log line per line")
    parser.add_argument("--log-group", default="/aws/lambda/local--cli", help="log group the lines pretend to come from")
    args = parser.parse_args(argv)

    # Load CORALOGIX_* variables from a .env file for local testing
    load_dotenv()

    with open(args.log_file, 'r') as f:
        lines = [line for line in f.read().splitlines() if line.strip()]

    print(f"--- Forwarding {len(lines)} lines as {args.log_group} ---")
    response = handler(create_awslogs_event(lines, args.log_group), None)
    print(f"Status Code: {response['statusCode']}")
    print(f"Response Body: {response['body']}")
    return 0 if response['statusCode'] < 400 else 1


if __name__ == "__main__":
    raise SystemExit(main())
