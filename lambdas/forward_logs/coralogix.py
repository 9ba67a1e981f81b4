# lambdas/forward_logs/coralogix.py
import time
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin

import requests

from batch_builder import build_batch, build_log_entries
from errors import ConfigurationError, DeliveryError
from models import Batch, LoggerOptions, RawLogEvent
from severity import severity_for


class CoralogixLogger:
    """
    Sends the log events of one Lambda function to Coralogix.

    Each call to `send_entries` results in at most one batch, POSTed to the
    logs API. Connection errors and timeouts are retried after each of the
    configured delays. Other request errors and responses with a non-2xx
    status are never retried.
    """

    def __init__(
        self,
        api_key: str,
        function_name: str,
        application_name: str,
        options: Optional[LoggerOptions] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not api_key:
            raise ConfigurationError("Coralogix API key is required.")
        if not application_name:
            raise ConfigurationError("Coralogix application name is required.")

        self.options = options or LoggerOptions()
        self.api_key = api_key
        self.function_name = function_name
        self.application_name = application_name
        self.subsystem_name = self.options.subsystem_name or self._default_subsystem(function_name)
        self.min_severity = severity_for(self.options.level)
        self.endpoint = urljoin(str(self.options.api_url).rstrip("/") + "/", "logs")
        self._sleep = sleep

    @staticmethod
    def _default_subsystem(function_name: str) -> str:
        # '/services/func/v1' -> 'services'
        parts = [part for part in function_name.split("/") if part]
        return parts[0] if parts else function_name

    def send_entries(self, events: Iterable[RawLogEvent]) -> int:
        """
        Extracts, filters and sends the given log events.

        Returns:
            The number of entries sent. Nothing is sent when no event passes
            the level filter.

        Raises:
            DeliveryError: If Coralogix responds with a non-2xx status.
            requests.exceptions.ConnectionError, requests.exceptions.Timeout:
                If the request still fails after all retries.
            requests.exceptions.RequestException: For any other request
                error, raised on the first attempt.
        """
        entries = build_log_entries(
            events,
            function_name=self.function_name,
            invocation_id=self.options.invocation_id,
            min_severity=self.min_severity,
        )
        if not entries:
            print(f"No log entries at or above level '{self.options.level}' to send.")
            return 0

        batch = build_batch(
            entries,
            private_key=self.api_key,
            application_name=self.application_name,
            subsystem_name=self.subsystem_name,
            computer_name=self.options.computer_name,
        )
        self.send_batch(batch)
        return len(entries)

    def send_batch(self, batch: Batch) -> None:
        payload = batch.to_payload()
        retry_delays = self.options.retry_delays
        attempt = 0
        while True:
            try:
                response = requests.post(self.endpoint, json=payload, timeout=self.options.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt >= len(retry_delays):
                    print(f"❌ Failed to send logs after {attempt + 1} attempt(s): {e}")
                    raise
                delay = retry_delays[attempt]
                attempt += 1
                print(f"⚠️ Sending logs failed ({e}), retrying in {delay}s ({attempt}/{len(retry_delays)})")
                self._sleep(delay)
                continue
            except requests.exceptions.RequestException as e:
                # e.g. InvalidURL, MissingSchema: retrying cannot help
                print(f"❌ Failed to send logs: {e}")
                raise

            if not 200 <= response.status_code < 300:
                raise DeliveryError(response.status_code, response.text)

            print(f"✅ Sent {len(batch.log_entries)} log entries to {self.endpoint}")
            return
