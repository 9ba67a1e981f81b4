# lambdas/forward_logs/models.py
"""
Plain-dataclass models for log events and batches, plus the pydantic
configuration used by the forwarder.
"""
import socket
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from errors import ConfigurationError

DEFAULT_API_URL = "https://api.coralogix.com/api/v1/"
DEFAULT_RETRY_DELAYS = (1.0, 2.0)


# Data models
@dataclass
class RawLogEvent:
    """
    A single entry of the `logEvents` array delivered by a CloudWatch Logs
    subscription. `extracted_fields` is only present when the subscription
    filter has a pattern, e.g. `[timestamp=*Z, request_id="*-*", event]`.
    """
    timestamp: int
    message: Optional[str] = None
    extracted_fields: Optional[Dict[str, str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawLogEvent":
        return cls(
            timestamp=int(data.get("timestamp", 0)),
            message=data.get("message"),
            extracted_fields=data.get("extractedFields"),
        )


@dataclass
class ExtractedFields:
    level: str
    message: str
    request_id: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass
class LogEntry:
    """One Coralogix log entry. `text` is already JSON-encoded."""
    timestamp: int
    text: str
    severity: int

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "text": self.text, "severity": self.severity}


@dataclass
class Batch:
    """
    Everything sent in one POST to the Coralogix logs API.
    Entry order is the order of the incoming log events.
    """
    private_key: str
    application_name: str
    subsystem_name: str
    computer_name: Optional[str] = None
    log_entries: List[LogEntry] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "privateKey": self.private_key,
            "applicationName": self.application_name,
            "subsystemName": self.subsystem_name,
        }
        if self.computer_name is not None:
            payload["computerName"] = self.computer_name
        payload["logEntries"] = [entry.to_dict() for entry in self.log_entries]
        return payload


@dataclass
class DecodedLogs:
    log_group: str
    log_stream: str
    log_events: List[RawLogEvent] = field(default_factory=list)


# Configuration
class LoggerOptions(BaseModel):
    """
    Options of a CoralogixLogger. Resolved once when the logger is built and
    never changed afterwards.
    """
    model_config = ConfigDict(frozen=True)

    api_url: AnyHttpUrl = DEFAULT_API_URL
    level: str = "info"
    retry_delays: Tuple[float, ...] = DEFAULT_RETRY_DELAYS
    subsystem_name: Optional[str] = None
    computer_name: Optional[str] = Field(default_factory=lambda: socket.gethostname())
    # None drops invocationId from the entry body
    invocation_id: Optional[str] = "n/a"
    timeout: float = 10.0


class AppSettings(BaseSettings):
    """
    Manages env vars using Pydantic BaseSettings.
    A local .env file is read as well, which is handy with cli/push_log.py.
    """
    model_config = SettingsConfigDict(
        env_file='.env', env_file_encoding='utf-8', extra='ignore', populate_by_name=True
    )

    api_key: str = Field(..., alias='CORALOGIX_API_KEY')
    application_name: str = Field(..., alias='CORALOGIX_APPLICATION_NAME')
    log_level: str = Field("info", alias='CORALOGIX_LOG_LEVEL')
    api_url: AnyHttpUrl = Field(DEFAULT_API_URL, alias='CORALOGIX_API_URL')
    retry_delays: List[float] = Field(list(DEFAULT_RETRY_DELAYS), alias='CORALOGIX_RETRY_DELAYS')
    computer_name: Optional[str] = Field(None, alias='CORALOGIX_COMPUTER_NAME')

    def logger_options(self, subsystem_name: Optional[str] = None, invocation_id: Optional[str] = "n/a") -> LoggerOptions:
        overrides = {}
        if self.computer_name:
            overrides["computer_name"] = self.computer_name
        return LoggerOptions(
            api_url=self.api_url,
            level=self.log_level,
            retry_delays=tuple(self.retry_delays),
            subsystem_name=subsystem_name,
            invocation_id=invocation_id,
            **overrides,
        )


def get_settings() -> AppSettings:
    """
    Loads the settings from the environment.

    Raises:
        ConfigurationError: If a required variable is missing or cannot be parsed.
    """
    try:
        return AppSettings()
    except ValidationError as e:
        names = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ConfigurationError(f"Missing or invalid configuration: {', '.join(names)}") from e
    except SettingsError as e:
        # e.g. CORALOGIX_RETRY_DELAYS that is not a JSON list
        raise ConfigurationError(f"Invalid configuration: {e}") from e
