# lambdas/forward_logs/errors.py


class ForwarderError(Exception):
    """Base class for errors raised by the log forwarder."""
    pass


class ConfigurationError(ForwarderError, ValueError):
    """Required configuration is missing or malformed."""
    pass


class PayloadError(ForwarderError, ValueError):
    """The awslogs payload could not be decoded."""
    pass


class DeliveryError(ForwarderError):
    """
    Coralogix rejected the batch with a non-2xx status.
    Never retried; transport failures are raised as-is by requests instead.
    """
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Failed to send logs with status {status_code}: {body}")
