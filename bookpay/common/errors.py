"""Error kinds raised by the booking flow and their HTTP mapping.

Each error carries the status code and the message that is safe to show a
client. Diagnostic detail stays in the logs.
"""


class BookingFlowError(Exception):
    """Base class for every error the handlers convert to a JSON response."""

    status_code = 500
    kind = "BookingFlowError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"success": False, "error": self.kind, "message": self.message}


class InvalidInput(BookingFlowError):
    """Missing or malformed request fields."""

    status_code = 400
    kind = "InvalidInput"


class ConfigError(BookingFlowError):
    """A required secret or setting is not configured."""

    status_code = 500
    kind = "ConfigError"


class GatewayError(BookingFlowError):
    """The payment gateway call failed."""

    status_code = 500
    kind = "GatewayError"


class SignatureMismatch(BookingFlowError):
    """The claimed payment signature does not match the expected one."""

    status_code = 400
    kind = "SignatureMismatch"


class PersistenceError(BookingFlowError):
    """The store rejected the booking insert."""

    status_code = 500
    kind = "PersistenceError"


class UnhandledCrash(BookingFlowError):
    """Anything not anticipated by the handlers."""

    status_code = 500
    kind = "UnhandledCrash"


class StoreError(Exception):
    """Raised by store adapters; message is the store's own diagnostic."""


class GatewayCallError(Exception):
    """Raised by gateway adapters when the remote call fails."""
