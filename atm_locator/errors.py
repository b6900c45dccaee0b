"""Error taxonomy surfaced by the ATM proximity query."""


class ProximityError(Exception):
    """Base error; `message` is the only text ever returned to the client."""

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidInput(ProximityError):
    status_code = 400
    message = "Missing required parameters"


class ConfigurationError(ProximityError):
    status_code = 500
    message = "Missing Cloudflare configuration"


class BackendError(ProximityError):
    """Raised when the D1 backend fails or returns an unusable payload."""

    status_code = 500
    message = "Internal Server Error"
