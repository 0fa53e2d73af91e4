"""Error taxonomy shared by the gateways and the HTTP service."""


class GatewayError(Exception):
    """A gateway failure that maps onto an HTTP status and a client-facing message."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(GatewayError):
    """The upstream API key is not configured."""

    status_code = 500


class InvalidInputError(GatewayError):
    """The request body is missing a field or carries the wrong type."""

    status_code = 400


class UpstreamError(GatewayError):
    """The third-party service failed or answered with something unusable."""

    status_code = 500


class WizardStateError(RuntimeError):
    """An action was attempted in a wizard step where it is not allowed."""
