class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PayloadError(RelayError):
    """Inbound payload is malformed or incomplete."""

    status_code = 400


class SignatureError(RelayError):
    """Signature header is missing or does not match the body."""

    status_code = 401


class OperatorDeliveryError(RelayError):
    """Operator channel did not accept a site-triggered notification."""

    status_code = 500
