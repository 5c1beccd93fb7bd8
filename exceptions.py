"""Custom exceptions for WiZ2MQTT."""


class WizException(Exception):
    """Base class for WiZ2MQTT exceptions."""

    pass


class PilotTimeoutError(WizException):
    """Raised when a bulb did not answer in time and nothing is cached."""

    pass


class WizTransportError(WizException):
    """Raised when a request to a bulb fails on the network or protocol level."""

    def __init__(self, message, code=None):
        self.code = code
        if code is not None:
            message = f"{message} (code {code})"
        super().__init__(message)
