"""
Bravia RPC - Errors

Classified errors raised by the transport and service layers.
Every error carries the same diagnostic fields so callers can branch on
``code`` without caring which layer produced it.
"""

from typing import Any, Dict, Optional


class BraviaError(Exception):
    """Base error for everything this package raises."""

    title = "Error"

    def __init__(
        self,
        code: Any,
        message: str,
        payload: Optional[Dict] = None,
        url: Optional[str] = None,
        soap: Optional[Dict] = None,
    ):
        super().__init__(f"{code} - {message}")
        self.code = code
        self.message = message
        self.payload = payload or {}
        self.url = url
        self.soap = soap or {}

    @property
    def not_found(self) -> bool:
        return self.code == 404

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and JSON serialization."""
        return {
            "title": self.title,
            "code": self.code,
            "message": self.message,
            "soap": self.soap,
            "payload": self.payload,
            "url": self.url,
        }


class UnknownServiceError(BraviaError):
    """Requested endpoint is not one of the configured services."""

    title = "Unknown Service"

    def __init__(self, service: str):
        super().__init__("UNKNOWN", "Unknown Service")
        self.service = service

    def __str__(self) -> str:
        return f'Service "{self.service}" not known!'


class UnknownMethodError(BraviaError):
    """Method is absent from the endpoint's discovered catalog."""

    title = "Unknown Service Method"

    def __init__(self, method: str, endpoint: str, payload: Optional[Dict] = None, url: Optional[str] = None):
        super().__init__("UNKNOWN", "Unknown Service Method", payload=payload, url=url)
        self.method = method
        self.endpoint = endpoint

    def __str__(self) -> str:
        return f'Service method "{self.method}" not known for /{self.endpoint}!'


class InvalidResponseError(BraviaError):
    """The device answered with a non-2xx HTTP status."""

    title = "Invalid Response"


class DeviceProtocolError(InvalidResponseError):
    """The device answered 2xx but reported ``error: [code, message]``."""


class NoResponseError(BraviaError):
    """No HTTP response at all (refused, unreachable, DNS, timeout)."""

    title = "No Response"


class PairingError(BraviaError):
    """Registration with the device did not produce a session token."""

    title = "Pairing Failed"

    def __init__(self, message: str, code: Any = "PAIRING"):
        super().__init__(code, message)


class PinRequiredError(PairingError):
    """Device rejected the registration; a PIN shown on screen is needed."""

    title = "PIN Required"

    def __init__(self, message: str = "PIN required to register with the device"):
        super().__init__(message, code=401)


class PowerOffError(PairingError):
    """Device is asleep and cannot display the pairing PIN."""

    title = "Device Turned Off"

    def __init__(self, message: str = "Please turn on the TV to handle authentication through PIN"):
        super().__init__(message, code=40005)
