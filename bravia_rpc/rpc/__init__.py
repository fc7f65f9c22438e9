"""
Bravia RPC - Transport Package

HTTP transport, wire models and the classified error hierarchy.
"""

from .errors import (
    BraviaError,
    DeviceProtocolError,
    InvalidResponseError,
    NoResponseError,
    PairingError,
    PinRequiredError,
    PowerOffError,
    UnknownMethodError,
    UnknownServiceError,
)
from .models import Credentials, InvocationRequest, InvocationResult, PinSession, build_ircc_envelope
from .transport import Transport

__all__ = [
    "BraviaError",
    "Credentials",
    "DeviceProtocolError",
    "InvalidResponseError",
    "InvocationRequest",
    "InvocationResult",
    "NoResponseError",
    "PairingError",
    "PinRequiredError",
    "PinSession",
    "PowerOffError",
    "Transport",
    "UnknownMethodError",
    "UnknownServiceError",
    "build_ircc_envelope",
]
