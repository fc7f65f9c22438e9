"""
Bravia RPC

Async client for the JSON-RPC control API of Sony Bravia televisions:
- ServiceProtocol: per-endpoint method discovery, version resolution, calls
- Transport: HTTP round trips with device error classification
- BraviaClient: one device, all endpoints, PIN pairing
"""

from .client import BraviaClient, generate_uuid
from .config import Settings
from .log import configure_logging
from .rpc import (
    BraviaError,
    Credentials,
    DeviceProtocolError,
    InvalidResponseError,
    InvocationRequest,
    InvocationResult,
    NoResponseError,
    PairingError,
    PinRequiredError,
    PinSession,
    PowerOffError,
    Transport,
    UnknownMethodError,
    UnknownServiceError,
)
from .services import MethodDescriptor, ServiceCatalog, ServiceDescription, ServiceProtocol

__version__ = "1.0.0"

__all__ = [
    "BraviaClient",
    "BraviaError",
    "Credentials",
    "DeviceProtocolError",
    "InvalidResponseError",
    "InvocationRequest",
    "InvocationResult",
    "MethodDescriptor",
    "NoResponseError",
    "PairingError",
    "PinRequiredError",
    "PinSession",
    "PowerOffError",
    "ServiceCatalog",
    "ServiceDescription",
    "ServiceProtocol",
    "Settings",
    "Transport",
    "UnknownMethodError",
    "UnknownServiceError",
    "configure_logging",
    "generate_uuid",
]
