"""
Bravia RPC - Services Package

Each endpoint of the device API is a ServiceProtocol that discovers its own
method catalog:
- ServiceProtocol: catalog discovery, version resolution, invocation
- ServiceCatalog: discovered (name, version) pairs in discovery order
- MethodDescriptor: one method at one version with decoded parameters
"""

from .catalog import MethodDescriptor, ObjectParam, ScalarParam, ServiceCatalog, decode_param
from .protocol import ServiceDescription, ServiceProtocol

__all__ = [
    "MethodDescriptor",
    "ObjectParam",
    "ScalarParam",
    "ServiceCatalog",
    "ServiceDescription",
    "ServiceProtocol",
    "decode_param",
]
