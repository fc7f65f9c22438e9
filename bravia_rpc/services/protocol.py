"""
Bravia RPC - Service Protocol

One versioned endpoint of the device API (``/sony/<endpoint>``).

The endpoint's method catalog is discovered lazily through the
``getVersions``/``getMethodTypes`` introspection methods, once per instance,
and every call is resolved against it before it reaches the transport.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from ..rpc.errors import BraviaError, UnknownMethodError
from ..rpc.models import DEFAULT_VERSION, Credentials, InvocationRequest, InvocationResult, normalize_params
from ..rpc.transport import Transport
from .catalog import MethodDescriptor, ServiceCatalog

logger = structlog.get_logger(__name__)

GET_VERSIONS = "getVersions"
GET_METHOD_TYPES = "getMethodTypes"


@dataclass
class ServiceDescription:
    """Catalog snapshot returned by ``describe``."""
    endpoint: str
    methods: List[MethodDescriptor] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "methods": [m.to_dict() for m in self.methods],
        }


class ServiceProtocol:
    """Client for one endpoint; owns that endpoint's method catalog."""

    def __init__(
        self,
        name: str,
        base_url: str,
        credentials: Credentials,
        transport: Transport,
    ):
        self.name = name
        self.url = f"{str(base_url).rstrip('/')}/{name}"
        self.credentials = credentials
        self.transport = transport

        self._catalog = ServiceCatalog()
        self._discovered = False
        self._lock = asyncio.Lock()
        self._generation = 0

    @property
    def is_ready(self) -> bool:
        """True once discovery has completed (even with an empty catalog)."""
        return self._discovered

    @property
    def catalog(self) -> ServiceCatalog:
        return self._catalog

    def invalidate(self) -> None:
        """Drop the catalog so the next call discovers again."""
        self._generation += 1
        self._catalog.clear()
        self._discovered = False

    async def _call(
        self,
        method: str,
        version: str = DEFAULT_VERSION,
        params: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> InvocationResult:
        request = InvocationRequest(method=method, version=version, params=params)
        return await self.transport.send(self.url, self.credentials, request, headers)

    async def get_versions(self) -> List[Any]:
        """Raw ``getVersions`` answer; elements are versions or lists of them."""
        response = await self._call(GET_VERSIONS)
        return response.result or []

    async def describe(self, version: Optional[str] = None) -> ServiceDescription:
        """Discover once, then return the cached catalog, optionally for one version.

        A device that is turned off yields an empty description and is asked
        again on the next call.
        """
        if await self._ensure_discovered() is not None:
            return ServiceDescription(endpoint=self.name)
        return ServiceDescription(endpoint=self.name, methods=self._catalog.methods(version))

    async def _ensure_discovered(self) -> Optional[InvocationResult]:
        """Run discovery once; return the power-off result if the device is asleep."""
        if self._discovered:
            return None

        async with self._lock:
            # Another caller may have finished discovery while we waited.
            while not self._discovered:
                generation = self._generation
                try:
                    powered_off = await self._discover()
                except BraviaError as e:
                    if not e.not_found:
                        self._catalog.clear()
                        raise
                    logger.info("Endpoint does not support introspection", endpoint=self.name, url=self.url)
                    powered_off = None

                if powered_off is not None:
                    self._catalog.clear()
                    return powered_off

                if generation != self._generation:
                    # Invalidated mid-discovery; the catalog may be partial.
                    self._catalog.clear()
                    continue

                self._discovered = True
            return None

    async def _discover(self) -> Optional[InvocationResult]:
        response = await self._call(GET_VERSIONS)
        if response.turned_off:
            logger.info("Device is turned off, discovery postponed", endpoint=self.name)
            return response

        for group in response.result or []:
            subversions = group if isinstance(group, list) else [group]
            for subversion in subversions:
                response = await self._call(GET_METHOD_TYPES, params=[subversion])
                if response.turned_off:
                    logger.info("Device is turned off, discovery postponed", endpoint=self.name)
                    return response
                self._register(response.results or [], subversion)

        logger.debug("Discovery complete", endpoint=self.name, methods=len(self._catalog))
        return None

    def _register(self, rows: List[Any], api_version: str) -> None:
        for row in rows:
            if not isinstance(row, list) or not row:
                continue
            descriptor = MethodDescriptor.from_row(row)
            if self._catalog.add(descriptor):
                logger.debug(
                    "Registered method",
                    endpoint=self.name,
                    method=descriptor.name,
                    version=descriptor.version,
                    api_version=api_version,
                )

    async def invoke(
        self,
        method: str,
        version: str = DEFAULT_VERSION,
        params: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> InvocationResult:
        """Call ``method`` on this endpoint.

        A version the device does not advertise for ``method`` is replaced
        with the latest discovered one. An unknown method fails before any
        network traffic. While the device is turned off its power-off
        result is returned and discovery is retried on the next call.
        """
        version = version or DEFAULT_VERSION
        powered_off = await self._ensure_discovered()
        if powered_off is not None:
            return powered_off

        descriptor = self._catalog.resolve(method, version)
        if descriptor is None:
            logger.debug(
                "Unknown method",
                endpoint=self.name,
                method=method,
                available=sorted({d.name for d in self._catalog}),
            )
            raise UnknownMethodError(
                method,
                self.name,
                payload={"method": method, "version": version, "params": normalize_params(params)},
                url=self.url,
            )

        if descriptor.version != version:
            logger.debug(
                "Requested version not available, using latest",
                endpoint=self.name,
                method=method,
                requested=version,
                version=descriptor.version,
            )

        logger.debug("Invoking method", endpoint=self.name, method=method, version=descriptor.version)
        return await self._call(method, descriptor.version, params, headers)
