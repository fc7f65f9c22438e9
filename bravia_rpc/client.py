"""
Bravia RPC - Device Client

Facade over one device: one ServiceProtocol per endpoint sharing a transport
and a credentials value, plus non-interactive PIN pairing.
"""

import asyncio
import base64
import hashlib
from http.cookies import CookieError, SimpleCookie
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import structlog

from .config import Settings
from .rpc.errors import BraviaError, PairingError, PinRequiredError, PowerOffError, UnknownServiceError
from .rpc.models import DEFAULT_VERSION, Credentials, InvocationResult, PinSession
from .rpc.transport import Transport
from .services.protocol import ServiceProtocol

logger = structlog.get_logger(__name__)

UUID_TEMPLATE = "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx"

PinProvider = Callable[[], Awaitable[str]]


def generate_uuid(name: str) -> str:
    """Deterministic UUID-shaped id derived from the SHA-1 of ``name``."""
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()
    chars = []
    i = 0
    for c in UUID_TEMPLATE:
        if c == "x":
            chars.append(digest[i])
            i += 1
        elif c == "y":
            chars.append(format((int(digest[i], 16) & 0x3) | 0x8, "x"))
            i += 1
        else:
            chars.append(c)
    return "".join(chars)


def parse_auth_cookie(cookies: List[str]) -> Optional[Tuple[str, Optional[str]]]:
    """Return ``(token, expires)`` from the first ``auth`` Set-Cookie value."""
    for raw in cookies:
        jar = SimpleCookie()
        try:
            jar.load(raw)
        except CookieError:
            continue
        morsel = jar.get("auth")
        if morsel is not None and morsel.value:
            return morsel.value, morsel["expires"] or None
    return None


class BraviaClient:
    """Client for one device."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[Transport] = None):
        self.settings = settings or Settings()
        self.transport = transport or Transport(timeout=self.settings.timeout)
        self._owns_transport = transport is None

        self.url = self.settings.base_url
        self.credentials = Credentials()
        self.services: Dict[str, ServiceProtocol] = {}
        self.initialized = False

        logger.debug("Using url", url=self.url)

    async def __aenter__(self) -> "BraviaClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    async def initialize(self, pair: bool = False) -> None:
        """Create endpoints and credentials; refresh an expired PIN session."""
        if self.initialized:
            return

        for name in self.settings.services_list:
            logger.debug("Creating service", endpoint=name)
            self.services[name] = ServiceProtocol(name, self.url, self.credentials, self.transport)

        if self.settings.use_psk:
            self.credentials.psk = self.settings.psk
        elif self.credentials.pin is None:
            self.credentials.pin = PinSession(
                name=self.settings.name,
                uuid=generate_uuid(self.settings.name),
                token=self.settings.token,
                expires=self.settings.token_expires,
            )

        self.initialized = True

        if self.credentials.pin and not pair and self.credentials.pin.is_expired():
            logger.info("Session token missing or expired, refreshing", name=self.credentials.pin.name)
            await self.pair(refresh=True)

    def service(self, name: str) -> ServiceProtocol:
        service = self.services.get(name)
        if service is None:
            logger.debug("Unknown service", endpoint=name, available=list(self.services))
            raise UnknownServiceError(name)
        return service

    async def execute(
        self,
        service: str,
        method: str,
        version: str = DEFAULT_VERSION,
        params: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> InvocationResult:
        """Invoke ``method`` on the named endpoint."""
        await self.initialize()
        return await self.service(service).invoke(method, version, params, headers)

    async def describe(self) -> List[Dict[str, Any]]:
        """Describe every endpoint concurrently."""
        await self.initialize()

        descriptions = await asyncio.gather(*(s.describe() for s in self.services.values()))
        return [
            {"service": d.endpoint, "methods": [m.to_dict() for m in d.methods]}
            for d in descriptions
        ]

    async def pair(
        self,
        pin: Optional[str] = None,
        refresh: bool = False,
        pin_provider: Optional[PinProvider] = None,
    ) -> PinSession:
        """Register with the device and store the issued session token.

        Without ``pin`` this asks the device to renew an existing
        registration. When the device answers 401, ``pin_provider`` is
        awaited once for the PIN shown on screen.
        """
        await self.initialize(pair=True)

        session = self.credentials.pin
        if session is None:
            raise PairingError("PIN pairing is not available while a pre-shared key is configured")

        headers = {}
        if pin:
            logger.debug("Using PIN for authentication", name=session.name)
            encoded = base64.b64encode(f":{pin}".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {encoded}"

        params = [
            {
                "clientid": session.client_id,
                "nickname": session.name,
            },
            [
                {
                    "clientid": session.client_id,
                    "value": "yes",
                    "nickname": session.name,
                    "function": "WOL",
                }
            ],
        ]

        try:
            response = await self.execute("accessControl", "actRegister", "1.0", params, headers)
        except BraviaError as e:
            if e.code != 401:
                raise
            if refresh:
                raise PinRequiredError("Token refresh rejected; register the device with a PIN first") from e
            if pin_provider is None:
                raise PinRequiredError() from e
            logger.info("Device requested a PIN", name=session.name)
            return await self.pair(await pin_provider())

        if response.turned_off:
            raise PowerOffError()

        cookie = parse_auth_cookie(response.cookies)
        if cookie is None:
            logger.warning("Registration response carried no auth cookie", name=session.name)
            raise PairingError("Device did not return an auth cookie")

        session.token, session.expires = cookie
        logger.info("Paired with device", name=session.name, expires=session.expires)
        return session
