"""
Bravia RPC - Wire Models

Request envelopes, results and the credential shapes read by the transport.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# "id" must be non-zero; 0 is reserved by the device.
DEFAULT_CALL_ID = 1
DEFAULT_VERSION = "1.0"

IRCC_SOAP_ACTION = '"urn:schemas-sony-com:service:IRCC:1#X_SendIRCC"'

_IRCC_ENVELOPE = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
    <s:Body>
        <u:X_SendIRCC xmlns:u="urn:schemas-sony-com:service:IRCC:1">
            <IRCCCode>{code}</IRCCCode>
        </u:X_SendIRCC>
    </s:Body>
</s:Envelope>"""

# Formats seen in the auth cookie "Expires" attribute, plus ISO for stored values.
_EXPIRY_FORMATS = (
    "%a, %d-%b-%Y %H:%M:%S GMT",
    "%a, %d %b %Y %H:%M:%S GMT",
)


def build_ircc_envelope(code: str) -> str:
    """Build the SOAP body carrying a single IRCC code."""
    return _IRCC_ENVELOPE.format(code=code)


def normalize_params(params: Any) -> List[Any]:
    """Params on the wire are always a list; a bare value becomes one element."""
    if params is None:
        return []
    if isinstance(params, list):
        return params
    return [params]


def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """Parse a cookie or ISO expiry into an aware datetime, None if unparseable."""
    if not value:
        return None
    for fmt in _EXPIRY_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class PinSession:
    """Session obtained through PIN pairing."""
    name: str
    uuid: str
    token: Optional[str] = None
    expires: Optional[str] = None

    @property
    def client_id(self) -> str:
        return f"{self.name}:{self.uuid}"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True when the token must be refreshed before use."""
        if not self.token:
            return True
        expires_at = parse_expiry(self.expires)
        if expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return expires_at <= now

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "uuid": self.uuid,
            "token": self.token,
            "expires": self.expires,
        }


@dataclass
class Credentials:
    """Either a pre-shared key or a PIN session; PSK takes precedence."""
    psk: Optional[str] = None
    pin: Optional[PinSession] = None

    def auth_headers(self) -> Dict[str, str]:
        if self.psk:
            return {"X-Auth-PSK": self.psk}
        if self.pin and self.pin.token:
            return {"Cookie": f"auth={self.pin.token}"}
        return {}


@dataclass
class InvocationRequest:
    """One JSON call envelope."""
    method: str
    version: str = DEFAULT_VERSION
    params: List[Any] = field(default_factory=list)
    id: int = DEFAULT_CALL_ID

    def __post_init__(self):
        self.params = normalize_params(self.params)
        self.version = self.version or DEFAULT_VERSION

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "version": self.version,
            "params": self.params,
        }


@dataclass
class InvocationResult:
    """Normalized outcome of a successful round trip."""
    status: int
    result: Optional[List[Any]] = None
    results: Optional[List[Any]] = None
    turned_off: bool = False
    id: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: List[str] = field(default_factory=list)

    @property
    def data(self) -> Optional[List[Any]]:
        """The multi-row ``results`` when present, otherwise ``result``."""
        return self.results if self.results is not None else self.result

    def to_dict(self) -> dict:
        body: Dict[str, Any] = {}
        if self.id is not None:
            body["id"] = self.id
        if self.results is not None:
            body["results"] = self.results
        if self.result is not None:
            body["result"] = self.result
        if self.turned_off:
            body["turnedOff"] = True
        return body
