"""
Bravia RPC - Transport

Sends one request to one endpoint URL over HTTP and normalizes the outcome:
device soft-errors are masked or classified, HTTP and network failures are
turned into BraviaError subclasses carrying the original request.
"""

import asyncio
import errno
import json
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional, Union

import aiohttp
import structlog

from .errors import DeviceProtocolError, InvalidResponseError, NoResponseError
from .models import IRCC_SOAP_ACTION, Credentials, InvocationRequest, InvocationResult

logger = structlog.get_logger(__name__)

Payload = Union[InvocationRequest, str]

ILLEGAL_STATE_MESSAGE = "Illegal State"
POWER_OFF_CODE = 40005
POWER_OFF_MESSAGES = ("Display Is Turned off", "not power-on")

# Substituted for "Illegal State": the TV is showing an app, not a source.
APPLICATION_SOURCE = {
    "uri": False,
    "source": "application",
    "title": "Application",
}


def parse_soap_fault(body: str) -> Dict[str, str]:
    """Extract ``errorCode``/``errorDescription`` from a UPnP SOAP fault.

    Best effort: returns an empty dict when the body is not such a fault.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return {}

    for element in root.iter():
        if _local_name(element.tag) != "UPnPError":
            continue
        fault = {}
        for child in element:
            name = _local_name(child.tag)
            if name in ("errorCode", "errorDescription"):
                fault[name] = (child.text or "").strip()
        return fault
    return {}


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _network_error_code(err: BaseException) -> str:
    if isinstance(err, asyncio.TimeoutError):
        return "ETIMEDOUT"
    errno_value = getattr(err, "errno", None)
    if errno_value:
        return errno.errorcode.get(errno_value, str(errno_value))
    return type(err).__name__


def _diagnostic_payload(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, InvocationRequest):
        return payload.to_dict()
    return {"id": None, "method": None, "version": None, "params": []}


class Transport:
    """HTTP transport for device endpoints."""

    def __init__(
        self,
        timeout: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_headers(
        self,
        payload: Payload,
        credentials: Credentials,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Merge content, caller and auth headers; auth headers always win."""
        merged: Dict[str, str] = {}
        if not isinstance(payload, InvocationRequest):
            merged["Content-Type"] = "text/xml; charset=UTF-8"
            merged["SOAPACTION"] = IRCC_SOAP_ACTION
        merged.update(headers or {})
        merged.update(credentials.auth_headers())
        return merged

    async def send(
        self,
        url: str,
        credentials: Credentials,
        payload: Payload,
        headers: Optional[Dict[str, str]] = None,
    ) -> InvocationResult:
        """POST one payload to ``url`` and return the normalized result."""
        request_headers = self.build_headers(payload, credentials, headers)
        is_json = isinstance(payload, InvocationRequest)
        body_kwargs = {"json": payload.to_dict()} if is_json else {"data": payload}
        diagnostics = _diagnostic_payload(payload)

        logger.debug("Sending request", url=url, method=diagnostics["method"], version=diagnostics["version"])

        session = self._get_session()
        try:
            async with session.post(url, headers=request_headers, **body_kwargs) as resp:
                try:
                    text = await resp.text()
                except UnicodeDecodeError as e:
                    logger.warning("Undecodable response body", url=url, status=resp.status)
                    raise InvalidResponseError(
                        resp.status,
                        f"Undecodable response body: {e}",
                        payload=diagnostics,
                        url=url,
                    ) from e

                if resp.status >= 400:
                    soap = parse_soap_fault(text) if text else {}
                    logger.warning("Device returned HTTP error", url=url, status=resp.status, soap=soap)
                    raise InvalidResponseError(
                        resp.status,
                        resp.reason or "",
                        payload=diagnostics,
                        url=url,
                        soap=soap,
                    )

                result = InvocationResult(
                    status=resp.status,
                    headers=dict(resp.headers),
                    cookies=resp.headers.getall("Set-Cookie", []),
                )
                if not is_json:
                    return result

                return self._classify(self._decode(text, resp.status, diagnostics, url), result, diagnostics, url)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            code = _network_error_code(e)
            message = str(e) or type(e).__name__
            logger.warning("No response from device", url=url, code=code, error=message)
            raise NoResponseError(code, message, payload=diagnostics, url=url) from e

    def _decode(self, text: str, status: int, diagnostics: Dict, url: str) -> Dict:
        if not text.strip():
            return {}
        try:
            body = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(status, f"Malformed JSON body: {e}", payload=diagnostics, url=url) from e
        if not isinstance(body, dict):
            raise InvalidResponseError(status, "Response body is not an object", payload=diagnostics, url=url)
        return body

    def _classify(
        self,
        body: Dict,
        result: InvocationResult,
        diagnostics: Dict,
        url: str,
    ) -> InvocationResult:
        """Fold the device ``error`` member into a result or a raised error."""
        result.id = body.get("id")
        result.result = body.get("result")
        result.results = body.get("results")

        # "error" is defined as [error_code, error_message].
        error = body.get("error")
        if not error:
            return result

        if isinstance(error, list) and len(error) >= 2:
            code, message = error[0], error[1]
        else:
            code, message = None, str(error)

        if message == ILLEGAL_STATE_MESSAGE:
            logger.debug("Masking illegal state", url=url, method=diagnostics["method"])
            result.result = [dict(APPLICATION_SOURCE)]
            return result

        if code == POWER_OFF_CODE or message in POWER_OFF_MESSAGES:
            logger.info("Device is turned off", url=url, code=code, message=message)
            result.result = list(error)
            result.turned_off = True
            return result

        logger.warning("Device reported error", url=url, code=code, message=message, method=diagnostics["method"])
        raise DeviceProtocolError(code, message, payload=diagnostics, url=url)
