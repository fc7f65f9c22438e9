"""
Bravia RPC - Test Fixtures

A virtual TV served by aiohttp that answers the introspection methods from an
in-memory catalog and records every request it receives.
"""

import asyncio
import socket
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from bravia_rpc.rpc.transport import Transport

AUTH_COOKIE = "auth=fresh-token; Path=/sony/; Max-Age=1209600; Expires=Tue, 02 Nov 2027 10:00:00 GMT"

SOAP_FAULT = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
  <s:Body>
    <s:Fault>
      <faultcode>s:Client</faultcode>
      <faultstring>UPnPError</faultstring>
      <detail>
        <UPnPError xmlns="urn:schemas-upnp-org:control-1-0">
          <errorCode>800</errorCode>
          <errorDescription>Action Failed</errorDescription>
        </UPnPError>
      </detail>
    </s:Fault>
  </s:Body>
</s:Envelope>"""


def default_catalog() -> Dict[str, Dict[str, Any]]:
    return {
        "system": {
            "versions": [["1.0", "1.1"]],
            "methods": {
                "1.0": [
                    ["getPowerStatus", [], ["{\"status\":\"string\"}"], "1.0"],
                    ["getSystemInformation", [], ["{\"product\":\"string\", \"model\":\"string\"}"], "1.0"],
                    ["setPowerStatus", ["{\"status\":\"bool\"}"], [], "1.0"],
                ],
                "1.1": [
                    ["getPowerStatus", [], ["{\"status\":\"string\"}"], "1.1"],
                ],
            },
        },
        "audio": {
            "versions": ["1.0"],
            "methods": {
                "1.0": [
                    ["getVolumeInformation", [], ["{\"target\":\"string\", \"volume\":\"int\"}*"], "1.0"],
                    ["setAudioMute", ["{\"status\":\"bool\"}"], [], "1.0"],
                ],
            },
        },
        "accessControl": {
            "versions": [["1.0"]],
            "methods": {
                "1.0": [
                    ["actRegister", ["{\"clientid\":\"string\", \"nickname\":\"string\"}", "{\"clientid\":\"string\", \"value\":\"string\", \"nickname\":\"string\", \"function\":\"string\"}*"], [], "1.0"],
                ],
            },
        },
    }


class VirtualTV:
    """In-process stand-in for the device's /sony endpoints."""

    def __init__(self):
        self.catalog = default_catalog()
        self.responses: Dict[Tuple[str, str], Any] = {}
        self.http_errors: Dict[str, Tuple[int, str]] = {}
        self.requests: List[Dict[str, Any]] = []
        self.delay = 0.0
        self.base_url: Optional[str] = None

        self.app = web.Application()
        self.app.router.add_post("/sony/{endpoint}", self.handle)

    def calls(self, method: Optional[str] = None, endpoint: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            r for r in self.requests
            if (method is None or r["method"] == method) and (endpoint is None or r["endpoint"] == endpoint)
        ]

    def respond(self, endpoint: str, method: str, body: Any) -> None:
        """Answer ``method`` with a fixed JSON body or a ``responder(call, request)``."""
        self.responses[(endpoint, method)] = body

    async def handle(self, request: web.Request) -> web.StreamResponse:
        endpoint = request.match_info["endpoint"]

        if self.delay:
            await asyncio.sleep(self.delay)

        if endpoint == "IRCC":
            text = await request.text()
            self.requests.append({"endpoint": endpoint, "method": None, "body": text, "headers": dict(request.headers)})
        else:
            call = await request.json()
            self.requests.append({
                "endpoint": endpoint,
                "method": call.get("method"),
                "version": call.get("version"),
                "params": call.get("params"),
                "id": call.get("id"),
                "headers": dict(request.headers),
            })

        if endpoint in self.http_errors:
            status, text = self.http_errors[endpoint]
            return web.Response(status=status, text=text, content_type="text/xml")

        if endpoint == "IRCC":
            return web.Response(status=200, text="")

        method = call.get("method")
        responder = self.responses.get((endpoint, method))
        if callable(responder):
            return await responder(call, request)
        if responder is not None:
            return web.json_response(responder)

        service = self.catalog.get(endpoint)
        if method == "getVersions":
            if service is None:
                return web.json_response({"error": [404, "Not Found"], "id": call.get("id")})
            return web.json_response({"result": service["versions"], "id": call.get("id")})

        if method == "getMethodTypes":
            version = call["params"][0]
            return web.json_response({"results": service["methods"].get(version, []), "id": call.get("id")})

        return web.json_response({"result": [], "id": call.get("id")})


@pytest_asyncio.fixture
async def tv():
    """Running virtual TV; ``tv.base_url`` points at its /sony root."""
    device = VirtualTV()
    server = TestServer(device.app)
    await server.start_server()
    device.base_url = str(server.make_url("/sony"))
    yield device
    await server.close()


@pytest_asyncio.fixture
async def transport():
    t = Transport(timeout=2.0)
    yield t
    await t.close()


@pytest.fixture
def closed_port() -> int:
    """A local TCP port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
