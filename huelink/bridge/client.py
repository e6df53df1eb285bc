"""
HTTP client for the Hue bridge REST API (v1).

Usage:
    client = HueClient()
    
    bridges = await client.discover()
    result = await client.create_user("192.168.1.20", "huelink#python")
    lights = await client.get_resources("192.168.1.20", username, HueType.LIGHTS)
    
    await client.close()
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from .errors import DeviceLogicalError, ProtocolError, TransportError
from .models import HueResult, HueType, ResultKind, parse_envelope

logger = logging.getLogger(__name__)

DISCOVERY_URL = "https://discovery.meethue.com/"


@dataclass
class ClientConfig:
    """HTTP client configuration."""
    timeout: float = 10.0
    discovery_url: str = DISCOVERY_URL


def api_url(address: str, path: str = "") -> str:
    """Build a bridge API URL; `address` may carry a port."""
    return f"http://{address}/api{path}"


def resource_path(hue_type: HueType, device_id: str) -> str:
    """Path of the writable state of one light or group."""
    return f"/{hue_type.value}/{device_id}/{hue_type.state_key}"


class HueClient:
    """
    Thin aiohttp wrapper around the bridge endpoints we use.
    
    GET calls raise HueError subclasses; POST/PUT calls return a HueResult
    so callers can branch on the bridge's success/error envelope.
    """
    
    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or ClientConfig()
        self._session = session
        self._owns_session = session is None
        self._closed = False
    
    async def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise TransportError("Client is closed")
        
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
            self._owns_session = True
        return self._session
    
    async def close(self) -> None:
        """Close the owned session; later requests fail instead of reopening it."""
        self._closed = True
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
    
    async def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        session = await self._get_session()
        
        try:
            async with session.request(method, url, json=payload) as resp:
                if resp.status != 200:
                    raise TransportError(f"HTTP {resp.status} from {url}", status=resp.status)
                
                text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} {url} failed: {str(e) or type(e).__name__}") from e
        
        try:
            body = json.loads(text)
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON from {url}: {e}", body=text) from e
        
        logger.debug(f"{method} {url} -> {text}")
        return body
    
    async def discover(self) -> List[Dict[str, Any]]:
        """Ask the discovery service for bridges on the local network."""
        body = await self._request("GET", self.config.discovery_url)
        
        if not isinstance(body, list):
            raise ProtocolError(f"Invalid discovery response {body!r}", body=body)
        
        return [entry for entry in body if isinstance(entry, dict)]
    
    async def create_user(self, address: str, device_type: str) -> HueResult:
        """POST /api; only succeeds within 30s of a link button press."""
        try:
            body = await self._request("POST", api_url(address), {"devicetype": device_type})
        except TransportError as e:
            return HueResult.transport_error(e.message)
        except ProtocolError as e:
            return HueResult.protocol_error(e.message)
        
        return parse_envelope(body)
    
    async def get_resources(self, address: str, username: str, hue_type: HueType) -> Dict[str, Any]:
        """GET /api/{username}/{lights|groups} as an id -> record mapping."""
        body = await self._request("GET", api_url(address, f"/{username}/{hue_type.value}"))
        
        if isinstance(body, dict):
            return body
        
        # Whole-request failures (e.g. unauthorized user) come back as a list
        result = parse_envelope(body)
        if result.kind == ResultKind.DEVICE_ERROR:
            raise DeviceLogicalError(result.error, resource=hue_type.value)
        
        raise ProtocolError(f"Invalid {hue_type.value} response {body!r}", body=body)
    
    async def put_state(
        self,
        address: str,
        username: str,
        hue_type: HueType,
        device_id: str,
        payload: Dict[str, Any],
    ) -> HueResult:
        """PUT a state change to one light or group."""
        url = api_url(address, f"/{username}{resource_path(hue_type, device_id)}")
        
        try:
            body = await self._request("PUT", url, payload)
        except TransportError as e:
            return HueResult.transport_error(e.message)
        except ProtocolError as e:
            return HueResult.protocol_error(e.message)
        
        return parse_envelope(body)
