"""
Hue bridge access.

Key Components:
- errors: HueError taxonomy
- models: device records, tagged results
- client: aiohttp client for the v1 REST API
- discovery: bridge address resolution
- pairing: link-button credential negotiation
"""

from .errors import (
    HueError,
    DiscoveryFailed,
    PairingFailed,
    ProtocolError,
    TransportError,
    DeviceLogicalError,
)

from .models import (
    HueType,
    COLOR_MODES,
    DeviceRecord,
    ResultKind,
    HueResult,
    parse_envelope,
    BridgeSession,
)

from .client import (
    HueClient,
    ClientConfig,
    DISCOVERY_URL,
    api_url,
    resource_path,
)

from .discovery import locate_bridge

from .pairing import (
    PairingNegotiator,
    PairingState,
    DEFAULT_DEVICE_TYPE,
)


__all__ = [
    # Errors
    "HueError",
    "DiscoveryFailed",
    "PairingFailed",
    "ProtocolError",
    "TransportError",
    "DeviceLogicalError",
    
    # Models
    "HueType",
    "COLOR_MODES",
    "DeviceRecord",
    "ResultKind",
    "HueResult",
    "parse_envelope",
    "BridgeSession",
    
    # Client
    "HueClient",
    "ClientConfig",
    "DISCOVERY_URL",
    "api_url",
    "resource_path",
    
    # Discovery & pairing
    "locate_bridge",
    "PairingNegotiator",
    "PairingState",
    "DEFAULT_DEVICE_TYPE",
]
