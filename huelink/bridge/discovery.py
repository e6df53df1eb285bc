"""
Bridge location.

A configured address wins; otherwise the first bridge reported by the
discovery service is used. Discovery is attempted once per start.
"""

import logging
from typing import Optional

from .client import HueClient
from .errors import DiscoveryFailed, HueError

logger = logging.getLogger(__name__)


async def locate_bridge(client: HueClient, address: Optional[str] = None) -> str:
    """
    Resolve the bridge address.
    
    Args:
        client: HTTP client used for the discovery request
        address: Configured address, returned as-is when set
    
    Returns:
        Bridge address (IP, optionally with port)
    
    Raises:
        DiscoveryFailed: If the discovery request fails or finds nothing
    """
    if address:
        return address
    
    try:
        bridges = await client.discover()
    except HueError as e:
        raise DiscoveryFailed(f"Bridge discovery failed: {e.message}") from e
    
    if not bridges:
        raise DiscoveryFailed("No bridges found")
    
    ip = bridges[0].get("internalipaddress")
    if not ip:
        raise DiscoveryFailed(f"Invalid discovery entry {bridges[0]!r}")
    
    logger.info(f"Found bridge at {ip}")
    return ip
