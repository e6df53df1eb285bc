"""
Error taxonomy for talking to a Hue bridge.

Every failure the bridge side can produce is a HueError subclass with a
stable code, so the session can turn any of them into a status message.
"""

from typing import Optional


class HueError(Exception):
    """Base exception for bridge errors."""
    
    def __init__(self, message: str, code: str = "HUE_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class DiscoveryFailed(HueError):
    """Raised when no bridge address could be resolved."""
    
    def __init__(self, message: str = "No bridges found"):
        super().__init__(message, code="DISCOVERY_FAILED")


class PairingFailed(HueError):
    """Raised when the bridge refuses to hand out a credential."""
    
    def __init__(self, description: str):
        super().__init__(description, code="PAIRING_FAILED")
        self.description = description


class ProtocolError(HueError):
    """Raised when a bridge reply does not have the expected shape."""
    
    def __init__(self, message: str, body: Optional[object] = None):
        super().__init__(message, code="PROTOCOL_ERROR")
        self.body = body


class TransportError(HueError):
    """Raised on connection failures, timeouts and non-200 replies."""
    
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, code="TRANSPORT_ERROR")
        self.status = status


class DeviceLogicalError(HueError):
    """The bridge understood the request but rejected it."""
    
    def __init__(self, description: str, resource: Optional[str] = None):
        super().__init__(description, code="DEVICE_ERROR")
        self.description = description
        self.resource = resource
