"""
Link-button pairing.

The bridge only issues a username during the ~30 seconds after its link
button is pressed. One request is made per attempt; retrying is up to the
operator.
"""

import logging
from enum import Enum
from typing import Optional

from .client import HueClient
from .errors import PairingFailed, ProtocolError, TransportError
from .models import ResultKind

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_TYPE = "huelink#python"


class PairingState(str, Enum):
    AWAITING_LINK_PRESS = "awaiting_link_press"
    CREDENTIAL_OBTAINED = "credential_obtained"
    PAIRING_FAILED = "pairing_failed"


class PairingNegotiator:
    """Obtains a bridge credential for one address."""
    
    def __init__(self, client: HueClient, address: str, device_type: str = DEFAULT_DEVICE_TYPE):
        self.client = client
        self.address = address
        self.device_type = device_type
        self.state = PairingState.AWAITING_LINK_PRESS
        self.credential: Optional[str] = None
        self.last_error: Optional[str] = None
    
    async def pair(self) -> str:
        """
        Send one pairing request.
        
        Returns:
            The new username
        
        Raises:
            PairingFailed: The bridge answered with an error (link button
                not pressed); the negotiator stays awaiting a press
            ProtocolError: The reply was not a success/error envelope
            TransportError: The bridge could not be reached
        """
        logger.info(f"Requesting username from bridge at {self.address}")
        result = await self.client.create_user(self.address, self.device_type)
        
        if result.kind == ResultKind.SUCCESS:
            username = result.value.get("username") if isinstance(result.value, dict) else None
            if not username:
                self._fail(f"Invalid Response {result.value!r}")
                raise ProtocolError(self.last_error, body=result.value)
            
            self.credential = username
            self.state = PairingState.CREDENTIAL_OBTAINED
            logger.info(f"Paired with bridge at {self.address}")
            return username
        
        if result.kind == ResultKind.DEVICE_ERROR:
            self.last_error = result.error
            logger.warning(f"Pairing refused by {self.address}: {result.error}")
            raise PairingFailed(result.error)
        
        self._fail(result.error)
        if result.kind == ResultKind.TRANSPORT_ERROR:
            raise TransportError(result.error)
        raise ProtocolError(result.error)
    
    def _fail(self, message: str) -> None:
        self.last_error = message
        self.state = PairingState.PAIRING_FAILED
