"""
Bridge session lifecycle.

    locate -> pair (only without a credential) -> poll every refresh_rate

Discovery and pairing failures end the start attempt with a status
message; polling failures are reported and the next cycle tries again.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from ..bridge.client import HueClient
from ..bridge.discovery import locate_bridge
from ..bridge.errors import HueError
from ..bridge.models import BridgeSession, HueType
from ..bridge.pairing import PairingNegotiator
from ..config import PLUGIN_ID, HueOptions
from .delta import Delta, NormalizedValue
from .relay import CommandRelay, failure
from .scheduler import PollScheduler
from .status import StatusReporter
from .translator import StateTranslator

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Where a session is in its lifecycle."""
    IDLE = "idle"
    DISCOVERING = "discovering"
    PAIRING = "pairing"
    POLLING = "polling"
    FAILED = "failed"
    STOPPED = "stopped"


class HueSession:
    """
    One started connection to a bridge.
    
    Owns the write-handler registry, the metadata bookkeeping and the poll
    timer; all of it goes away with the session.
    """
    
    def __init__(
        self,
        host: Any,
        options: HueOptions,
        client: Optional[HueClient] = None,
        status: Optional[StatusReporter] = None,
        plugin_id: str = PLUGIN_ID,
    ):
        self.host = host
        self.options = options
        self.client = client or HueClient()
        self.status = status or StatusReporter(host)
        self.plugin_id = plugin_id
        self.state = SessionState.IDLE
        
        self.bridge: Optional[BridgeSession] = None
        self.relay: Optional[CommandRelay] = None
        self.translator: Optional[StateTranslator] = None
        self.scheduler: Optional[PollScheduler] = None
    
    @property
    def is_polling(self) -> bool:
        return self.scheduler is not None and self.scheduler.is_running
    
    async def start(self) -> bool:
        """
        Locate the bridge, pair if needed and start polling.
        
        Returns:
            True if polling started
        """
        self.state = SessionState.DISCOVERING
        if not self.options.address:
            self.status.set("Discovering bridge")
        
        try:
            address = await locate_bridge(self.client, self.options.address)
        except HueError as e:
            self._fail(e.message)
            return False
        
        self.bridge = BridgeSession(
            address=address,
            credential=self.options.username,
            poll_interval=self.options.refresh_rate,
        )
        
        if not self.bridge.is_paired and not await self._pair():
            return False
        
        self._start_polling()
        return True
    
    async def stop(self) -> None:
        """Stop polling; in-flight polls and writes finish before the client closes."""
        if self.scheduler is not None:
            await self.scheduler.stop()
        if self.relay is not None:
            self.relay.close()
            await self.relay.drain()
        
        await self.client.close()
        self.state = SessionState.STOPPED
        self.status.set("Stopped")
    
    async def poll_once(self) -> None:
        """Fetch lights and groups concurrently and publish them."""
        results = await asyncio.gather(
            self._load(HueType.LIGHTS),
            self._load(HueType.GROUPS),
        )
        
        if all(results):
            self.status.set(f"Connected to bridge at {self.bridge.address}")
    
    async def write(self, path: str, value: Any) -> Dict[str, Any]:
        """Write a normalized value and wait for the bridge's answer."""
        if self.relay is None:
            return failure("Not connected to a bridge")
        return await self.relay.write(path, value)
    
    def publish(self, delta: Delta) -> None:
        if not delta:
            return
        
        try:
            self.host.handle_message(self.plugin_id, delta.to_dict())
        except Exception as e:
            logger.error(f"Host rejected delta: {e}")
    
    def publish_values(self, values: Iterable[NormalizedValue]) -> None:
        self.publish(Delta(values=list(values)))
    
    async def _pair(self) -> bool:
        self.state = SessionState.PAIRING
        self.status.set(f"Pairing with bridge at {self.bridge.address}")
        
        negotiator = PairingNegotiator(self.client, self.bridge.address, self.options.device_type)
        try:
            username = await negotiator.pair()
        except HueError as e:
            self._fail(e.message)
            return False
        
        self.bridge.credential = username
        self.options = self.options.model_copy(update={"username": username})
        
        try:
            self.host.save_plugin_options(self.options.to_dict())
        except Exception as e:
            logger.error(f"Failed to save options: {e}")
        
        return True
    
    def _start_polling(self) -> None:
        self.relay = CommandRelay(
            client=self.client,
            session=self.bridge,
            publish=self.publish_values,
            status=self.status,
            host=self.host,
        )
        self.translator = StateTranslator(
            relay=self.relay,
            status=self.status,
            supports_meta_deltas=bool(getattr(self.host, "supports_meta_deltas", False)),
        )
        self.scheduler = PollScheduler(self.poll_once, self.bridge.poll_interval)
        
        self.state = SessionState.POLLING
        self.status.set(f"Connecting to bridge at {self.bridge.address}")
        self.scheduler.start()
    
    async def _load(self, hue_type: HueType) -> bool:
        try:
            body = await self.client.get_resources(
                self.bridge.address, self.bridge.credential, hue_type
            )
        except HueError as e:
            self.status.error(f"Failed to load {hue_type.value}: {e.message}")
            return False
        
        result = self.translator.translate(hue_type, body)
        for delta in result.deltas:
            self.publish(delta)
        
        logger.debug(f"Published {len(result.deltas)} {hue_type.value}")
        return not result.errors
    
    def _fail(self, message: str) -> None:
        self.state = SessionState.FAILED
        self.status.error(message)
