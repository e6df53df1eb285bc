"""
Write handler registry and command relay.

Writable paths are registered once per (collection, device id, attribute)
for the life of a session. A write converts the normalized value to bridge
units, PUTs it, and turns the bridge's echo back into a normalized value.

Flow:
    host write -> handler -> PUT /{lights|groups}/{id}/{state|action}
               -> echo -> publish on the same path -> callback(SUCCESS)
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..bridge.client import HueClient, resource_path
from ..bridge.models import BridgeSession, HueType, ResultKind
from ..config import DEFAULT_CONTEXT
from .delta import NormalizedValue
from .status import StatusReporter

logger = logging.getLogger(__name__)

Callback = Callable[[Dict[str, Any]], None]


class ActionState(str, Enum):
    """States reported to the writer."""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


def _same(value: Any) -> Any:
    return value


def _to_xy(value: Any) -> List[float]:
    if isinstance(value, dict):
        return [float(value["x"]), float(value["y"])]
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return [float(value[0]), float(value[1])]
    raise ValueError("expected {x, y}")


def _from_xy(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return {"x": value[0], "y": value[1]}
    return value


@dataclass(frozen=True)
class WritableAttribute:
    """Mapping between a normalized path leaf and a bridge state key."""
    leaf: str
    api_key: str
    to_device: Callable[[Any], Any]
    from_device: Callable[[Any], Any] = _same


WRITABLE_ATTRIBUTES: Dict[str, WritableAttribute] = {
    "state": WritableAttribute("state", "on", lambda v: bool(v)),
    "dimmingLevel": WritableAttribute(
        "dimmingLevel", "bri",
        lambda v: round(float(v) * 254),
        lambda v: v / 254.0,
    ),
    "hue": WritableAttribute("hue", "hue", lambda v: round(float(v) * 182 * 360)),
    "saturation": WritableAttribute("saturation", "sat", lambda v: round(float(v) * 255)),
    "colorTemperature": WritableAttribute("colorTemperature", "ct", _same),
    "cie": WritableAttribute("cie", "xy", _to_xy, _from_xy),
}


def success() -> Dict[str, Any]:
    return {"state": ActionState.SUCCESS.value}


def failure(message: str) -> Dict[str, Any]:
    return {"state": ActionState.FAILURE.value, "message": message}


@dataclass
class RegisteredWriteHandler:
    """Callable handed to the host for one writable path."""
    path: str
    hue_type: HueType
    device_id: str
    attribute: WritableAttribute
    relay: "CommandRelay"
    
    def __call__(
        self,
        context: str,
        path: str,
        value: Any,
        callback: Optional[Callback] = None,
    ) -> Dict[str, Any]:
        return self.relay.handle_write(self, path or self.path, value, callback)


class CommandRelay:
    """
    Owns the session's write handlers and performs writes.
    
    Identical concurrent writes are not coalesced; each does its own
    round trip.
    """
    
    def __init__(
        self,
        client: HueClient,
        session: BridgeSession,
        publish: Callable[[List[NormalizedValue]], None],
        status: StatusReporter,
        host: Optional[Any] = None,
        context: str = DEFAULT_CONTEXT,
    ):
        self.client = client
        self.session = session
        self.publish = publish
        self.status = status
        self.host = host
        self.context = context
        self._handlers: Dict[Tuple[HueType, str, str], RegisteredWriteHandler] = {}
        self._by_path: Dict[str, RegisteredWriteHandler] = {}
        self._tasks: Set[asyncio.Task] = set()
        self.closed = False
    
    @property
    def handlers(self) -> Dict[Tuple[HueType, str, str], RegisteredWriteHandler]:
        return dict(self._handlers)
    
    def handler_for(self, path: str) -> Optional[RegisteredWriteHandler]:
        return self._by_path.get(path)
    
    def register(self, hue_type: HueType, device_id: str, leaf: str, path: str) -> bool:
        """
        Register a write handler unless this device attribute already has one.
        
        Returns:
            True if a new handler was registered
        """
        key = (hue_type, device_id, leaf)
        if key in self._handlers:
            return False
        
        handler = RegisteredWriteHandler(
            path=path,
            hue_type=hue_type,
            device_id=device_id,
            attribute=WRITABLE_ATTRIBUTES[leaf],
            relay=self,
        )
        self._handlers[key] = handler
        self._by_path[path] = handler
        
        register = getattr(self.host, "register_action_handler", None)
        if callable(register):
            register(self.context, path, handler)
        
        logger.debug(f"Registered write handler for {path}")
        return True
    
    def handle_write(
        self,
        handler: RegisteredWriteHandler,
        path: str,
        value: Any,
        callback: Optional[Callback] = None,
    ) -> Dict[str, Any]:
        """Start a write and return the provisional PENDING state."""
        if self.closed:
            outcome = failure("Session stopped")
            self._deliver(callback, path, outcome)
            return outcome
        
        task = asyncio.get_running_loop().create_task(
            self._complete(handler, path, value, callback)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return {"state": ActionState.PENDING.value}
    
    async def write(self, path: str, value: Any) -> Dict[str, Any]:
        """Write by path and wait for the outcome."""
        if self.closed:
            return failure("Session stopped")
        
        handler = self._by_path.get(path)
        if handler is None:
            return failure(f"No handler registered for {path}")
        return await self.send(handler, path, value)
    
    async def send(self, handler: RegisteredWriteHandler, path: str, value: Any) -> Dict[str, Any]:
        """Perform one write round trip."""
        attribute = handler.attribute
        
        try:
            device_value = attribute.to_device(value)
        except (TypeError, ValueError, KeyError) as e:
            return failure(f"Invalid value {value!r} for {path}: {e}")
        
        payload = {attribute.api_key: device_value}
        self._debug(f"Sending PUT {resource_path(handler.hue_type, handler.device_id)}: {payload}")
        
        result = await self.client.put_state(
            self.session.address,
            self.session.credential,
            handler.hue_type,
            handler.device_id,
            payload,
        )
        
        if result.kind == ResultKind.SUCCESS:
            key = f"{resource_path(handler.hue_type, handler.device_id)}/{attribute.api_key}"
            if not isinstance(result.value, dict) or key not in result.value:
                message = f"Invalid Response {result.value!r}"
                self.status.error(message)
                return failure(message)
            
            self.publish([NormalizedValue(path, attribute.from_device(result.value[key]))])
            return success()
        
        if result.kind == ResultKind.DEVICE_ERROR:
            logger.warning(f"Bridge rejected write to {path}: {result.error}")
            return failure(result.error)
        
        self.status.error(f"Failed to write {path}: {result.error}")
        return failure(result.error)
    
    def close(self) -> None:
        """Refuse further writes; outstanding ones still finish."""
        self.closed = True
    
    async def drain(self) -> None:
        """Wait for outstanding writes."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
    
    async def _complete(
        self,
        handler: RegisteredWriteHandler,
        path: str,
        value: Any,
        callback: Optional[Callback],
    ) -> None:
        self._deliver(callback, path, await self.send(handler, path, value))
    
    def _deliver(self, callback: Optional[Callback], path: str, outcome: Dict[str, Any]) -> None:
        if callback is None:
            return
        
        try:
            callback(outcome)
        except Exception as e:
            logger.error(f"Write callback for {path} failed: {e}")
    
    def _debug(self, message: str) -> None:
        debug = getattr(self.host, "debug", None)
        if callable(debug):
            debug(message)
        else:
            logger.debug(message)
