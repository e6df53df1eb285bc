"""
Hue bridge data models.

Records are rebuilt from the bridge's JSON on every poll and never stored.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class HueType(str, Enum):
    """Resource collections polled on the bridge."""
    LIGHTS = "lights"
    GROUPS = "groups"
    
    @property
    def state_key(self) -> str:
        """Sub-object holding the writable state ("action" for groups)."""
        return "action" if self is HueType.GROUPS else "state"


# Bridge colormode -> normalized tag
COLOR_MODES: Dict[str, str] = {
    "hs": "hsb",
    "ct": "temperature",
    "xy": "cie",
}


def _error_description(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("description", error))
    return str(error)


@dataclass
class DeviceRecord:
    """One light or group as returned by GET /api/{user}/{lights|groups}."""
    hue_type: HueType
    device_id: str
    name: str = ""
    model_id: Optional[str] = None
    on: Optional[bool] = None
    state: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    
    @property
    def bri(self) -> Optional[int]:
        return self.state.get("bri")
    
    @property
    def hue(self) -> Optional[int]:
        return self.state.get("hue")
    
    @property
    def sat(self) -> Optional[int]:
        return self.state.get("sat")
    
    @property
    def ct(self) -> Optional[int]:
        return self.state.get("ct")
    
    @property
    def xy(self) -> Optional[List[float]]:
        xy = self.state.get("xy")
        if isinstance(xy, (list, tuple)) and len(xy) == 2:
            return [xy[0], xy[1]]
        return None
    
    @property
    def colormode(self) -> Optional[str]:
        return self.state.get("colormode")
    
    @classmethod
    def from_api(cls, hue_type: HueType, device_id: str, data: Any) -> "DeviceRecord":
        """Build a record, keeping per-item error markers instead of raising."""
        if not isinstance(data, dict):
            return cls(
                hue_type=hue_type,
                device_id=device_id,
                error=f"Unexpected {hue_type.value} record {device_id}: {data!r}",
            )
        
        if "error" in data:
            return cls(
                hue_type=hue_type,
                device_id=device_id,
                name=str(data.get("name") or ""),
                error=_error_description(data["error"]),
            )
        
        state = data.get(hue_type.state_key)
        if not isinstance(state, dict):
            state = {}
        
        if hue_type is HueType.GROUPS:
            aggregate = data.get("state")
            if isinstance(aggregate, dict) and "any_on" in aggregate:
                on = aggregate["any_on"]
            else:
                on = state.get("on")
        else:
            on = state.get("on")
        
        return cls(
            hue_type=hue_type,
            device_id=device_id,
            name=str(data.get("name") or ""),
            model_id=data.get("modelid"),
            on=on,
            state=state,
        )


class ResultKind(str, Enum):
    """Outcome of one request/response exchange with the bridge."""
    SUCCESS = "success"
    DEVICE_ERROR = "device_error"
    PROTOCOL_ERROR = "protocol_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class HueResult:
    """Tagged result of a bridge call."""
    
    kind: ResultKind
    value: Any = None
    error: Optional[str] = None
    
    @property
    def success(self) -> bool:
        return self.kind == ResultKind.SUCCESS
    
    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "value": self.value,
            "error": self.error,
        }
    
    @classmethod
    def ok(cls, value: Any) -> "HueResult":
        return cls(kind=ResultKind.SUCCESS, value=value)
    
    @classmethod
    def device_error(cls, description: str) -> "HueResult":
        return cls(kind=ResultKind.DEVICE_ERROR, error=description)
    
    @classmethod
    def protocol_error(cls, message: str) -> "HueResult":
        return cls(kind=ResultKind.PROTOCOL_ERROR, error=message)
    
    @classmethod
    def transport_error(cls, message: str) -> "HueResult":
        return cls(kind=ResultKind.TRANSPORT_ERROR, error=message)


def parse_envelope(body: Any) -> HueResult:
    """
    Interpret the bridge's `[{"success": ...}]` / `[{"error": ...}]` reply.
    
    Only the first element is considered; anything else is a protocol error.
    """
    if (
        isinstance(body, list)
        and body
        and isinstance(body[0], dict)
        and ("success" in body[0] or "error" in body[0])
    ):
        first = body[0]
        if "success" in first:
            return HueResult.ok(first["success"])
        return HueResult.device_error(_error_description(first["error"]))
    
    return HueResult.protocol_error(f"Invalid Response {json.dumps(body, default=str)}")


@dataclass
class BridgeSession:
    """
    Connection parameters for one started plugin.
    
    The credential is filled in once pairing succeeds; polling never starts
    without it.
    """
    address: str
    credential: Optional[str] = None
    poll_interval: float = 5.0
    
    @property
    def is_paired(self) -> bool:
        return bool(self.credential)
