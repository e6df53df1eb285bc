"""
Bridge state -> normalized telemetry.

Each light or group becomes one delta under
`electrical.switches.hue.{lights|groups}.{camelCasedName}`:

    .state             on/off (groups: any light on)
    .dimmingLevel      bri / 255
    .colorMode         hsb | temperature | cie
    .hue, .saturation  fractions 0..1
    .colorTemperature  mireds, as reported by the bridge
    .cie               {x, y}

Two devices whose names camel-case to the same key share a path; the one
later in the bridge's listing wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..bridge.models import COLOR_MODES, DeviceRecord, HueType
from ..config import BASE_PATH
from .delta import Delta, NormalizedValue
from .relay import CommandRelay
from .status import StatusReporter

logger = logging.getLogger(__name__)

BRIGHTNESS_SCALE = 255.0
SATURATION_SCALE = 255.0
HUE_SCALE = 65535.0  # ~182.04 units per degree

_SEPARATORS = re.compile(r"[\W_]+")
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def camel_case(name: str) -> str:
    """'Living Room 1' -> 'livingRoom1'."""
    words: List[str] = []
    for chunk in _SEPARATORS.split(name or ""):
        words.extend(w for w in _CASE_BOUNDARY.split(chunk) if w)
    
    if not words:
        return ""
    
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def _fraction(value: float, scale: float) -> float:
    return min(max(value / scale, 0.0), 1.0)


def normalize_hue(hue: int) -> float:
    """Bridge hue (0..65535, ~182.04 per degree) as a fraction of the circle."""
    return _fraction(hue, HUE_SCALE)


@dataclass
class TranslationResult:
    """Deltas in bridge order plus the per-device errors that were skipped."""
    deltas: List[Delta] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class StateTranslator:
    """
    Translates polled records and registers writable attributes.
    
    Metadata goes out once per path when the host accepts meta deltas,
    otherwise it rides along as `{path}.meta` in every batch.
    """
    
    def __init__(
        self,
        relay: Optional[CommandRelay] = None,
        status: Optional[StatusReporter] = None,
        supports_meta_deltas: bool = True,
        base_path: str = BASE_PATH,
    ):
        self.relay = relay
        self.status = status
        self.supports_meta_deltas = supports_meta_deltas
        self.base_path = base_path
        self._meta_sent: Set[str] = set()
    
    def device_path(self, record: DeviceRecord) -> str:
        name = camel_case(record.name) or record.device_id
        return f"{self.base_path}.{record.hue_type.value}.{name}"
    
    def translate(self, hue_type: HueType, body: Dict[str, Any]) -> TranslationResult:
        """Translate a whole GET response (id -> record)."""
        result = TranslationResult()
        
        for device_id, data in body.items():
            record = DeviceRecord.from_api(hue_type, str(device_id), data)
            
            if record.error:
                self._record_error(result, f"Error reading {hue_type.value} {device_id}: {record.error}")
                continue
            
            try:
                delta = self.translate_record(record)
            except (TypeError, ValueError) as e:
                self._record_error(result, f"Invalid {hue_type.value} record {device_id}: {e}")
                continue
            
            result.deltas.append(delta)
        
        return result
    
    def _record_error(self, result: TranslationResult, message: str) -> None:
        result.errors.append(message)
        if self.status:
            self.status.error(message)
        else:
            logger.error(message)
    
    def translate_record(self, record: DeviceRecord) -> Delta:
        path = self.device_path(record)
        values: List[NormalizedValue] = []
        writable: List[str] = []
        
        def emit(leaf: str, value: Any, write: bool = True) -> None:
            values.append(NormalizedValue(f"{path}.{leaf}", value))
            if write:
                writable.append(leaf)
        
        if record.on is not None:
            emit("state", bool(record.on))
        
        if record.bri is not None:
            emit("dimmingLevel", _fraction(record.bri, BRIGHTNESS_SCALE))
        
        mode = record.colormode
        if mode:
            emit("colorMode", COLOR_MODES.get(mode, mode), write=False)
            
            if record.hue is not None and record.sat is not None:
                emit("hue", normalize_hue(record.hue))
                emit("saturation", _fraction(record.sat, SATURATION_SCALE))
            
            if record.ct is not None:
                emit("colorTemperature", record.ct)
            
            xy = record.xy
            if xy is not None:
                emit("cie", {"x": xy[0], "y": xy[1]})
        
        delta = Delta(values=values)
        
        meta = self.metadata(record)
        if not self.supports_meta_deltas:
            values.append(NormalizedValue(f"{path}.meta", meta))
        elif path not in self._meta_sent:
            delta.meta.append(NormalizedValue(path, meta))
            self._meta_sent.add(path)
        
        if self.relay is not None:
            for leaf in writable:
                self.relay.register(record.hue_type, record.device_id, leaf, f"{path}.{leaf}")
        
        return delta
    
    def metadata(self, record: DeviceRecord) -> Dict[str, Any]:
        meta = {
            "type": "dimmer",
            "hueType": record.hue_type.value,
            "displayName": record.name,
        }
        if record.model_id:
            meta["modelId"] = record.model_id
        return meta
