"""
Normalized telemetry messages.

A delta is what the host receives:
    {"updates": [{"values": [{"path": ..., "value": ...}], "meta": [...]}]}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class NormalizedValue:
    """One value (or metadata object) under a dot-separated path."""
    path: str
    value: Any
    
    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "value": self.value}


@dataclass
class Delta:
    """One published batch for a device or a write confirmation."""
    values: List[NormalizedValue] = field(default_factory=list)
    meta: List[NormalizedValue] = field(default_factory=list)
    
    def __bool__(self) -> bool:
        return bool(self.values or self.meta)
    
    def value_of(self, path: str) -> Any:
        for entry in self.values:
            if entry.path == path:
                return entry.value
        raise KeyError(path)
    
    def paths(self) -> List[str]:
        return [entry.path for entry in self.values]
    
    def to_dict(self) -> Dict[str, Any]:
        update: Dict[str, Any] = {"values": [v.to_dict() for v in self.values]}
        if self.meta:
            update["meta"] = [m.to_dict() for m in self.meta]
        return {"updates": [update]}
