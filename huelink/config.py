"""
Configuration for huelink.

Handles:
- Plugin options as handed over by the host (address, credential, refresh rate)
- The declarative schema the host renders for the operator
- On-disk options for standalone use
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .bridge.pairing import DEFAULT_DEVICE_TYPE

logger = logging.getLogger(__name__)

PLUGIN_ID = "huelink"
PLUGIN_NAME = "Philips Hue"
PLUGIN_DESCRIPTION = "Publishes Hue lights and groups as switch telemetry and relays writes back to the bridge"

# Telemetry paths are rooted here
BASE_PATH = "electrical.switches.hue"
DEFAULT_CONTEXT = "vessels.self"

DEFAULT_REFRESH_RATE = 5.0

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".huelink"

# Options the operator edits; the credential is written back by pairing
EDITABLE_OPTIONS = ("address", "refreshRate")


class HueOptions(BaseModel):
    """Persisted plugin options."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    
    address: Optional[str] = Field(
        default=None,
        title="IP Address",
        description="If blank, https://discovery.meethue.com will be used to auto discover, internet connection required",
    )
    username: Optional[str] = Field(
        default=None,
        title="Username",
        description="Bridge credential obtained by pairing",
    )
    refresh_rate: float = Field(
        default=DEFAULT_REFRESH_RATE,
        gt=0,
        alias="refreshRate",
        title="Refresh Rate",
        description="The rate in which the hub will be queried for updates in seconds",
    )
    device_type: str = Field(
        default=DEFAULT_DEVICE_TYPE,
        alias="deviceType",
        title="Device Type",
        description="Application name sent to the bridge when pairing",
    )
    
    @field_validator("address", "username", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize with host-facing key names, dropping unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)
    
    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "HueOptions":
        return cls.model_validate(data or {})


def config_schema() -> Dict[str, Any]:
    """JSON schema of the operator-editable options."""
    model_schema = HueOptions.model_json_schema(by_alias=True)
    available = model_schema.get("properties", {})
    
    properties = {}
    for name in EDITABLE_OPTIONS:
        prop = dict(available[name])
        
        # Optional[str] renders as anyOf [string, null]
        if "anyOf" in prop:
            variants = [v for v in prop.pop("anyOf") if v.get("type") != "null"]
            if variants:
                prop.update(variants[0])
        if prop.get("default") is None:
            prop.pop("default", None)
        
        properties[name] = prop
    
    return {
        "title": PLUGIN_NAME,
        "description": "Please press the link button on your Hue Hub before enabling this plugin",
        "type": "object",
        "properties": properties,
    }


class OptionsStore:
    """
    Options file for running outside a host.
    
    Stored at ~/.huelink/options.json
    """
    
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_DATA_DIR / "options.json"
    
    def exists(self) -> bool:
        return self.path.exists()
    
    def load(self) -> HueOptions:
        """Load options from disk, defaults if the file is missing."""
        if not self.path.exists():
            return HueOptions()
        
        with open(self.path, "r") as f:
            data = json.load(f)
        
        return HueOptions.from_dict(data)
    
    def save(self, options: HueOptions) -> None:
        """Save options to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        
        with open(self.path, "w") as f:
            json.dump(options.to_dict(), f, indent=2)
        
        logger.debug(f"Options saved to {self.path}")
