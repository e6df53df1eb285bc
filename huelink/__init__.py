"""
huelink - Philips Hue bridge integration for telemetry hosts

Polls a Hue bridge, publishes its lights and groups as normalized switch
telemetry and relays writes on those paths back to the bridge.

Example:
    >>> from huelink import HuePlugin, ConsoleHost
    >>> plugin = HuePlugin(ConsoleHost())
    >>> await plugin.start({"address": "192.168.1.20"})
"""

__version__ = "1.0.0"

from .config import HueOptions, OptionsStore, config_schema
from .host import Host, ConsoleHost
from .plugin import HuePlugin, HueSession

__all__ = [
    "__version__",
    "HueOptions",
    "OptionsStore",
    "config_schema",
    "Host",
    "ConsoleHost",
    "HuePlugin",
    "HueSession",
]
