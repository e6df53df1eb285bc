"""
Host application interface.

huelink runs inside a host that owns message routing, option persistence
and logging. `Host` lists what the plugin calls; `ConsoleHost` is the
standalone host used by the CLI.

Optional host hooks, looked up with getattr:
- register_action_handler(context, path, handler)
- set_plugin_status(message)
- set_plugin_error(message)
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from rich.console import Console

from .config import DEFAULT_CONTEXT, HueOptions, OptionsStore

logger = logging.getLogger(__name__)

# handler(context, path, value, callback) -> {"state": "PENDING"}
ActionHandler = Callable[[str, str, Any, Callable[[Dict[str, Any]], None]], Dict[str, Any]]


class Host:
    """Minimal host surface used by the plugin."""
    
    # Whether deltas may carry a separate "meta" list
    supports_meta_deltas: bool = False
    
    def handle_message(self, plugin_id: str, delta: Dict[str, Any]) -> None:
        raise NotImplementedError
    
    def save_plugin_options(self, options: Dict[str, Any]) -> None:
        raise NotImplementedError
    
    def debug(self, message: str) -> None:
        logger.debug(message)
    
    def error(self, message: str) -> None:
        logger.error(message)


class ConsoleHost(Host):
    """
    Standalone host backed by an options file.
    
    Keeps the latest value and metadata per path and the registered write
    handlers so the CLI can dispatch writes without a full host.
    """
    
    def __init__(
        self,
        store: Optional[OptionsStore] = None,
        console: Optional[Console] = None,
        echo: bool = False,
        supports_meta_deltas: bool = True,
    ):
        self.store = store or OptionsStore()
        self.console = console or Console()
        self.echo = echo
        self.supports_meta_deltas = supports_meta_deltas
        self.values: Dict[str, Any] = {}
        self.meta: Dict[str, Any] = {}
        self.handlers: Dict[Tuple[str, str], ActionHandler] = {}
        self.status: Optional[str] = None
    
    def handle_message(self, plugin_id: str, delta: Dict[str, Any]) -> None:
        for update in delta.get("updates", []):
            for entry in update.get("meta", []):
                self.meta[entry["path"]] = entry["value"]
            for entry in update.get("values", []):
                self.values[entry["path"]] = entry["value"]
                if self.echo:
                    self.console.print(f"[cyan]{entry['path']}[/cyan] = {entry['value']}")
    
    def save_plugin_options(self, options: Dict[str, Any]) -> None:
        self.store.save(HueOptions.from_dict(options))
    
    def register_action_handler(self, context: str, path: str, handler: ActionHandler) -> None:
        self.handlers[(context, path)] = handler
    
    def get_handler(self, path: str, context: str = DEFAULT_CONTEXT) -> Optional[ActionHandler]:
        return self.handlers.get((context, path))
    
    def set_plugin_status(self, message: str) -> None:
        self.status = message
    
    def set_plugin_error(self, message: str) -> None:
        self.status = message
        if self.echo:
            self.console.print(f"[red]{message}[/red]")
