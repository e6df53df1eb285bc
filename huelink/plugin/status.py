"""
Operational status bookkeeping.

Holds the latest human-readable status; last write wins.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

NOT_STARTED = "Not Started"


class StatusReporter:
    """Latest status string, mirrored to the host's status hooks when present."""
    
    def __init__(self, host: Optional[Any] = None, initial: str = NOT_STARTED):
        self.host = host
        self._message = initial
        self._is_error = False
    
    @property
    def message(self) -> str:
        return self._message
    
    @property
    def is_error(self) -> bool:
        return self._is_error
    
    def set(self, message: str) -> None:
        """Record a normal status."""
        self._message = message
        self._is_error = False
        logger.info(message)
        self._call_hook("set_plugin_status", message)
    
    def error(self, message: str) -> None:
        """Record an error status and log it through the host."""
        self._message = message
        self._is_error = True
        if not self._call_hook("error", message):
            logger.error(message)
        self._call_hook("set_plugin_error", message)
    
    def _call_hook(self, name: str, message: str) -> bool:
        hook = getattr(self.host, name, None)
        if not callable(hook):
            return False
        
        try:
            hook(message)
        except Exception as e:
            logger.error(f"Host hook {name} failed: {e}")
        return True
