"""
Host-facing plugin object: start/stop, status and option schema.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from ..bridge.client import ClientConfig, HueClient
from ..config import (
    PLUGIN_DESCRIPTION,
    PLUGIN_ID,
    PLUGIN_NAME,
    HueOptions,
    config_schema,
)
from .session import HueSession
from .status import StatusReporter

logger = logging.getLogger(__name__)


class HuePlugin:
    """
    Usage:
        plugin = HuePlugin(host)
        await plugin.start({"address": "192.168.1.20", "refreshRate": 5})
        print(plugin.status_message())
        await plugin.stop()
    """
    
    id = PLUGIN_ID
    name = PLUGIN_NAME
    description = PLUGIN_DESCRIPTION
    
    def __init__(self, host: Any, client_config: Optional[ClientConfig] = None):
        self.host = host
        self.client_config = client_config
        self.status = StatusReporter(host)
        self.session: Optional[HueSession] = None
    
    def schema(self) -> Dict[str, Any]:
        return config_schema()
    
    def status_message(self) -> str:
        return self.status.message
    
    async def start(self, options: Union[HueOptions, Dict[str, Any], None]) -> Optional[HueSession]:
        """Start a session; a running one is stopped first."""
        if self.session is not None:
            await self.stop()
        
        if not isinstance(options, HueOptions):
            try:
                options = HueOptions.from_dict(options)
            except ValidationError as e:
                self.status.error(f"Invalid options: {e}")
                return None
        
        self.session = HueSession(
            self.host,
            options,
            client=HueClient(self.client_config),
            status=self.status,
            plugin_id=self.id,
        )
        await self.session.start()
        return self.session
    
    async def stop(self) -> None:
        if self.session is None:
            return
        
        session, self.session = self.session, None
        await session.stop()
