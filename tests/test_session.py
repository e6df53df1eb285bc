"""
End-to-end tests for the plugin lifecycle against a fake bridge.
"""

import asyncio

import pytest

from huelink.bridge import ClientConfig
from huelink.config import OptionsStore
from huelink.host import ConsoleHost
from huelink.plugin import HuePlugin, SessionState

from fake_bridge import USERNAME, FakeBridge, wait_for

LIVING_ROOM = "electrical.switches.hue.lights.livingRoom"
KITCHEN = "electrical.switches.hue.lights.kitchen"
DOWNSTAIRS = "electrical.switches.hue.groups.downstairs"


def make_host(tmp_path, supports_meta_deltas=True) -> ConsoleHost:
    return ConsoleHost(
        OptionsStore(tmp_path / "options.json"),
        supports_meta_deltas=supports_meta_deltas,
    )


def make_plugin(host, bridge: FakeBridge) -> HuePlugin:
    return HuePlugin(host, ClientConfig(timeout=5.0, discovery_url=bridge.discovery_url))


class TestPolling:
    """Tests for the polling lifecycle."""
    
    @pytest.mark.asyncio
    async def test_first_poll_publishes(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            try:
                assert session.state == SessionState.POLLING
                await wait_for(lambda: f"{DOWNSTAIRS}.state" in host.values and f"{KITCHEN}.state" in host.values)
                await wait_for(lambda: plugin.status_message().startswith("Connected"))
            finally:
                await plugin.stop()
        
        assert host.values[f"{LIVING_ROOM}.state"] is True
        assert host.values[f"{LIVING_ROOM}.dimmingLevel"] == pytest.approx(0.502, abs=1e-3)
        assert host.values[f"{KITCHEN}.state"] is False
        assert host.values[f"{DOWNSTAIRS}.state"] is True
        assert host.meta[LIVING_ROOM]["displayName"] == "Living Room"
        assert bridge.count("GET", "/lights") == 1
        assert bridge.count("GET", "/groups") == 1
        assert (("vessels.self", f"{LIVING_ROOM}.dimmingLevel")) in host.handlers
        assert plugin.status_message() == "Stopped"
    
    @pytest.mark.asyncio
    async def test_meta_folded_for_plain_hosts(self, tmp_path):
        host = make_host(tmp_path, supports_meta_deltas=False)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            try:
                await wait_for(lambda: f"{LIVING_ROOM}.meta" in host.values)
            finally:
                await plugin.stop()
        
        assert host.meta == {}
        assert host.values[f"{LIVING_ROOM}.meta"]["modelId"] == "LCT015"
    
    @pytest.mark.asyncio
    async def test_failure_does_not_stop_polling(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.failing.add("lights")
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 0.05})
            try:
                await wait_for(lambda: plugin.status_message().startswith("Failed to load lights"))
                await wait_for(lambda: f"{DOWNSTAIRS}.state" in host.values)
                assert f"{LIVING_ROOM}.state" not in host.values
                
                bridge.failing.clear()
                await wait_for(lambda: f"{LIVING_ROOM}.state" in host.values)
                await wait_for(lambda: plugin.status_message().startswith("Connected"))
                assert session.is_polling
            finally:
                await plugin.stop()
    
    @pytest.mark.asyncio
    async def test_stop_prevents_further_polls(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 0.05})
            await wait_for(lambda: bridge.count("GET", "/lights") >= 2)
            
            await plugin.stop()
            polls = bridge.count("GET", "/lights")
            await asyncio.sleep(0.25)
        
        assert bridge.count("GET", "/lights") == polls
        assert not session.is_polling
        assert session.state == SessionState.STOPPED
    
    @pytest.mark.asyncio
    async def test_inflight_poll_completes_after_stop(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.get_delay = 0.3
            plugin = make_plugin(host, bridge)
            await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            await wait_for(lambda: bridge.count("GET", "/lights") == 1)
            
            await plugin.stop()
        
        assert host.values[f"{LIVING_ROOM}.state"] is True
        assert plugin.status_message() == "Stopped"
    
    @pytest.mark.asyncio
    async def test_unauthorized_credential(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            await plugin.start({"address": bridge.address, "username": "stale", "refreshRate": 30})
            try:
                await wait_for(lambda: "unauthorized user" in plugin.status_message())
            finally:
                await plugin.stop()
        
        assert host.values == {}


class TestPairingFlow:
    """Tests for starting without a credential."""
    
    @pytest.mark.asyncio
    async def test_link_button_not_pressed(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.pair_response = [{"error": {"type": 101, "address": "", "description": "link button not pressed"}}]
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address})
            await asyncio.sleep(0.05)
            status = plugin.status_message()
            state = session.state
            await plugin.stop()
        
        assert status == "link button not pressed"
        assert state == SessionState.FAILED
        assert bridge.count("GET", "/lights") == 0
        assert host.values == {}
        assert not host.store.exists()
    
    @pytest.mark.asyncio
    async def test_paired_credential_is_saved_and_used(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.username = "newuser"
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "refreshRate": 30})
            try:
                await wait_for(lambda: f"{LIVING_ROOM}.state" in host.values)
            finally:
                await plugin.stop()
        
        assert session.bridge.credential == "newuser"
        saved = host.store.load()
        assert saved.username == "newuser"
        assert saved.address == bridge.address
        assert saved.refresh_rate == 30


class TestDiscoveryFlow:
    """Tests for starting without an address."""
    
    @pytest.mark.asyncio
    async def test_discovered_bridge_is_polled(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.discovery = [{"id": "001788fffe000001", "internalipaddress": bridge.address}]
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"username": USERNAME, "refreshRate": 30})
            try:
                await wait_for(lambda: f"{LIVING_ROOM}.state" in host.values)
            finally:
                await plugin.stop()
        
        assert session.bridge.address == bridge.address
    
    @pytest.mark.asyncio
    async def test_no_bridges_found(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"username": USERNAME})
            await plugin.stop()
        
        assert session.state == SessionState.STOPPED
        assert session.scheduler is None
        assert bridge.count("GET", "/lights") == 0
    
    @pytest.mark.asyncio
    async def test_no_bridges_status(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            await plugin.start({"username": USERNAME})
            status = plugin.status_message()
            await plugin.stop()
        
        assert status == "No bridges found"
        assert host.status == "Stopped"
    
    @pytest.mark.asyncio
    async def test_discovery_request_fails(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.failing.add("discovery")
            plugin = make_plugin(host, bridge)
            session = await plugin.start({})
            status = plugin.status_message()
            state = session.state
            await plugin.stop()
        
        assert state == SessionState.FAILED
        assert status.startswith("Bridge discovery failed")
        assert session.scheduler is None
        assert bridge.bodies("POST") == []
        assert bridge.count("GET", "/lights") == 0


class TestWriteFlow:
    """Tests for writes through host-registered handlers."""
    
    @pytest.mark.asyncio
    async def test_dimming_write(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            try:
                await wait_for(lambda: host.get_handler(f"{LIVING_ROOM}.dimmingLevel") is not None)
                handler = host.get_handler(f"{LIVING_ROOM}.dimmingLevel")
                outcomes = []
                
                reply = handler("vessels.self", f"{LIVING_ROOM}.dimmingLevel", 0.5, outcomes.append)
                assert reply == {"state": "PENDING"}
                
                await wait_for(lambda: outcomes)
            finally:
                await plugin.stop()
        
        assert outcomes == [{"state": "SUCCESS"}]
        assert bridge.bodies("PUT") == [{"bri": 127}]
        assert host.values[f"{LIVING_ROOM}.dimmingLevel"] == pytest.approx(0.5)
    
    @pytest.mark.asyncio
    async def test_rejected_write(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            bridge.put_response = [{"error": {"type": 201, "description": "parameter, bri, is not modifiable. Device is set to off."}}]
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            try:
                await wait_for(lambda: f"{KITCHEN}.dimmingLevel" in host.values)
                outcome = await session.write(f"{KITCHEN}.dimmingLevel", 0.2)
            finally:
                await plugin.stop()
        
        assert outcome["state"] == "FAILURE"
        assert "not modifiable" in outcome["message"]
        assert host.values[f"{KITCHEN}.dimmingLevel"] == pytest.approx(254 / 255)
    
    @pytest.mark.asyncio
    async def test_handler_after_stop_is_refused(self, tmp_path):
        host = make_host(tmp_path)
        async with FakeBridge() as bridge:
            plugin = make_plugin(host, bridge)
            session = await plugin.start({"address": bridge.address, "username": USERNAME, "refreshRate": 30})
            try:
                await wait_for(lambda: host.get_handler(f"{KITCHEN}.state") is not None)
            finally:
                await plugin.stop()
            
            handler = host.get_handler(f"{KITCHEN}.state")
            outcomes = []
            reply = handler("vessels.self", f"{KITCHEN}.state", True, outcomes.append)
            written = await session.write(f"{KITCHEN}.state", True)
        
        assert reply == {"state": "FAILURE", "message": "Session stopped"}
        assert outcomes == [reply]
        assert written["state"] == "FAILURE"
        assert bridge.bodies("PUT") == []
        assert host.values[f"{KITCHEN}.state"] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
