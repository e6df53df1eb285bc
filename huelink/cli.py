"""
huelink CLI - run the Hue integration without a host.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from .bridge import HueClient, HueError, PairingNegotiator, locate_bridge
from .config import HueOptions, OptionsStore, config_schema
from .host import ConsoleHost
from .plugin import HuePlugin

console = Console()


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )


def run_async(coro):
    """Run an async function."""
    return asyncio.run(coro)


def _options(ctx, address: Optional[str] = None, refresh_rate: Optional[float] = None) -> HueOptions:
    options = ctx.obj['store'].load()
    update = {}
    if address:
        update['address'] = address
    if refresh_rate:
        update['refresh_rate'] = refresh_rate
    return options.model_copy(update=update) if update else options


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--options-file', type=click.Path(), help='Options file (default ~/.huelink/options.json)')
@click.pass_context
def main(ctx, verbose, options_file):
    """💡 huelink - Philips Hue bridge telemetry"""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['store'] = OptionsStore(Path(options_file) if options_file else None)
    setup_logging(verbose)


@main.command()
def discover():
    """List bridges reported by the discovery service."""
    
    async def _discover():
        client = HueClient()
        try:
            return await client.discover()
        finally:
            await client.close()
    
    try:
        bridges = run_async(_discover())
    except HueError as e:
        console.print(f"[red]❌ Discovery failed: {e.message}[/red]")
        return
    
    if not bridges:
        console.print("[yellow]No bridges found.[/yellow]")
        return
    
    table = Table(title="Hue Bridges")
    table.add_column("ID", style="dim")
    table.add_column("Address", style="cyan")
    table.add_column("Port")
    
    for bridge in bridges:
        table.add_row(
            str(bridge.get('id', '-')),
            str(bridge.get('internalipaddress', '-')),
            str(bridge.get('port', '-')),
        )
    
    console.print(table)


@main.command()
@click.option('--address', '-a', help='Bridge address (discovered if omitted)')
@click.pass_context
def pair(ctx, address: Optional[str]):
    """Pair with a bridge. Press its link button first."""
    store = ctx.obj['store']
    options = _options(ctx, address)
    
    async def _pair():
        client = HueClient()
        try:
            ip = await locate_bridge(client, options.address)
            negotiator = PairingNegotiator(client, ip, options.device_type)
            return ip, await negotiator.pair()
        finally:
            await client.close()
    
    try:
        ip, username = run_async(_pair())
    except HueError as e:
        console.print(f"[red]❌ {e.message}[/red]")
        return
    
    store.save(options.model_copy(update={'address': ip, 'username': username}))
    console.print(f"[bold green]✓ Paired with {ip}[/bold green]")
    console.print(f"   Options saved to {store.path}")


@main.command()
@click.option('--address', '-a', help='Bridge address (discovered if omitted)')
@click.option('--refresh-rate', '-r', type=float, help='Seconds between polls')
@click.option('--cycles', '-n', type=int, help='Stop after N poll cycles')
@click.pass_context
def run(ctx, address: Optional[str], refresh_rate: Optional[float], cycles: Optional[int]):
    """Poll the bridge and print telemetry until interrupted."""
    host = ConsoleHost(ctx.obj['store'], console=console, echo=True)
    options = _options(ctx, address, refresh_rate)
    
    async def _run():
        plugin = HuePlugin(host)
        session = await plugin.start(options)
        try:
            if session is None or not session.is_polling:
                console.print(f"[red]❌ {plugin.status_message()}[/red]")
                return
            
            while cycles is None or session.scheduler.cycles < cycles:
                await asyncio.sleep(0.1)
        finally:
            await plugin.stop()
    
    try:
        run_async(_run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")


@main.command('set')
@click.argument('path')
@click.argument('value')
@click.option('--address', '-a', help='Bridge address (discovered if omitted)')
@click.pass_context
def set_value(ctx, path: str, value: str, address: Optional[str]):
    """Write VALUE (JSON) to a telemetry PATH."""
    host = ConsoleHost(ctx.obj['store'], console=console)
    options = _options(ctx, address)
    
    async def _set():
        plugin = HuePlugin(host)
        session = await plugin.start(options)
        try:
            if session is None or not session.is_polling:
                return {'state': 'FAILURE', 'message': plugin.status_message()}
            
            # Handlers are registered by the first poll
            await session.poll_once()
            return await session.write(path, _parse_value(value))
        finally:
            await plugin.stop()
    
    outcome = run_async(_set())
    
    if outcome['state'] == 'SUCCESS':
        console.print(f"[bold green]✓ {path} = {host.values.get(path)}[/bold green]")
    else:
        console.print(f"[red]❌ {outcome.get('message')}[/red]")


@main.command()
def schema():
    """Print the options schema shown to operators."""
    click.echo(json.dumps(config_schema(), indent=2))


if __name__ == '__main__':
    main()
