"""CLI commands for streamlights."""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from streamlights import __logo__, __version__

app = typer.Typer(
    name="streamlights",
    help=f"{__logo__} streamlights - Twitch events on your stream lamps",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} streamlights v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """streamlights - Twitch events on your stream lamps."""
    pass


def _set_logging(enabled: bool) -> None:
    from loguru import logger

    if enabled:
        logger.enable("streamlights")
    else:
        logger.disable("streamlights")


def _open_store(config, settings: Path | None):
    from streamlights.config.store import ConfigStore

    return ConfigStore(settings or config.settings_path)


async def _build_port(config, store, *, allow_memory: bool):
    """Hue port when the bridge is configured, otherwise the in-memory port."""
    from streamlights.lamps import HueBridgePort, MemoryDevicePort

    hue = config.lamps.hue
    bridge_ip = (await store.get_str("bridgeIp")).strip()
    app_key = (await store.get_str("AppKey")).strip()
    if hue.enabled and bridge_ip and app_key:
        return HueBridgePort(
            bridge_ip=bridge_ip,
            app_key=app_key,
            lamp_names=hue.lamp_names,
            verify=hue.verify or False,
            timeout_seconds=hue.timeout_seconds,
        )
    if not allow_memory:
        return None
    console.print("[yellow]Hue bridge not configured; lamp commands run in memory only[/yellow]")
    return MemoryDevicePort(lamps=list(hue.lamp_names))


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    dev: bool = typer.Option(False, "--dev", help="Use the local EventSub test server and chat commands"),
    settings: Path | None = typer.Option(None, "--settings", help="Settings JSON path override"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs"),
):
    """Listen for Twitch events and drive the lamps."""
    from streamlights.config.loader import load_config
    from streamlights.errors import CredentialError, DeviceError, ReconnectExhaustedError
    from streamlights.eventsub import EventSubListener
    from streamlights.lamps import CommandQueue
    from streamlights.router import ColorResolver, NotificationRouter, PaletteTable, load_color_table
    from streamlights.twitch import CredentialGuard, HelixClient

    config = load_config()
    _set_logging(logs)
    if dev:
        config.eventsub.dev_mode = True

    store = _open_store(config, settings)
    guard = CredentialGuard(
        store,
        oauth_base_url=config.twitch.oauth_base_url,
        timeout_seconds=config.twitch.timeout_seconds,
    )
    helix = HelixClient(
        store,
        guard,
        base_url=config.twitch.helix_base_url,
        timeout_seconds=config.twitch.timeout_seconds,
    )

    console.print(f"{__logo__} streamlights v{__version__}")
    console.print(f"[green]✓[/green] Settings: {store.path}")
    console.print(f"[green]✓[/green] EventSub: {config.eventsub.default_url()}")
    if config.eventsub.dev_mode:
        console.print("[yellow]Dev mode: chat commands enabled[/yellow]")

    async def _run() -> None:
        port = await _build_port(config, store, allow_memory=True)
        queue = CommandQueue(port, capacity=config.queue.capacity)
        router = NotificationRouter(
            queue,
            colors=ColorResolver(await load_color_table(config.colors_path)),
            palettes=PaletteTable.from_config(config.palettes),
            lamps=config.lamps,
            dev_mode=config.eventsub.dev_mode,
            send_chat=helix.send_chat_message,
        )
        listener = EventSubListener(guard=guard, helix=helix, router=router, config=config)
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()

        def _request_stop() -> None:
            if task is not None:
                task.cancel()

        try:
            loop.add_signal_handler(signal.SIGTERM, _request_stop)
        except (NotImplementedError, RuntimeError):
            pass

        try:
            await port.start()
            queue.start()
            await listener.run()
        except asyncio.CancelledError:
            console.print("\nShutting down...")
        finally:
            await listener.close()
            await queue.stop()
            await port.close()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\nShutting down...")
    except CredentialError as e:
        console.print(f"[red]Credential error:[/red] {e}")
        raise typer.Exit(1) from e
    except ReconnectExhaustedError as e:
        console.print(f"[red]EventSub connection lost:[/red] {e}")
        raise typer.Exit(1) from e
    except DeviceError as e:
        console.print(f"[red]Lamp controller error:[/red] {e}")
        raise typer.Exit(1) from e


# ============================================================================
# Config Commands
# ============================================================================


config_app = typer.Typer(help="Manage streamlights settings")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(
    mask: bool = typer.Option(True, "--mask/--no-mask", help="Hide sensitive values"),
    dev: bool = typer.Option(False, "--dev", help="Show the dev mode settings file"),
    settings: Path | None = typer.Option(None, "--settings", help="Settings JSON path override"),
):
    """Show the key/value settings file."""
    from streamlights.config.loader import load_config

    config = load_config()
    _set_logging(False)
    if dev:
        config.eventsub.dev_mode = True
    store = _open_store(config, settings)
    values = asyncio.run(store.masked() if mask else store.as_dict())

    table = Table(title=f"Settings ({store.path})")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key in sorted(values):
        table.add_row(key, values[key])
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Settings key, e.g. ChannelId"),
    value: str = typer.Argument(..., help="New value"),
    dev: bool = typer.Option(False, "--dev", help="Write the dev mode settings file"),
    settings: Path | None = typer.Option(None, "--settings", help="Settings JSON path override"),
):
    """Set one settings value."""
    from streamlights.config.loader import load_config
    from streamlights.config.store import DEFAULT_SETTINGS

    config = load_config()
    _set_logging(False)
    if dev:
        config.eventsub.dev_mode = True
    if key not in DEFAULT_SETTINGS:
        console.print(f"[yellow]Unknown settings key '{key}', writing it anyway[/yellow]")
    store = _open_store(config, settings)
    try:
        asyncio.run(store.update(key, value))
    except OSError as e:
        console.print(f"[red]Failed to write settings:[/red] {e}")
        raise typer.Exit(1) from e
    console.print(f"[green]✓[/green] {key} updated in {store.path}")


# ============================================================================
# Effect Commands
# ============================================================================


effects_app = typer.Typer(help="Try lamp effects")
app.add_typer(effects_app, name="effects")


@effects_app.command("test")
def effects_test(
    palette: str = typer.Argument(..., help="Palette name, e.g. subscription"),
    duration_ms: int | None = typer.Option(None, "--duration-ms", help="Effect duration override"),
    lamp: str = typer.Option("*", "--lamp", help="Target lamp, '*' for all"),
    settings: Path | None = typer.Option(None, "--settings", help="Settings JSON path override"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs"),
):
    """Play one palette on the lamps."""
    from streamlights.config.loader import load_config
    from streamlights.errors import DeviceError
    from streamlights.lamps import CommandQueue, RunEffect
    from streamlights.router import PaletteTable

    config = load_config()
    _set_logging(logs)
    palettes = PaletteTable.from_config(config.palettes)
    colors = palettes.get(palette)
    if colors is None:
        console.print(f"[red]Unknown palette '{palette}'.[/red] Available: {', '.join(palettes.names())}")
        raise typer.Exit(1)
    store = _open_store(config, settings)
    duration = duration_ms if duration_ms is not None else config.lamps.effect_duration_ms

    async def _play() -> dict:
        port = await _build_port(config, store, allow_memory=True)
        queue = CommandQueue(port, capacity=config.queue.capacity)
        try:
            await port.start()
            await queue.enqueue(
                RunEffect(lamp=lamp, palette=palette.lower(), colors=colors, duration_ms=duration)
            )
        finally:
            await queue.stop()
            await port.close()
        return queue.status_snapshot()

    console.print(f"Testing '{palette}' effect for {duration} ms")
    try:
        status = asyncio.run(_play())
    except DeviceError as e:
        console.print(f"[red]Lamp controller error:[/red] {e}")
        raise typer.Exit(1) from e
    if status["failed_total"]:
        console.print("[red]Effect failed[/red]; rerun with --logs for details")
        raise typer.Exit(1)
    console.print("[green]✓[/green] Effect finished")


if __name__ == "__main__":
    app()
