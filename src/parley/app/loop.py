"""The dispatch loop: one event in, one state update, one frame out."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from parley.app.bus import EventBus, Key, Resize, tick_source
from parley.app.render import render_frame
from parley.app.state import App
from parley.tui.keys import parse_key
from parley.tui.screen import Screen
from parley.tui.terminal import Terminal

logger = logging.getLogger(__name__)


async def run_app(app: App, terminal: Terminal, bus: EventBus, screen: Screen | None = None) -> None:
    """Run *app* on *terminal* until it stops.

    Terminal input and resizes are posted onto *bus* by callbacks; a tick
    task posts ``Tick`` events. The loop awaits exactly one event per
    iteration, dispatches it and redraws. On exit the live stream, the
    tick task and the terminal are all shut down.
    """
    screen = screen or Screen(terminal)

    def on_input(data: str) -> None:
        press = parse_key(data)
        if press is None:
            logger.debug("Ignoring unrecognised input %r", data)
            return
        bus.post(Key(press))

    def on_resize() -> None:
        bus.post(Resize(terminal.columns, terminal.rows))

    terminal.start(on_input, on_resize)
    ticker = asyncio.create_task(tick_source(bus, app.config.tick_interval))
    app.columns, app.rows = terminal.columns, terminal.rows
    try:
        _draw(app, screen)
        while app.running:
            event = await bus.next()
            app.dispatch(event)
            if app.running:
                _draw(app, screen)
    finally:
        await app.close()
        ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ticker
        terminal.stop()


def _draw(app: App, screen: Screen) -> None:
    columns = app.columns or screen.terminal.columns
    rows = app.rows or screen.terminal.rows
    screen.draw(render_frame(app, columns, rows))
