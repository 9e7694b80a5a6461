"""CLI entry point for parley."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from parley import __version__
from parley.ai.backend import Backend, create_backend, get_backend_providers
from parley.ai.backends.builtins import register_builtin_backends
from parley.app.bus import EventBus
from parley.app.clipboard import PyperclipClipboard
from parley.app.config import AppConfig, apply_overrides, load_config
from parley.app.history import ChatHistory
from parley.app.loop import run_app
from parley.app.state import App
from parley.errors import ConfigError
from parley.tui.terminal import ProcessTerminal

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = Path.home() / ".cache" / "parley" / "parley.log"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="parley",
        description="Chat with a streaming LLM backend from the terminal",
    )
    parser.add_argument("--config", help="Config file (default: ~/.config/parley/config.toml)")
    parser.add_argument("--backend", help="Backend name (chatgpt, ollama, echo)")
    parser.add_argument("--model", help="Model for the selected backend")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--log-file", default=str(DEFAULT_LOG_FILE), help="Log file (default: %(default)s)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def setup_logging(level: str, log_file: str) -> None:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=str(path),
    )


def resolve(args: argparse.Namespace) -> tuple[AppConfig, Backend]:
    """Load configuration and build the selected backend; raises ``ConfigError``."""
    config = apply_overrides(load_config(args.config), backend=args.backend, model=args.model)
    if not get_backend_providers():
        register_builtin_backends()
    return config, create_backend(config.backend, config)


async def run(config: AppConfig, backend: Backend) -> None:
    bus = EventBus()
    app = App(backend, bus, config, clipboard=PyperclipClipboard(), history=ChatHistory())
    await run_app(app, ProcessTerminal(), bus)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config, backend = resolve(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting with backend %s", config.backend)
    asyncio.run(run(config, backend))


if __name__ == "__main__":
    main()
