"""CLI entry point for the relayfeed timeline client.

Examples:
    ```bash
    python -m relayfeed watch
    python -m relayfeed --config config/timeline.yaml --log-level DEBUG watch
    NOSTR_PRIVATE_KEY=nsec1... python -m relayfeed post "hello nostr"
    NOSTR_PRIVATE_KEY=nsec1... python -m relayfeed react <event_id> <pubkey>
    ```
"""

import argparse
import asyncio
import datetime
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from relayfeed.client import Timeline
from relayfeed.core.exceptions import ConfigurationError, PublishingError
from relayfeed.core.logger import Logger, StructuredFormatter
from relayfeed.core.yaml import load_yaml
from relayfeed.models.constants import EventKind
from relayfeed.models.event import ProtocolEvent
from relayfeed.utils.keys import ENV_PRIVATE_KEY, KeysConfig, KeysSigner


DEFAULT_CONFIG = Path("config") / "timeline.yaml"
RELAY_WAIT_TIMEOUT = 10.0

logger = Logger("cli")


def print_event(event: ProtocolEvent) -> None:
    """Sink that writes one line per event to stdout."""
    ts = datetime.datetime.fromtimestamp(event.created_at, datetime.UTC).strftime("%H:%M:%S")
    content = event.content.replace("\n", " ")
    sys.stdout.write(f"{ts} {event.pubkey[:8]} [{event.kind}] {content}\n")
    sys.stdout.flush()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="relayfeed",
        description="Multi-relay Nostr timeline client",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Timeline config path (default: {DEFAULT_CONFIG})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("watch", help="Print the timeline until interrupted")

    post = commands.add_parser("post", help=f"Publish a text note (needs {ENV_PRIVATE_KEY})")
    post.add_argument("content", help="Note text")

    react = commands.add_parser("react", help=f"React to an event (needs {ENV_PRIVATE_KEY})")
    react.add_argument("event_id", help="Target event id (hex)")
    react.add_argument("pubkey", help="Target event author pubkey (hex)")
    react.add_argument("--content", default="+", help="Reaction content (default: +)")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on the root handler so that ``Logger``
    output and plain ``logging.getLogger()`` calls share one format.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_config(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(path)


async def watch(timeline: Timeline) -> int:
    """Run the timeline until SIGINT or SIGTERM."""
    stop = asyncio.Event()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    async with timeline:
        await stop.wait()
    return 0


async def publish(timeline: Timeline, args: argparse.Namespace) -> int:
    """Publish a note or reaction once at least one relay is open."""
    async with timeline:
        if not await timeline.wait_for_relay(RELAY_WAIT_TIMEOUT):
            logger.error("no_relay_open", timeout=RELAY_WAIT_TIMEOUT)
            return 1
        try:
            if args.command == "post":
                event = await timeline.post(args.content)
            else:
                target = ProtocolEvent(
                    id=args.event_id,
                    pubkey=args.pubkey,
                    kind=EventKind.TEXT_NOTE,
                    content="",
                    created_at=0,
                )
                event = await timeline.react(target, args.content)
        except PublishingError as e:
            logger.error("publish_failed", error=str(e))
            return 1
        if event is not None:
            sys.stdout.write(f"{event.id}\n")
        # give the writer tasks a chance to put the EVENT on the wire
        await asyncio.sleep(timeline.config.buffer.flush_window)
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, build the timeline, run the command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = _load_config(args.config)
        signer = None
        if args.command != "watch":
            signer = KeysSigner(KeysConfig().keys)
        timeline = Timeline.from_dict(config, print_event, signer=signer)
    except (ConfigurationError, ValueError) as e:
        logger.error("config_invalid", error=str(e))
        return 1

    try:
        if args.command == "watch":
            return await watch(timeline)
        return await publish(timeline, args)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
