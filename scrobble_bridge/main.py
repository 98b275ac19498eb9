from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timedelta, timezone

from .config import ConfigError, load_settings, setup_alerts, setup_sinks, setup_sources
from .dispatch import Dispatcher
from .poller import Poller
from .transform import Transformer

log = logging.getLogger("scrobble-bridge")

HISTORY_COLUMNS = ("ARTISTS", "TRACK", "ALBUM", "DURATION", "TIMESTAMP")


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,  # ensure our config is used even if libs pre-configure logging
    )


def _timestamp(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}") from None
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scrobble-bridge",
        description="Watch media players and send scrobbles to Last.fm and local files.",
    )
    p.add_argument("-d", "--debug", action="store_true", help="print debug log messages")
    sub = p.add_subparsers(dest="command")

    sub.add_parser("run", help="watch sources and send scrobbles to configured sinks (default)")

    history = sub.add_parser("scrobbles", help="print scrobbles for the given sink")
    history.add_argument("sink", help="sink name (see list-sinks)")
    history.add_argument("-l", "--limit", type=int, default=10,
                         help="maximum number of scrobbles to display, 0 for all (default: 10)")
    history.add_argument("-f", "--from", dest="from_", type=_timestamp, default=None,
                         help="only display scrobbles after this time (default: 14 days ago)")
    history.add_argument("-t", "--to", type=_timestamp, default=None,
                         help="only display scrobbles before this time (default: now)")

    sub.add_parser("check-config", help="load and validate the configuration")
    sub.add_parser("list-sources", help="print all configured sources")
    sub.add_parser("list-sinks", help="print all configured sinks")
    return p


def format_table(rows) -> str:
    widths = [len(c) for c in HISTORY_COLUMNS]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    lines = []
    for row in [HISTORY_COLUMNS, *rows]:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
    return "\n".join(lines)


def cmd_run(settings) -> int:
    sources = setup_sources(settings)
    sinks = setup_sinks(settings)
    alerts = setup_alerts(settings)
    dispatcher = Dispatcher(sinks, alerts,
                            notify_on_scrobble=settings.notify_on_scrobble,
                            notify_on_error=settings.notify_on_error)
    poller = Poller(sources, dispatcher, settings.policy, Transformer(settings.policy))

    log.info("Starting scrobble bridge. Sinks: %s", ", ".join(s.name() for s in sinks) or "-")
    alerts.send("INFO", "Bridge started", f"Polling every {settings.policy.poll_interval}s.")
    try:
        poller.run()
    except KeyboardInterrupt:
        log.info("Shutting down…")
    return 0


def cmd_scrobbles(settings, args) -> int:
    sink = next((s for s in setup_sinks(settings) if s.name() == args.sink), None)
    if sink is None:
        print(f"Error: no sink named {args.sink!r} (run `scrobble-bridge list-sinks` to list all configured sinks)",
              file=sys.stderr)
        return 1

    to = args.to or datetime.now(timezone.utc)
    from_ = args.from_ or to - timedelta(days=14)
    try:
        scrobbles = sink.get_scrobbles(args.limit, from_, to)
    except Exception as e:
        print(f"Error: fetching scrobbles failed: {e}", file=sys.stderr)
        return 1

    rows = [(s.join_artists(), s.track, s.album, s.pretty_duration(),
             s.timestamp.astimezone().strftime("%a, %d %b %Y %H:%M:%S %Z")) for s in scrobbles]
    print(format_table(rows))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.debug else os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = load_settings()
    except ConfigError as e:
        log.error("invalid configuration: %s", e)
        return 2

    command = args.command or "run"
    if command == "run":
        return cmd_run(settings)
    if command == "scrobbles":
        return cmd_scrobbles(settings, args)
    if command == "check-config":
        setup_sources(settings)
        setup_sinks(settings)
        print("Configuration is valid")
        return 0
    if command == "list-sources":
        for source in setup_sources(settings):
            print(source.name())
        return 0
    if command == "list-sinks":
        for sink in setup_sinks(settings):
            print(sink.name())
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
