"""Command line interface for the video anomaly monitor."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Sequence

import httpx
import yaml

from .alerting import ConsoleChannel
from .config import MonitorConfig, load_monitor_config, validate_config_file
from .errors import ConfigError
from .logging_utils import configure_logging, log_event
from .monitor import AnomalyMonitor
from .poller import Poller
from .reporting import render_dashboard, write_dashboard
from .service import __version__, create_app

logger = logging.getLogger(__name__)


def _print_result(result: Any, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result, indent=2, default=str))
    else:
        print(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vam",
        description="Poll a video-surveillance server for anomalies and show them as a dashboard.",
    )
    parser.add_argument("--config", type=Path, help="Path to monitor configuration (YAML or JSON)")
    parser.add_argument("--base-url", help="Server base URL (overrides config and VAM_BASE_URL)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs")

    subparsers = parser.add_subparsers(dest="command", required=True)

    snapshot = subparsers.add_parser("snapshot", help="Refresh once and print the dashboard")
    snapshot.add_argument("--json", action="store_true", help="Emit the monitor state as JSON")
    snapshot.add_argument("--output", type=Path, help="Optional path to write a Markdown dashboard")

    watch = subparsers.add_parser("watch", help="Poll continuously and print alerts to the console")
    watch.add_argument("--interval", type=float, help="Polling interval in seconds (default from config)")
    watch.add_argument("--cycles", type=int, help="Stop after this many polling cycles")
    watch.add_argument("--quiet", action="store_true", help="Do not print alert blocks to the console")

    subparsers.add_parser("acknowledge", help="Acknowledge the active anomaly on the server")

    serve = subparsers.add_parser("serve", help="Run the dashboard service with background polling")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    validate = subparsers.add_parser("validate", help="Validate a configuration file")
    validate.add_argument("config_file", type=Path, help="Path to configuration file")
    validate.add_argument("--json", action="store_true", help="Emit validation result as JSON")

    subparsers.add_parser("version", help="Display the installed version")

    return parser


async def _snapshot(monitor: AnomalyMonitor, cfg: MonitorConfig, args: argparse.Namespace) -> None:
    try:
        state = await monitor.refresh_all()
    finally:
        await monitor.aclose()
    if args.output:
        path = write_dashboard(state, args.output, user_name=cfg.user_name)
        print(f"Wrote dashboard to {path}")
    elif args.json:
        _print_result(state.model_dump(mode="json"), as_json=True)
    else:
        print(render_dashboard(state, user_name=cfg.user_name), end="")


async def _watch(monitor: AnomalyMonitor, cfg: MonitorConfig, poller: Poller, args: argparse.Namespace) -> None:
    log_event(logger, "watch_started", base_url=cfg.base_url, interval_s=poller.interval_s)
    try:
        await poller.run(max_cycles=args.cycles)
    finally:
        await monitor.aclose()
    print(render_dashboard(monitor.state(), user_name=cfg.user_name), end="")


async def _acknowledge(monitor: AnomalyMonitor) -> None:
    try:
        await monitor.acknowledge_active_anomaly()
    finally:
        await monitor.aclose()
    if monitor.state().failures:
        raise SystemExit("Server did not accept the acknowledgement.")
    print("Active anomaly acknowledged")


def _validate(args: argparse.Namespace) -> None:
    try:
        result = validate_config_file(args.config_file)
    except FileNotFoundError as exc:
        raise SystemExit(str(exc))
    except (yaml.YAMLError, ValueError) as exc:
        raise SystemExit(f"Could not parse {args.config_file}: {exc}")
    _print_result(result.as_dict(), as_json=args.json)
    if result.errors:
        raise SystemExit(1)


def main(argv: Sequence[str] | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, json_logs=args.json_logs)

    if args.command == "version":
        print(__version__)
        return
    if args.command == "validate":
        _validate(args)
        return

    try:
        cfg = load_monitor_config(args.config, base_url=args.base_url)
        channels = [ConsoleChannel()] if args.command == "watch" and not args.quiet else []
        monitor = AnomalyMonitor.from_config(cfg, channels=channels, transport=transport)
        if args.command == "watch":
            poller = Poller(monitor, interval_s=args.interval if args.interval is not None else cfg.interval_s)
    except FileNotFoundError as exc:
        raise SystemExit(str(exc))
    except yaml.YAMLError as exc:
        raise SystemExit(f"Could not parse configuration: {exc}")
    except ConfigError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")
    except ValueError as exc:
        raise SystemExit(f"Invalid argument: {exc}")

    if args.command == "snapshot":
        asyncio.run(_snapshot(monitor, cfg, args))
    elif args.command == "watch":
        try:
            asyncio.run(_watch(monitor, cfg, poller, args))
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")
    elif args.command == "acknowledge":
        asyncio.run(_acknowledge(monitor))
    elif args.command == "serve":
        try:
            import uvicorn
        except ModuleNotFoundError:
            raise SystemExit("uvicorn is required to run the service. Install with `pip install uvicorn`.")
        app = create_app(monitor, interval_s=cfg.interval_s, user_name=cfg.user_name)
        uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
