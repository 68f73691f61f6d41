"""CLI wrapper to fetch the server state once and write a Markdown dashboard."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from video_anomaly_monitor import AnomalyMonitor, load_monitor_config, write_dashboard


async def _refresh(config: Path | None, base_url: str | None, output: Path) -> Path:
    cfg = load_monitor_config(config, base_url=base_url)
    monitor = AnomalyMonitor.from_config(cfg)
    try:
        state = await monitor.refresh_all()
    finally:
        await monitor.aclose()
    return write_dashboard(state, output, user_name=cfg.user_name)


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a Markdown dashboard from the surveillance server")
    parser.add_argument("output", type=Path, help="Path for the generated dashboard")
    parser.add_argument("--config", type=Path, help="Monitor configuration (YAML or JSON)")
    parser.add_argument("--base-url", help="Server base URL")
    args = parser.parse_args()

    path = asyncio.run(_refresh(args.config, args.base_url, args.output))
    print(f"Generated dashboard at {path}")


if __name__ == "__main__":
    main()
