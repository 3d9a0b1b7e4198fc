"""Entry point: python -m tracker

Usage:
    python -m tracker health-sweep           # Refresh health for every microservice
    python -m tracker health-sweep --json    # Print the summary as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from src.database import async_session, init_db
from tracker.health import HealthStatus, run_health_sweep


async def health_sweep(as_json: bool = False) -> int:
    await init_db()
    async with async_session() as db:
        summary = await run_health_sweep(db)

    if as_json:
        print(json.dumps({**summary.as_dict(), "errors": summary.errors}, indent=2))
    else:
        print(f"\nChecked {summary.total_services} microservice(s):")
        for status in HealthStatus:
            print(f"  {status.value:<9} {summary.count(status)}")
        for error in summary.errors:
            print(f"  ! {error['microservice_id']}: {error['error']}")
    return 1 if summary.errors else 0


def cli():
    parser = argparse.ArgumentParser(description="ContextFlow maintenance commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep = subparsers.add_parser(
        "health-sweep", help="Refresh health from each manifest's latest commit"
    )
    sweep.add_argument("--json", action="store_true", help="Print the summary as JSON")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    if args.command == "health-sweep":
        raise SystemExit(asyncio.run(health_sweep(as_json=args.json)))


if __name__ == "__main__":
    cli()
