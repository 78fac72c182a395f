import sys
import asyncio
import argparse

# --- Settings/Logging ---
from esports_notifier.logging.setup import setup_logging
from esports_notifier.config.settings import settings

setup_logging()

from loguru import logger

import uvicorn
from rich import print
from rich.panel import Panel
from rich.table import Table

from esports_notifier.api.app import create_app
from esports_notifier.models.reports import CycleReport
from esports_notifier.pipeline.service import build_service


def print_report(report: CycleReport) -> None:
    """Render a cycle report as a rich table."""
    table = Table(title="Poll cycle")
    table.add_column("Team")
    table.add_column("Candidates", justify="right")
    table.add_column("Matched", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Deliveries", justify="right")
    table.add_column("Error")
    for result in report.teams:
        delivered = sum(1 for d in result.deliveries if d.ok)
        table.add_row(
            result.team,
            str(result.candidates),
            str(result.matched),
            ", ".join(result.new_match_ids) or "-",
            f"{delivered}/{len(result.deliveries)}",
            result.error or "",
        )
    print(table)


async def run_once() -> None:
    """Run a single poll cycle and print the summary."""
    service = build_service(settings)
    try:
        report = await service.orchestrator.run_cycle()
        if not report.teams:
            print(Panel("No subscriptions found. Subscribe a team first.", title="Nothing to poll"))
        else:
            print_report(report)
    finally:
        await service.aclose()


def serve() -> None:
    """Serve the HTTP API and run the scheduler until interrupted."""
    service = build_service(settings)
    app = create_app(service)
    logger.info(f"Starting API on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


def main() -> None:
    parser = argparse.ArgumentParser(description="Esports match notifier")
    parser.add_argument(
        "--once", action="store_true", help="Run one poll cycle, print a summary and exit."
    )
    args = parser.parse_args()

    if args.once:
        asyncio.run(run_once())
    else:
        serve()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
