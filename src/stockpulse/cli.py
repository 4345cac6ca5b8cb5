"""CLI entry point for StockPulse."""

import argparse
import asyncio
import sys
from datetime import date

import orjson
import uvicorn

from stockpulse.config import get_settings
from stockpulse.core.exceptions import StockPulseError
from stockpulse.core.logging import get_logger, setup_logging
from stockpulse.models import PipelineReport
from stockpulse.services import service_lifespan

logger = get_logger(__name__)


async def run_daily_update(day: date | None = None) -> PipelineReport:
    """Connect services, run the pipeline once, and disconnect."""
    settings = get_settings()
    async with service_lifespan(settings, enable_scheduler=False) as state:
        return await state.pipeline.run(day)


def _daily_update(args: argparse.Namespace) -> int:
    setup_logging(get_settings())
    try:
        report = asyncio.run(run_daily_update(args.date))
    except StockPulseError as e:
        logger.error("Daily update aborted", error=e.message)
        return 1

    sys.stdout.write(
        orjson.dumps(report.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode() + "\n"
    )
    if not report.success:
        logger.error(
            "Daily update finished with critical errors",
            steps=[r.step for r in report.critical_errors],
        )
        return 1
    return 0


def _serve(args: argparse.Namespace) -> int:
    uvicorn.run(
        "stockpulse.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="StockPulse")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve.add_argument("--host", default="0.0.0.0", help="Bind host")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")
    serve.set_defaults(func=_serve)

    daily = subparsers.add_parser("daily-update", help="Run the daily pipeline once")
    daily.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Date stamped on summaries and analyses (YYYY-MM-DD, default: today UTC)",
    )
    daily.set_defaults(func=_daily_update)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
