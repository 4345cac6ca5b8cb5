#!/usr/bin/env python3
"""Manual check of the Google News search feeds for catalog instruments.

Usage:
    uv run python scripts/check_google_news.py
    uv run python scripts/check_google_news.py --code 005930 --verbose
    uv run python scripts/check_google_news.py --market NASDAQ
"""

import argparse
import asyncio

from stockpulse.catalog import (
    ALL_INSTRUMENTS,
    Instrument,
    get_instrument,
    get_instruments_by_market,
)
from stockpulse.core.exceptions import FeedFetchError
from stockpulse.ingestion.google_news import GoogleNewsClient
from stockpulse.models import Market
from stockpulse.processing.news.fetcher import FEED_PLANS, build_candidates


async def check_instrument(
    client: GoogleNewsClient, instrument: Instrument, verbose: bool = False
) -> int:
    """Fetch every feed of one instrument and print what would be stored."""
    print(f"\n{'=' * 60}")
    print(f"{instrument.name_ko} ({instrument.code}, {instrument.market.value})")
    print("=" * 60)

    stored = 0
    for plan in FEED_PLANS[instrument.market]:
        keyword = instrument.keywords(plan.language)[0]
        try:
            items = await client.fetch(keyword, plan.language)
        except FeedFetchError as e:
            print(f"  [{plan.language}] FAILED: {e}")
            continue

        candidates = build_candidates(instrument, items, plan)
        stored += len(candidates)
        print(f"  [{plan.language}] {keyword!r}: {len(items)} items, {len(candidates)} kept")
        if plan.translate:
            print("      (translated before storage)")

        for i, candidate in enumerate(candidates, 1):
            print(f"    [{i}] {candidate.title[:80]}")
            print(f"        {candidate.published_at:%Y-%m-%d %H:%M} UTC  {candidate.url[:80]}")
            if verbose and candidate.description:
                print(f"        {candidate.description[:200]}")

    return stored


async def main() -> None:
    parser = argparse.ArgumentParser(description="Check Google News feeds")
    parser.add_argument("--code", help="Only this stock code")
    parser.add_argument("--market", choices=["KOSPI", "NASDAQ"], help="Only this market")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show descriptions")
    args = parser.parse_args()

    if args.code:
        instrument = get_instrument(args.code)
        instruments = [instrument] if instrument else []
    elif args.market:
        instruments = get_instruments_by_market(Market(args.market))
    else:
        instruments = list(ALL_INSTRUMENTS)
    if not instruments:
        print("No matching instruments")
        return

    client = GoogleNewsClient()
    try:
        total = 0
        for instrument in instruments:
            total += await check_instrument(client, instrument, args.verbose)
    finally:
        await client.close()

    print(f"\n{total} candidate articles across {len(instruments)} instruments")


if __name__ == "__main__":
    asyncio.run(main())
