"""Run the simulated feed in the foreground and print a quote board per update.

Usage (from the project root):
    python -m scripts.watch_feed --updates 5 --interval 2
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipdesk.cli.report import print_snapshot
from pipdesk.market.service import MarketDataService
from pipdesk.market.synthesizer import MarketDataSynthesizer


async def _main(updates: int, interval: float) -> None:
    synth = MarketDataSynthesizer(update_interval=interval, tick_interval=min(1.0, interval))
    market = MarketDataService(synth, latency=0)
    market.start()
    seen = -1
    try:
        while seen < updates:
            if synth.update_count != seen:
                seen = synth.update_count
                print_snapshot(await market.get_snapshot())
            if not synth.is_open():
                logging.getLogger(__name__).info("Market closed; quotes are frozen")
                return
            await asyncio.sleep(0.1)
        logging.getLogger(__name__).info("Printed %d updates", updates)
    finally:
        await market.shutdown()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Watch the simulated market feed")
    parser.add_argument("--updates", type=int, default=5)
    parser.add_argument("--interval", type=float, default=10.0)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    asyncio.run(_main(args.updates, args.interval))
