"""
Command-line entry point: run one fill-and-verify cycle for a stored record.
"""
import argparse
import asyncio
import json
import os
import sys

from playwright.async_api import async_playwright

from scraper.core import new_browser_context
from scraper.models import VehicleRecord
from scraper.utils import init_logger, now_iso

from .agent import PageAgent
from .fields import CREATE_VEHICLE_URL
from .models import Phase
from .store import KeyValueStore, PendingPostStore

EXIT_CODES = {Phase.VERIFIED: 0, Phase.UNCERTAIN: 2}


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Post one vehicle record to the marketplace create form")
    ap.add_argument("--record", type=str, default="",
                    help="Vehicle record JSON (wire format); default: the stored pending post")
    ap.add_argument("--store", type=str, default=os.getenv("FBMKT_STORE", "./data/fbmkt_store.db"),
                    help="Key/value store path")
    ap.add_argument("--location", type=str, default=os.getenv("FBMKT_LOCATION", ""),
                    help="Location for records without a dealer address")
    ap.add_argument("--storage-state", type=str, default=os.getenv("FBMKT_STORAGE_STATE", "storage_state.json"),
                    help="Path to a logged-in storage_state.json")
    ap.add_argument("--headless", action="store_true", help="Run without UI")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file.")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"))
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"))
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "fbmkt.log"))
    ap.add_argument("--no-file-log", action="store_true", help="Disable file logging.")
    return ap.parse_args(argv)


async def post_once(args, logger) -> Phase:
    pending = PendingPostStore(KeyValueStore(args.store))
    if args.record:
        with open(args.record, "r", encoding="utf-8") as fh:
            pending.save(VehicleRecord.from_dict(json.load(fh)).to_dict())

    async with async_playwright() as p:
        browser, context = await new_browser_context(p, args.headless, args.storage_state, logger)
        page = await context.new_page()
        await page.goto(CREATE_VEHICLE_URL, wait_until="domcontentloaded", timeout=60_000)

        overrides = {"location": args.location} if args.location else None
        agent = PageAgent(page, pending, overrides=overrides)
        task = agent.resume()
        if task is None:
            logger.error(">>> No pending post to publish")
            phase = Phase.IDLE
        else:
            attempt = await task
            phase = attempt.phase if attempt else Phase.IDLE
            outcome = agent.orchestrator.outcome
            if outcome:
                print(json.dumps(outcome.to_message(), indent=2))

        await context.close()
        await browser.close()
    pending.kv.close()
    return phase


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = init_logger(
        name="poster",
        console_level=args.log_level or args.log_console,
        file_level=args.log_level or args.log_file,
        log_file=None if args.no_file_log else args.log_file_path,
    )
    logger.info(f">>> Posting run started at {now_iso()}")
    phase = asyncio.run(post_once(args, logger))
    logger.info(f">>> Finished in phase {phase.value}")
    return EXIT_CODES.get(phase, 1)


if __name__ == "__main__":
    sys.exit(main())
