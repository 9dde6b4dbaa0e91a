"""
Command-line entry point: scrape dealer listing pages into CSV/XLSX or JSON.
"""
import argparse
import asyncio
import json
import os
import sys

from .core import run_scrape
from .export import save_output_rows
from .sites import ADAPTERS
from .utils import init_logger, now_iso


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Scrape vehicle listing pages into normalized records")
    ap.add_argument("--url", action="append", required=True, help="Listing URL (repeatable)")
    ap.add_argument("--site", choices=sorted(ADAPTERS), default=None,
                    help="Force a site adapter (default: detect from URL)")
    ap.add_argument("--out", type=str, default="vehicles_export.csv", help="CSV/XLSX to write")
    ap.add_argument("--json", dest="json_out", type=str, default="",
                    help="Also write records as wire-format JSON (e.g. a pending post)")
    ap.add_argument("--headless", action="store_true", help="Run without UI")
    ap.add_argument("--storage-state", type=str, default="", help="Path to storage_state.json")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "fbmkt.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or fbmkt.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = init_logger(
        name="scraper",
        console_level=args.log_level or args.log_console,
        file_level=args.log_level or args.log_file,
        log_file=None if args.no_file_log else args.log_file_path,
    )
    logger.info(f">>> Run started at {now_iso()}")

    records = asyncio.run(run_scrape(
        urls=args.url,
        site=args.site,
        headless=args.headless,
        storage_state_path=args.storage_state or None,
        logger=logger,
    ))
    if not records:
        logger.error(">>> No listings extracted")
        return 1

    save_output_rows(records, args.out, logger=logger)
    if args.json_out:
        with open(args.json_out, "w", encoding="utf-8") as fh:
            payload = [r.to_dict() for r in records]
            json.dump(payload[0] if len(payload) == 1 else payload, fh, ensure_ascii=False, indent=2)
        logger.info(f">>> Wrote {len(records)} record(s) to {args.json_out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
