#!/usr/bin/env python3
"""
Command line entry point for the realestate.com.au crawler.
"""
import argparse
import asyncio
import logging
import os
import signal
from typing import List, Optional

from .config import DEFAULT_SETTINGS_FILE, Settings, load_settings
from .core import run_crawl
from .errors import CrawlCancelled
from .utils import init_logger, now_iso

logger = logging.getLogger("rea_crawler")

EXIT_CANCELLED = 130


def parse_args(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(
        description="realestate.com.au listing crawler (Playwright) writing one NDJSON file per suburb"
    )
    ap.add_argument("--config", default=os.getenv("REA_CRAWLER_CONFIG", DEFAULT_SETTINGS_FILE),
                    help="Path to the JSON settings file (default appsettings.json; a missing file is fine)")
    ap.add_argument("--dry-run", action="store_true",
                    help="Emit one synthetic listing per suburb without opening a browser")
    ap.add_argument("--headless", dest="headless", action="store_const", const=True, default=None,
                    help="Run the browser without UI")
    ap.add_argument("--headed", dest="headless", action="store_const", const=False,
                    help="Show the browser window")
    ap.add_argument("--browser", choices=["chromium", "firefox", "webkit"], default=None,
                    help="Browser engine to launch")
    ap.add_argument("--delay-ms", type=int, default=None,
                    help="Delay between suburbs in milliseconds")
    ap.add_argument("--output-dir", type=str, default=None,
                    help="Directory for the NDJSON output files")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE"),
                    help="Console log level (default from env LOG_CONSOLE or settings).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE"),
                    help="File log level (default from env LOG_FILE or settings).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH"),
                    help="Path to log file (default from env LOG_FILE_PATH or settings).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")

    return ap.parse_args(argv)


def settings_from_args(args) -> Settings:
    """Load settings and apply the command line overrides on top."""
    crawler, browser, storage = {}, {}, {}
    if args.dry_run:
        crawler["dry_run"] = True
    if args.delay_ms is not None:
        crawler["delay_between_requests_ms"] = args.delay_ms
    if args.headless is not None:
        browser["headless"] = args.headless
    if args.browser:
        browser["engine"] = args.browser
    if args.output_dir:
        storage["output_directory"] = args.output_dir
    return load_settings(args.config, crawler=crawler, browser=browser, storage=storage)


def _request_stop(stop_event: asyncio.Event) -> None:
    if not stop_event.is_set():
        logger.warning(">>> Interrupt received; stopping after the current step")
        stop_event.set()


async def _run(settings: Settings) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop, stop_event)
        except NotImplementedError:
            # Not available on Windows event loops; Ctrl+C then raises KeyboardInterrupt
            pass
    await run_crawl(settings, stop_event)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = settings_from_args(args)

    log_opts = settings.logging
    eff_console = args.log_level or args.log_console or log_opts.console_level
    eff_file = args.log_level or args.log_file or log_opts.file_level
    log_path = None if args.no_file_log else (args.log_file_path or log_opts.log_file)
    init_logger(console_level=eff_console, file_level=eff_file, log_file=log_path)
    logger.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if not log_path else eff_file}, "
        f"path={log_path or 'N/A'}"
    )
    logger.info(f">>> Run started at {now_iso()}")

    try:
        asyncio.run(_run(settings))
    except CrawlCancelled:
        logger.warning(">>> Crawl cancelled; browser closed, remaining suburbs skipped")
        return EXIT_CANCELLED
    except KeyboardInterrupt:
        logger.warning(">>> Crawl interrupted")
        return EXIT_CANCELLED
    except Exception:
        logger.exception("Crawl failed")
        raise

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
