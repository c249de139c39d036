"""
Core crawl wiring and browser lifecycle.
"""
import asyncio
import logging
from typing import Optional

from .config import Settings
from .crawler import ListingCrawler
from .orchestrator import CrawlOrchestrator
from .repository import NdjsonListingRepository
from .session import BrowserSession
from .utils import SystemClock

logger = logging.getLogger(__name__)


async def run_crawl(settings: Settings, stop_event: Optional[asyncio.Event] = None, clock=None) -> None:
    """
    Main crawl entry point.

    Opens one browser session for the whole run, wires the crawler,
    repository and orchestrator around it and runs every configured suburb.
    The browser is only launched if a live crawl asks for a context, and it
    is shut down on every exit path.
    """
    clock = clock or SystemClock()
    if settings.crawler.dry_run:
        logger.info(">>> Dry-run mode enabled; the browser will not be launched")

    async with BrowserSession(settings.browser) as session:
        crawler = ListingCrawler(session, settings.crawler, settings.browser, clock)
        repository = NdjsonListingRepository(settings.storage, clock)
        orchestrator = CrawlOrchestrator(settings.crawler, crawler, repository, clock)
        await orchestrator.run(stop_event)
