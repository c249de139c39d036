"""
Runs the crawler over every configured suburb.
"""
import asyncio
import logging
from contextlib import aclosing
from typing import List, Optional

from .config import CrawlerOptions
from .errors import CrawlCancelled
from .models import Listing
from .request_builder import build_request
from .utils import SystemClock

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """
    Sequences suburbs: build request, drain the crawler, store the batch, wait.

    Suburbs are handled strictly one at a time. A batch is persisted only
    after the crawler for that suburb has been fully drained.
    """

    def __init__(self, options: CrawlerOptions, crawler, repository, clock=None):
        self.options = options
        self.crawler = crawler
        self.repository = repository
        self.clock = clock or SystemClock()

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Crawl all configured suburbs in order.

        Raises CrawlCancelled when ``stop_event`` is observed at the top of a
        suburb, between listings, or during the inter-suburb delay.
        """
        suburbs = self.options.suburbs
        if not suburbs:
            logger.warning(
                "No suburbs configured. Update appsettings.json or pass configuration "
                "via REA_CRAWLER_ environment variables."
            )
            return

        logger.info(f">>> Starting crawl for {len(suburbs)} suburb(s)")

        for index, suburb in enumerate(suburbs):
            if stop_event is not None and stop_event.is_set():
                logger.warning(f"Stop requested; skipping {len(suburbs) - index} remaining suburb(s)")
                raise CrawlCancelled(suburb.query)

            request = build_request(suburb)
            logger.info(f">>> Crawling suburb query {request.suburb_query} with limit {request.max_listings}")

            listings: List[Listing] = []
            async with aclosing(self.crawler.crawl(request, stop_event)) as stream:
                async for listing in stream:
                    listings.append(listing)

            if not listings:
                logger.warning(f"No listings captured for {request.suburb_query}")
            else:
                self.repository.store_batch(request, listings)
                logger.info(f">>> Persisted {len(listings)} listings for {request.suburb_query}")

            is_last = index == len(suburbs) - 1
            if not is_last and self.options.delay_between_requests_ms > 0:
                await self._delay(self.options.delay_between_requests_ms / 1000, stop_event)

        logger.info(f">>> Crawl completed at {self.clock.now().isoformat()}")

    async def _delay(self, seconds: float, stop_event: Optional[asyncio.Event]) -> None:
        logger.debug(f"Delaying for {seconds:.1f}s before next suburb")
        if stop_event is None:
            await asyncio.sleep(seconds)
            return

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        logger.warning("Stop requested during delay between suburbs")
        raise CrawlCancelled("delay")
