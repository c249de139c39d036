"""
Playwright-based crawling logic for realestate.com.au.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence

from playwright.async_api import BrowserContext, Error as PlaywrightError

from .config import BrowserOptions, CrawlerOptions
from .errors import CrawlCancelled
from .models import (
    AddressDetails,
    CoreAttributes,
    CrawlRequest,
    LifecycleStatus,
    Listing,
    ListingIdentity,
    ListingStatusMetadata,
    PricingInformation,
)
from .utils import (
    SystemClock,
    build_search_url,
    clean_text,
    dedupe_urls,
    digits_to_int,
    extract_listing_id,
    normalize_listing_url,
    parse_price_range,
)

logger = logging.getLogger(__name__)

SOURCE_SITE = "realestate.com.au"
LISTING_CARD_SEL = "a[data-testid='listing-card-link']"


@dataclass(frozen=True)
class FieldRule:
    """Where a listing field lives on the detail page and how to read it."""
    name: str
    selector: str
    rule: str = "text"


LISTING_FIELDS = (
    FieldRule("address", "[data-testid='listing-details__address']"),
    FieldRule("price_guide", "[data-testid='listing-details__price']"),
    FieldRule("property_type", "[data-testid='listing-summary-property-type']"),
    FieldRule("bedrooms", "[data-testid='general-features__beds']", "count"),
    FieldRule("bathrooms", "[data-testid='general-features__baths']", "count"),
    FieldRule("parking_spaces", "[data-testid='general-features__cars']", "count"),
)

# text is already cleaned and non-empty when a rule runs
RULES: Dict[str, Callable[[str], Any]] = {
    "text": lambda text: text,
    "count": digits_to_int,
}


async def read_text(page, selector: str) -> Optional[str]:
    """Inner text of the first element matching selector, or None if missing/blank."""
    handle = await page.query_selector(selector)
    if handle is None:
        return None
    value = clean_text(await handle.inner_text())
    return value or None


async def extract_fields(page, fields: Sequence[FieldRule] = LISTING_FIELDS) -> Dict[str, Any]:
    """Run an extraction table against a page. Missing fields map to None."""
    values: Dict[str, Any] = {}
    for field in fields:
        text = await read_text(page, field.selector)
        values[field.name] = RULES[field.rule](text) if text is not None else None
    return values


class ListingCrawler:
    """
    Crawls one suburb at a time and yields listings lazily.

    Each ``crawl()`` call owns one browsing context from the shared session
    and visits listing pages strictly one after another.
    """

    def __init__(
        self,
        session,
        crawler_options: CrawlerOptions,
        browser_options: BrowserOptions,
        clock=None,
    ):
        self.session = session
        self.crawler_options = crawler_options
        self.browser_options = browser_options
        self.clock = clock or SystemClock()

    async def crawl(
        self,
        request: CrawlRequest,
        stop_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Listing]:
        """
        Yield listings for a crawl request.

        Stops once ``request.max_listings`` listings were yielded. Raises
        CrawlCancelled if ``stop_event`` is set before a listing visit. The
        browsing context is closed on every exit path.
        """
        if self.crawler_options.dry_run:
            logger.warning(
                f"Crawler running in dry-run mode; returning a synthetic listing for {request.suburb_query}"
            )
            yield self.create_dry_run_listing(request)
            return

        context = await self.session.new_context()
        try:
            candidates = await self.discover_listing_urls(context, request)
            logger.info(f">>> Discovered {len(candidates)} candidate listings for {request.suburb_query}")

            emitted = 0
            for url in candidates:
                if stop_event is not None and stop_event.is_set():
                    logger.warning(f"Stop requested while crawling {request.suburb_query}")
                    raise CrawlCancelled(request.suburb_query)

                if request.max_listings is not None and emitted >= request.max_listings:
                    logger.info(
                        f">>> Reached max listing limit ({request.max_listings}) for {request.suburb_query}"
                    )
                    return

                listing = await self.scrape_listing(context, url)
                if listing is not None:
                    emitted += 1
                    yield listing
        finally:
            await context.close()

    async def discover_listing_urls(self, context: BrowserContext, request: CrawlRequest) -> List[str]:
        """Open the search results page and collect de-duplicated listing URLs."""
        search_url = build_search_url(
            self.crawler_options.base_url, request.suburb_query, request.query_parameters
        )
        logger.info(f">>> Navigating to search page {search_url}")

        hrefs: List[str] = []
        try:
            page = await context.new_page()
            await page.goto(
                search_url,
                wait_until="networkidle",
                timeout=self.browser_options.navigation_timeout_ms,
            )
            anchors = await page.query_selector_all(LISTING_CARD_SEL)
            for a in anchors:
                href = await a.get_attribute("href")
                if href and href.strip():
                    hrefs.append(normalize_listing_url(href, self.crawler_options.base_url))
        except PlaywrightError:
            logger.exception(f"Failed to extract listing URLs for {request.suburb_query}")
            return []

        if not hrefs:
            logger.warning(f"No listing cards found on the search page for {request.suburb_query}")

        if self.crawler_options.listing_page_limit > 1:
            logger.info(
                f"listing_page_limit={self.crawler_options.listing_page_limit} requested, "
                "but pagination is not implemented; only the first results page is crawled"
            )

        return dedupe_urls(hrefs)

    async def scrape_listing(self, context: BrowserContext, listing_url: str) -> Optional[Listing]:
        """Scrape one listing page in its own tab. Returns None if the page fails."""
        logger.info(f">>> Scraping listing {listing_url}")
        page = None
        try:
            page = await context.new_page()
            await page.goto(
                listing_url,
                wait_until="networkidle",
                timeout=self.browser_options.navigation_timeout_ms,
            )
            fields = await extract_fields(page)
        except PlaywrightError:
            logger.exception(f"Failed to scrape listing at {listing_url}")
            return None
        finally:
            if page is not None:
                try:
                    await page.close()
                except PlaywrightError as e:
                    logger.debug(f"Could not close tab for {listing_url}: {e}")

        return self.build_listing(listing_url, fields)

    def build_listing(self, listing_url: str, fields: Dict[str, Any]) -> Listing:
        now = self.clock.now()
        price_min, price_max = parse_price_range(fields.get("price_guide"))

        return Listing(
            identity=ListingIdentity(
                source_site=SOURCE_SITE,
                source_listing_id=extract_listing_id(listing_url),
                canonical_url=listing_url,
            ),
            status=ListingStatusMetadata(
                first_seen_at=now,
                last_seen_at=now,
                lifecycle_status=LifecycleStatus.ACTIVE,
            ),
            address=AddressDetails(full_address_raw=fields.get("address") or ""),
            attributes=CoreAttributes(
                property_type=fields.get("property_type"),
                bedrooms=fields.get("bedrooms"),
                bathrooms=fields.get("bathrooms"),
                parking_spaces=fields.get("parking_spaces"),
            ),
            pricing=PricingInformation(
                price_guide_raw=fields.get("price_guide"),
                price_min_aud=price_min,
                price_max_aud=price_max,
            ),
            raw_attributes={
                "page_url": listing_url,
                "scraped_at": now.isoformat(),
            },
        )

    def create_dry_run_listing(self, request: CrawlRequest) -> Listing:
        now = self.clock.now()
        return Listing(
            identity=ListingIdentity(
                source_site=SOURCE_SITE,
                source_listing_id=uuid.uuid4().hex,
                canonical_url=f"{self.crawler_options.base_url.rstrip('/')}/sample-listing",
            ),
            status=ListingStatusMetadata(
                first_seen_at=now,
                last_seen_at=now,
                lifecycle_status=LifecycleStatus.ACTIVE,
            ),
            address=AddressDetails(
                full_address_raw=f"{request.suburb_query} (dry run)",
                state=request.state,
            ),
            attributes=CoreAttributes(
                property_type="house",
                bedrooms=3,
                bathrooms=2,
                parking_spaces=1,
                internal_size_sqm=120,
            ),
            pricing=PricingInformation(
                price_guide_raw="$1,000,000 - $1,100,000",
                price_min_aud=1_000_000,
                price_max_aud=1_100_000,
                nbn_tech="FTTP",
            ),
        )
