"""
Shared pytest fixtures: a fixed clock and an in-memory stand-in for the
Playwright session/context/page objects the crawler talks to.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import pytest
from playwright.async_api import Error as PlaywrightError

from .config import BrowserOptions, CrawlerOptions
from .crawler import LISTING_CARD_SEL, LISTING_FIELDS, ListingCrawler

BASE_URL = "https://www.realestate.com.au"
FIXED_NOW = datetime(2024, 5, 1, 9, 30, 15, 123000, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, moment: datetime = FIXED_NOW):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class FakeElement:
    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None):
        self.text = text
        self.attrs = attrs or {}

    async def inner_text(self) -> str:
        return self.text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)


class FakeSite:
    """
    A scripted website.

    search_results maps a suburb query to the hrefs of its listing cards,
    listings maps an absolute listing URL to {field name: text}.
    """

    def __init__(self):
        self.search_results: Dict[str, List[str]] = {}
        self.listings: Dict[str, Dict[str, str]] = {}
        self.failing_urls = set()
        self.search_fails = False
        self.close_failing_urls = set()
        self.visited: List[str] = []

    def add_listing(self, url: str, **fields: str) -> None:
        self.listings[url] = fields


class FakePage:
    def __init__(self, site: FakeSite):
        self.site = site
        self.url: Optional[str] = None
        self.closed = False

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None):
        self.site.visited.append(url)
        if url in self.site.failing_urls or (self.site.search_fails and "/buy?" in url):
            raise PlaywrightError(f"net::ERR_CONNECTION_RESET at {url}")
        self.url = url

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        if selector != LISTING_CARD_SEL or not self.url or "/buy?" not in self.url:
            return []
        where = parse_qs(urlparse(self.url).query).get("where", [""])[0]
        return [FakeElement(attrs={"href": h}) for h in self.site.search_results.get(where, [])]

    async def query_selector(self, selector: str) -> Optional[FakeElement]:
        fields = self.site.listings.get(self.url or "", {})
        for rule in LISTING_FIELDS:
            if rule.selector == selector and rule.name in fields:
                return FakeElement(text=fields[rule.name])
        return None

    async def close(self) -> None:
        if self.url in self.site.close_failing_urls:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.closed = True


class FakeContext:
    def __init__(self, site: FakeSite):
        self.site = site
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        page = FakePage(self.site)
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeSession:
    """Hands out contexts and checks that only one is ever open at a time."""

    def __init__(self, site: FakeSite):
        self.site = site
        self.contexts: List[FakeContext] = []

    async def new_context(self) -> FakeContext:
        assert all(c.closed for c in self.contexts), "previous browsing context still open"
        ctx = FakeContext(self.site)
        self.contexts.append(ctx)
        return ctx


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def session(site):
    return FakeSession(site)


@pytest.fixture
def make_crawler(session, clock):
    def _make(**crawler_kwargs) -> ListingCrawler:
        crawler_kwargs.setdefault("base_url", BASE_URL)
        return ListingCrawler(
            session,
            CrawlerOptions(**crawler_kwargs),
            BrowserOptions(navigation_timeout_ms=5_000),
            clock,
        )
    return _make
