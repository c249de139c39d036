"""
realestate.com.au Listing Crawler Package
"""
from .models import CrawlRequest, LifecycleStatus, Listing
from .config import Settings, load_settings
from .core import run_crawl
from .crawler import ListingCrawler
from .errors import CrawlCancelled
from .orchestrator import CrawlOrchestrator
from .repository import NdjsonListingRepository
from .request_builder import build_request
from .session import BrowserSession
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "CrawlRequest",
    "LifecycleStatus",
    "Listing",
    "Settings",
    "load_settings",
    "run_crawl",
    "ListingCrawler",
    "CrawlCancelled",
    "CrawlOrchestrator",
    "NdjsonListingRepository",
    "build_request",
    "BrowserSession",
    "init_logger",
    "now_iso"
]
