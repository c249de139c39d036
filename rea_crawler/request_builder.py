"""
Translate configured suburbs into crawl requests.
"""
from types import MappingProxyType

from .config import SuburbOptions
from .models import CrawlRequest
from .utils import merge_query_parameters


def build_request(suburb: SuburbOptions) -> CrawlRequest:
    """Build an immutable CrawlRequest from a suburb configuration entry."""
    params = merge_query_parameters(suburb.extra_query_parameters)
    return CrawlRequest(
        suburb_query=suburb.query or "",
        state=suburb.state or None,
        max_listings=suburb.max_listings,
        query_parameters=MappingProxyType(params),
    )
