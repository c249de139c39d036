"""
Exceptions raised by the crawler.
"""


class CrawlCancelled(Exception):
    """Raised when a stop was requested while a crawl was in progress."""
