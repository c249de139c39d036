"""
NDJSON persistence for crawled listing batches.
"""
import logging
import os
import re
from pathlib import Path
from typing import Optional, Sequence

from .config import StorageOptions
from .models import CrawlRequest, Listing
from .utils import SystemClock, format_timestamp, sanitize_file_name

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "yyyyMMddHHmmss"

_TIMESTAMP_TOKEN_RE = re.compile(r"\{timestamp(?::(?P<format>[^}]+))?\}", re.IGNORECASE)


class NdjsonListingRepository:
    """Writes each suburb batch to its own newline-delimited JSON file."""

    def __init__(self, options: StorageOptions, clock=None):
        self.options = options
        self.clock = clock or SystemClock()

    def store_batch(self, request: CrawlRequest, listings: Sequence[Listing]) -> Optional[Path]:
        """
        Write listings to a new file, one compact JSON object per line.

        Returns the written path, or None when there was nothing to write.
        The file is written in place; an interrupted write leaves a
        truncated file behind.
        """
        if not listings:
            logger.debug(f"Skipping storage for {request.suburb_query} because no listings were provided")
            return None

        output_dir = Path(os.path.abspath(self.options.output_directory))
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / self.resolve_file_name(request)

        logger.info(f">>> Writing {len(listings)} listings to {path}")
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            for listing in listings:
                f.write(listing.to_json())
                f.write("\n")

        return path

    def resolve_file_name(self, request: CrawlRequest) -> str:
        """Expand {suburb}, {state} and {timestamp[:format]} in the file name template."""
        timestamp = self.clock.now()
        safe_suburb = sanitize_file_name(request.suburb_query.replace(" ", "_"))

        name = self.options.file_name_format
        name = re.sub(r"\{suburb\}", lambda _: safe_suburb, name, flags=re.IGNORECASE)
        name = re.sub(r"\{state\}", lambda _: request.state or "", name, flags=re.IGNORECASE)
        name = _TIMESTAMP_TOKEN_RE.sub(
            lambda m: format_timestamp(timestamp, m.group("format") or DEFAULT_TIMESTAMP_FORMAT),
            name,
        )
        return sanitize_file_name(name)
