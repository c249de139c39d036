"""
Utility functions for logging, time, text parsing and URL handling.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlencode, urljoin, urlparse


def init_logger(
    name: str = "rea_crawler",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "rea_crawler.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return SystemClock().now().isoformat()


_DOTNET_TOKENS = re.compile(r"yyyy|yy|MM|dd|HH|hh|mm|ss|fff")


def format_timestamp(moment: datetime, fmt: str) -> str:
    """
    Render a timestamp using .NET style custom format tokens.

    Supports yyyy, yy, MM, dd, HH, hh, mm, ss and fff. Any other character
    is copied through unchanged, e.g. "yyyy-MM-dd_HHmm" -> "2024-05-01_0930".
    """
    renderers = {
        "yyyy": lambda: f"{moment.year:04d}",
        "yy": lambda: f"{moment.year % 100:02d}",
        "MM": lambda: f"{moment.month:02d}",
        "dd": lambda: f"{moment.day:02d}",
        "HH": lambda: f"{moment.hour:02d}",
        "hh": lambda: f"{(moment.hour % 12) or 12:02d}",
        "mm": lambda: f"{moment.minute:02d}",
        "ss": lambda: f"{moment.second:02d}",
        "fff": lambda: f"{moment.microsecond // 1000:03d}",
    }
    return _DOTNET_TOKENS.sub(lambda m: renderers[m.group(0)](), fmt)


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def digits_to_int(text: Optional[str]) -> Optional[int]:
    """Keep only the digits of text, e.g. "3 Beds" -> 3. None if there are none."""
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    if not digits:
        return None
    return int(digits)


_AMOUNT_RE = re.compile(r"\$\s?(\d+(?:\.\d+)?)(?:\s?([kKmM])\b)?")


def parse_price_range(price_text: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """
    Parse a price guide into (min, max) AUD bounds.

    Handles "$1,250,000", "$900,000 - $990,000", "$1.2m" and "$850k".
    A single amount gives equal bounds; text without an amount such as
    "Contact agent" gives (None, None).
    """
    if not price_text:
        return (None, None)

    s = price_text.replace(",", "").replace("\xa0", " ")
    values = []
    for m in _AMOUNT_RE.finditer(s):
        try:
            val = float(m.group(1))
        except ValueError:
            continue
        suffix = (m.group(2) or "").lower()
        if suffix == "k":
            val *= 1_000
        elif suffix == "m":
            val *= 1_000_000
        values.append(val)

    if not values:
        return (None, None)

    values = values[:2]
    return (min(values), max(values))


def merge_query_parameters(*mappings: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """
    Merge parameter maps with case-insensitive keys.

    Later mappings win on collision; the spelling of the key seen first is kept.
    """
    merged: Dict[str, str] = {}
    spelling: Dict[str, str] = {}
    for mapping in mappings:
        for key, value in (mapping or {}).items():
            folded = key.casefold()
            if folded not in spelling:
                spelling[folded] = key
            merged[spelling[folded]] = value
    return merged


def build_search_url(base_url: str, suburb_query: str, query_parameters: Mapping[str, str]) -> str:
    """Build the /buy search URL for a suburb query."""
    defaults = {
        "includeSurrounding": "false",
        "source": "refine",
        "activeSort": "default",
        "where": suburb_query,
    }
    params = merge_query_parameters(defaults, query_parameters)
    return f"{base_url.rstrip('/')}/buy?{urlencode(list(params.items()))}"


def normalize_listing_url(href: str, base_url: str) -> str:
    """Drop the query string from a listing href and make it absolute."""
    path = href.split("?", 1)[0].strip()
    return urljoin(base_url.rstrip("/") + "/", path)


def dedupe_urls(urls: Iterable[str]) -> list[str]:
    """Case-insensitive de-duplication preserving first-seen order."""
    seen, uniq = set(), []
    for u in urls:
        key = u.casefold()
        if key not in seen:
            uniq.append(u)
            seen.add(key)
    return uniq


def extract_listing_id(listing_url: str) -> str:
    """
    Derive the source listing id from a listing URL.

    Uses the trailing digit run of the last path segment
    ("/property-house-nsw-bondi-143160680" -> "143160680"), falling back to
    the raw segment and then to the full URL.
    """
    try:
        path = urlparse(listing_url).path
    except ValueError:
        return listing_url

    segment = path.rstrip("/").rsplit("/", 1)[-1]
    if not segment:
        return listing_url

    runs = re.findall(r"\d+", segment)
    return runs[-1] if runs else segment


_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_file_name(value: str) -> str:
    """Replace characters that are illegal in file names with underscores."""
    return _ILLEGAL_FILENAME_CHARS.sub("_", value)
