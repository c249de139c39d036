"""
Crawler configuration and settings management.

Settings are read from a JSON file (appsettings.json by default) and can be
overridden by environment variables prefixed with REA_CRAWLER_, using a double
underscore for nesting, e.g. REA_CRAWLER_CRAWLER__DRY_RUN=true.
"""
import json
import os
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SETTINGS_FILE = "appsettings.json"


class SuburbOptions(BaseModel):
    """One configured suburb search."""
    query: str = ""
    state: Optional[str] = None
    max_listings: Optional[int] = None
    extra_query_parameters: Dict[str, str] = Field(default_factory=dict)


class CrawlerOptions(BaseModel):
    base_url: str = "https://www.realestate.com.au"
    suburbs: List[SuburbOptions] = Field(default_factory=list)

    # Maximum result pages per suburb. Only the first page is crawled for now.
    listing_page_limit: int = 1

    # Pause between suburbs, in milliseconds
    delay_between_requests_ms: int = 1500

    # Emit one synthetic listing per suburb without touching the network
    dry_run: bool = False


class BrowserOptions(BaseModel):
    engine: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    slow_mo_ms: int = 0
    navigation_timeout_ms: int = 30_000

    @field_validator("engine", mode="before")
    @classmethod
    def _lower_engine(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class StorageOptions(BaseModel):
    output_directory: str = "output"
    file_name_format: str = "{suburb}_{timestamp:yyyyMMddHHmmss}.ndjson"


class LoggingOptions(BaseModel):
    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Optional[str] = "rea_crawler.log"


class Settings(BaseSettings):
    """Application settings."""

    crawler: CrawlerOptions = Field(default_factory=CrawlerOptions)
    browser: BrowserOptions = Field(default_factory=BrowserOptions)
    storage: StorageOptions = Field(default_factory=StorageOptions)
    logging: LoggingOptions = Field(default_factory=LoggingOptions)

    model_config = SettingsConfigDict(
        env_prefix="REA_CRAWLER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Values passed to __init__ come from the settings file, so the
        # environment has to win over them.
        return (env_settings, init_settings)


def read_settings_file(path: Optional[str]) -> Dict[str, Any]:
    """Load the JSON settings file. A missing file yields an empty dict."""
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a JSON object: {path}")
    return data


def load_settings(path: Optional[str] = DEFAULT_SETTINGS_FILE, **overrides: Dict[str, Any]) -> Settings:
    """
    Build settings from file, environment and explicit overrides.

    Priority, highest first: overrides (per section, e.g.
    ``crawler={"dry_run": True}``), environment variables, the settings file,
    then defaults.
    """
    settings = Settings(**read_settings_file(path))
    if not overrides:
        return settings

    updates = {}
    for section, values in overrides.items():
        if not values:
            continue
        current = getattr(settings, section)
        updates[section] = current.model_copy(update=values)
    return settings.model_copy(update=updates)
