"""
Data models for the realestate.com.au crawler.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator


@dataclass(frozen=True)
class CrawlRequest:
    """Normalized crawl request for a single suburb query."""

    suburb_query: str
    state: Optional[str] = None
    max_listings: Optional[int] = None
    query_parameters: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


class LifecycleStatus(str, Enum):
    """Coarse availability state of a listing."""
    UNKNOWN = "Unknown"
    ACTIVE = "Active"
    UNDER_OFFER = "UnderOffer"
    SOLD = "Sold"
    WITHDRAWN = "Withdrawn"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ListingIdentity(_Record):
    source_site: str = ""
    source_listing_id: str = ""
    canonical_url: str = ""


class ListingStatusMetadata(_Record):
    first_seen_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    lifecycle_status: LifecycleStatus = LifecycleStatus.UNKNOWN


class AddressDetails(_Record):
    full_address_raw: str = ""
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CoreAttributes(_Record):
    property_type: Optional[str] = None
    internal_size_sqm: Optional[float] = None
    land_size_sqm: Optional[float] = None
    year_built: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    parking_spaces: Optional[int] = None


class PricingInformation(_Record):
    price_guide_raw: Optional[str] = None
    price_min_aud: Optional[float] = None
    price_max_aud: Optional[float] = None

    # Quarterly outgoings in AUD
    strata_levies_quarter: Optional[float] = None
    council_rates_quarter: Optional[float] = None
    water_rates_quarter: Optional[float] = None
    nbn_tech: Optional[str] = None


class Listing(_Record):
    """
    A scraped real-estate listing.

    Created once at scrape time and never mutated. Serialized as one NDJSON
    line with every unset field left out.
    """

    identity: ListingIdentity = ListingIdentity()
    status: ListingStatusMetadata = ListingStatusMetadata()
    address: AddressDetails = AddressDetails()
    attributes: CoreAttributes = CoreAttributes()
    pricing: PricingInformation = PricingInformation()
    raw_attributes: Optional[Mapping[str, Optional[str]]] = None

    @field_validator("raw_attributes")
    @classmethod
    def _freeze_raw_attributes(cls, value):
        return None if value is None else MappingProxyType(dict(value))

    @field_serializer("raw_attributes")
    def _dump_raw_attributes(self, value):
        return None if value is None else dict(value)

    def to_json(self) -> str:
        """Compact JSON encoding with null fields omitted."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, line: str) -> "Listing":
        return cls.model_validate_json(line)
