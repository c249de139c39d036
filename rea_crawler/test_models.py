"""
Tests for the listing data model and its JSON encoding.
"""
import dataclasses
import json
from types import MappingProxyType

import pytest
from pydantic import ValidationError

from .conftest import FIXED_NOW
from .models import (
    CoreAttributes,
    CrawlRequest,
    LifecycleStatus,
    Listing,
    ListingIdentity,
    ListingStatusMetadata,
    PricingInformation,
)


def test_unset_fields_are_omitted_and_round_trip():
    listing = Listing(
        identity=ListingIdentity(
            source_site="realestate.com.au",
            source_listing_id="143160680",
            canonical_url="https://www.realestate.com.au/property-house-nsw-bondi-143160680",
        ),
        status=ListingStatusMetadata(
            first_seen_at=FIXED_NOW,
            last_seen_at=FIXED_NOW,
            lifecycle_status=LifecycleStatus.ACTIVE,
        ),
        attributes=CoreAttributes(bedrooms=2),
        pricing=PricingInformation(price_guide_raw="Auction"),
    )

    line = listing.to_json()
    data = json.loads(line)

    assert "\n" not in line
    assert data["attributes"] == {"bedrooms": 2}
    assert data["pricing"] == {"price_guide_raw": "Auction"}
    assert data["status"]["lifecycle_status"] == "Active"
    assert "postcode" not in data["address"]
    assert "raw_attributes" not in data

    parsed = Listing.from_json(line)
    assert parsed == listing
    assert parsed.attributes.bathrooms is None
    assert json.loads(parsed.to_json()) == data


def test_defaults():
    listing = Listing()
    assert listing.status.lifecycle_status == LifecycleStatus.UNKNOWN
    assert listing.address.full_address_raw == ""
    assert listing.raw_attributes is None


def test_listing_is_immutable():
    listing = Listing(attributes=CoreAttributes(bedrooms=3), raw_attributes={"page_url": "a"})
    with pytest.raises(ValidationError):
        listing.attributes = CoreAttributes(bedrooms=4)
    with pytest.raises(ValidationError):
        listing.attributes.bedrooms = 4
    with pytest.raises(TypeError):
        listing.raw_attributes["page_url"] = "tampered"
    with pytest.raises(TypeError):
        listing.raw_attributes["new"] = "x"
    assert dict(listing.raw_attributes) == {"page_url": "a"}


def test_raw_attributes_serialized_and_detached_from_input():
    source = {"page_url": "https://example.test/1", "scraped_at": "2024-05-01T09:30:15+00:00"}
    listing = Listing(raw_attributes=source)
    source["page_url"] = "changed"

    data = json.loads(listing.to_json())

    assert data["raw_attributes"] == {
        "page_url": "https://example.test/1",
        "scraped_at": "2024-05-01T09:30:15+00:00",
    }
    assert Listing.from_json(listing.to_json()) == listing


def test_crawl_request_is_immutable():
    request = CrawlRequest(
        suburb_query="Bondi",
        query_parameters=MappingProxyType({"activeSort": "price-asc"}),
    )
    with pytest.raises(dataclasses.FrozenInstanceError):
        request.max_listings = 5
    with pytest.raises(TypeError):
        request.query_parameters["activeSort"] = "default"


def test_crawl_request_defaults():
    request = CrawlRequest(suburb_query="Bondi")
    assert request.state is None
    assert request.max_listings is None
    assert dict(request.query_parameters) == {}
