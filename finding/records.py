"""Flatten decoded search items into rows for persistence."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence, TypeVar

import structlog

from .response import FindItemsResponse, SearchItem, SearchResponse

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RecordConversionError(ValueError):
    """Raised when a decoded item lacks a field or holds an unparsable value."""


@dataclass(frozen=True)
class ItemRecord:
    """A single search item with every wrapped scalar unwrapped and parsed."""

    timestamp: datetime
    version: str
    condition_display_name: str
    condition_id: int
    country: str
    gallery_url: Optional[str]
    global_id: str
    is_multi_variation_listing: bool
    item_id: int
    listing_info_best_offer_enabled: bool
    listing_info_buy_it_now_available: bool
    listing_info_end_time: datetime
    listing_info_listing_type: str
    listing_info_start_time: datetime
    listing_info_watch_count: Optional[int]
    location: Optional[str]
    postal_code: Optional[str]
    primary_category_id: int
    primary_category_name: str
    product_id_type: Optional[str]
    product_id_value: Optional[str]
    selling_status_converted_current_price_currency: Optional[str]
    selling_status_converted_current_price_value: Optional[float]
    selling_status_current_price_currency: Optional[str]
    selling_status_current_price_value: Optional[float]
    selling_status_selling_state: Optional[str]
    selling_status_time_left: Optional[str]
    shipping_service_cost_currency: Optional[str]
    shipping_service_cost_value: Optional[float]
    shipping_type: Optional[str]
    ship_to_locations: Optional[str]
    subtitle: Optional[str]
    title: str
    top_rated_listing: bool
    view_item_url: Optional[str]


class ItemSink(Protocol):
    """Destination for flattened item records, such as a database writer."""

    def write(self, records: Sequence[ItemRecord]) -> None:
        ...


def _first(values: Sequence[T], field: str) -> T:
    if not values:
        raise RecordConversionError(f"missing {field}")
    return values[0]


def _optional(values: Sequence[T]) -> Optional[T]:
    return values[0] if values else None


def _convert(raw: str, convert: Callable[[str], T], field: str) -> T:
    try:
        return convert(raw)
    except ValueError as exc:
        raise RecordConversionError(f"cannot convert {field}: {raw!r}") from exc


def _parse_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValueError(raw)


def item_to_record(item: SearchItem, *, timestamp: datetime, version: str) -> ItemRecord:
    condition = _first(item.condition, "condition")
    listing_info = _first(item.listing_info, "listingInfo")
    primary_category = _first(item.primary_category, "primaryCategory")
    selling_status = _first(item.selling_status, "sellingStatus")
    shipping_info = _first(item.shipping_info, "shippingInfo")

    watch_count = None
    if listing_info.watch_count:
        watch_count = _convert(listing_info.watch_count[0], int, "watchCount")

    product_id = _optional(item.product_id)

    current_price = _optional(selling_status.current_price)
    converted_price = _optional(selling_status.converted_current_price)
    shipping_cost = _optional(shipping_info.shipping_service_cost)

    return ItemRecord(
        timestamp=timestamp,
        version=version,
        condition_display_name=_first(condition.condition_display_name, "conditionDisplayName"),
        condition_id=_convert(_first(condition.condition_id, "conditionId"), int, "conditionId"),
        country=_first(item.country, "country"),
        gallery_url=_optional(item.gallery_url),
        global_id=_first(item.global_id, "globalId"),
        is_multi_variation_listing=_convert(
            _first(item.is_multi_variation_listing, "isMultiVariationListing"), _parse_bool, "isMultiVariationListing"
        ),
        item_id=_convert(_first(item.item_id, "itemId"), int, "itemId"),
        listing_info_best_offer_enabled=_convert(
            _first(listing_info.best_offer_enabled, "bestOfferEnabled"), _parse_bool, "bestOfferEnabled"
        ),
        listing_info_buy_it_now_available=_convert(
            _first(listing_info.buy_it_now_available, "buyItNowAvailable"), _parse_bool, "buyItNowAvailable"
        ),
        listing_info_end_time=_first(listing_info.end_time, "endTime"),
        listing_info_listing_type=_first(listing_info.listing_type, "listingType"),
        listing_info_start_time=_first(listing_info.start_time, "startTime"),
        listing_info_watch_count=watch_count,
        location=_optional(item.location),
        postal_code=_optional(item.postal_code),
        primary_category_id=_convert(_first(primary_category.category_id, "categoryId"), int, "categoryId"),
        primary_category_name=_first(primary_category.category_name, "categoryName"),
        product_id_type=product_id.type if product_id else None,
        product_id_value=product_id.value if product_id else None,
        selling_status_converted_current_price_currency=converted_price.currency_id if converted_price else None,
        selling_status_converted_current_price_value=(
            _convert(converted_price.value, float, "convertedCurrentPrice") if converted_price else None
        ),
        selling_status_current_price_currency=current_price.currency_id if current_price else None,
        selling_status_current_price_value=(
            _convert(current_price.value, float, "currentPrice") if current_price else None
        ),
        selling_status_selling_state=_optional(selling_status.selling_state),
        selling_status_time_left=_optional(selling_status.time_left),
        shipping_service_cost_currency=shipping_cost.currency_id if shipping_cost else None,
        shipping_service_cost_value=(
            _convert(shipping_cost.value, float, "shippingServiceCost") if shipping_cost else None
        ),
        shipping_type=_optional(shipping_info.shipping_type),
        ship_to_locations=_optional(shipping_info.ship_to_locations),
        subtitle=_optional(item.subtitle),
        title=_first(item.title, "title"),
        top_rated_listing=_convert(_first(item.top_rated_listing, "topRatedListing"), _parse_bool, "topRatedListing"),
        view_item_url=_optional(item.view_item_url),
    )


def entry_to_records(entry: FindItemsResponse) -> List[ItemRecord]:
    timestamp = _first(entry.timestamp, "timestamp")
    version = _first(entry.version, "version")
    records: List[ItemRecord] = []
    for search_result in entry.search_result[:1]:
        for item in search_result.item:
            records.append(item_to_record(item, timestamp=timestamp, version=version))
    return records


def response_to_records(response: SearchResponse) -> List[ItemRecord]:
    """Flatten every convertible entry; entries that fail conversion are logged and skipped."""

    records: List[ItemRecord] = []
    for entry in response.items_response:
        try:
            records.extend(entry_to_records(entry))
        except RecordConversionError as exc:
            logger.warning("finding.records.skip", operation=response.operation.value, error=str(exc))
    return records


__all__ = [
    "ItemRecord",
    "ItemSink",
    "RecordConversionError",
    "entry_to_records",
    "item_to_record",
    "response_to_records",
]
