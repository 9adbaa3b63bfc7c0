"""Typed view of the Finding API JSON envelope.

The upstream service converts XML to JSON, so every scalar and nested
element arrives wrapped in a list (``"ack": ["Success"]``). The types below
keep that wrapping instead of flattening it; callers index with ``[0]``.
Attribute-style leaves such as prices use ``@currencyId``/``__value__`` keys
and are decoded as plain strings.
"""
from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Type, TypeVar, Union, get_type_hints

from .errors import ErrorKind, FindingError
from .filters import parse_datetime
from .request import Operation

T = TypeVar("T")


def _key(name: str) -> Any:
    return field(default_factory=list, metadata={"json": name})


def _attr(name: str) -> Any:
    return field(default="", metadata={"json": name})


@dataclass(frozen=True)
class Price:
    currency_id: str = _attr("@currencyId")
    value: str = _attr("__value__")


@dataclass(frozen=True)
class Distance:
    unit: str = _attr("@unit")
    value: str = _attr("__value__")


@dataclass(frozen=True)
class GalleryURL:
    gallery_size: str = _attr("@gallerySize")
    value: str = _attr("__value__")


@dataclass(frozen=True)
class ProductIDValue:
    type: str = _attr("@type")
    value: str = _attr("__value__")


@dataclass(frozen=True)
class ErrorParameter:
    name: str = _attr("@name")
    value: str = _attr("__value__")


@dataclass(frozen=True)
class ErrorData:
    category: List[str] = _key("category")
    domain: List[str] = _key("domain")
    error_id: List[str] = _key("errorId")
    exception_id: List[str] = _key("exceptionId")
    message: List[str] = _key("message")
    parameter: List[ErrorParameter] = _key("parameter")
    severity: List[str] = _key("severity")
    subdomain: List[str] = _key("subdomain")


@dataclass(frozen=True)
class ErrorMessage:
    error: List[ErrorData] = _key("error")


@dataclass(frozen=True)
class PaginationOutput:
    entries_per_page: List[str] = _key("entriesPerPage")
    page_number: List[str] = _key("pageNumber")
    total_entries: List[str] = _key("totalEntries")
    total_pages: List[str] = _key("totalPages")


@dataclass(frozen=True)
class Condition:
    condition_display_name: List[str] = _key("conditionDisplayName")
    condition_id: List[str] = _key("conditionId")


@dataclass(frozen=True)
class DiscountPriceInfo:
    minimum_advertised_price_exposure: List[str] = _key("minimumAdvertisedPriceExposure")
    original_retail_price: List[Price] = _key("originalRetailPrice")
    pricing_treatment: List[str] = _key("pricingTreatment")
    sold_off_ebay: List[str] = _key("soldOffEbay")
    sold_on_ebay: List[str] = _key("soldOnEbay")


@dataclass(frozen=True)
class ListingInfo:
    best_offer_enabled: List[str] = _key("bestOfferEnabled")
    buy_it_now_available: List[str] = _key("buyItNowAvailable")
    buy_it_now_price: List[Price] = _key("buyItNowPrice")
    converted_buy_it_now_price: List[Price] = _key("convertedBuyItNowPrice")
    end_time: List[datetime] = _key("endTime")
    gift: List[str] = _key("gift")
    listing_type: List[str] = _key("listingType")
    start_time: List[datetime] = _key("startTime")
    watch_count: List[str] = _key("watchCount")


@dataclass(frozen=True)
class Category:
    category_id: List[str] = _key("categoryId")
    category_name: List[str] = _key("categoryName")


@dataclass(frozen=True)
class SellerInfo:
    feedback_rating_star: List[str] = _key("feedbackRatingStar")
    feedback_score: List[str] = _key("feedbackScore")
    positive_feedback_percent: List[str] = _key("positiveFeedbackPercent")
    seller_user_name: List[str] = _key("sellerUserName")
    top_rated_seller: List[str] = _key("topRatedSeller")


@dataclass(frozen=True)
class SellingStatus:
    bid_count: List[str] = _key("bidCount")
    converted_current_price: List[Price] = _key("convertedCurrentPrice")
    current_price: List[Price] = _key("currentPrice")
    selling_state: List[str] = _key("sellingState")
    time_left: List[str] = _key("timeLeft")


@dataclass(frozen=True)
class ShippingInfo:
    expedited_shipping: List[str] = _key("expeditedShipping")
    handling_time: List[str] = _key("handlingTime")
    intermediated_shipping: List[str] = _key("intermediatedShipping")
    one_day_shipping_available: List[str] = _key("oneDayShippingAvailable")
    shipping_service_cost: List[Price] = _key("shippingServiceCost")
    shipping_type: List[str] = _key("shippingType")
    ship_to_locations: List[str] = _key("shipToLocations")


@dataclass(frozen=True)
class Storefront:
    store_name: List[str] = _key("storeName")
    store_url: List[str] = _key("storeURL")


@dataclass(frozen=True)
class UnitPriceInfo:
    quantity: List[str] = _key("quantity")
    type: List[str] = _key("type")


@dataclass(frozen=True)
class SearchItem:
    auto_pay: List[str] = _key("autoPay")
    charity_id: List[str] = _key("charityId")
    compatibility: List[str] = _key("compatibility")
    condition: List[Condition] = _key("condition")
    country: List[str] = _key("country")
    discount_price_info: List[DiscountPriceInfo] = _key("discountPriceInfo")
    distance: List[Distance] = _key("distance")
    ebay_plus_enabled: List[str] = _key("eBayPlusEnabled")
    eek_status: List[str] = _key("eekStatus")
    gallery_info_container: List[GalleryURL] = _key("galleryInfoContainer")
    gallery_plus_picture_url: List[str] = _key("galleryPlusPictureURL")
    gallery_url: List[str] = _key("galleryURL")
    global_id: List[str] = _key("globalId")
    is_multi_variation_listing: List[str] = _key("isMultiVariationListing")
    item_id: List[str] = _key("itemId")
    listing_info: List[ListingInfo] = _key("listingInfo")
    location: List[str] = _key("location")
    payment_method: List[str] = _key("paymentMethod")
    picture_url_large: List[str] = _key("pictureURLLarge")
    picture_url_super_size: List[str] = _key("pictureURLSuperSize")
    postal_code: List[str] = _key("postalCode")
    primary_category: List[Category] = _key("primaryCategory")
    product_id: List[ProductIDValue] = _key("productId")
    returns_accepted: List[str] = _key("returnsAccepted")
    secondary_category: List[Category] = _key("secondaryCategory")
    seller_info: List[SellerInfo] = _key("sellerInfo")
    selling_status: List[SellingStatus] = _key("sellingStatus")
    shipping_info: List[ShippingInfo] = _key("shippingInfo")
    store_info: List[Storefront] = _key("storeInfo")
    subtitle: List[str] = _key("subtitle")
    title: List[str] = _key("title")
    top_rated_listing: List[str] = _key("topRatedListing")
    unit_price: List[UnitPriceInfo] = _key("unitPrice")
    view_item_url: List[str] = _key("viewItemURL")


@dataclass(frozen=True)
class SearchResult:
    count: str = _attr("@count")
    item: List[SearchItem] = _key("item")


@dataclass(frozen=True)
class FindItemsResponse:
    """One entry of the operation-level response array."""

    ack: List[str] = _key("ack")
    error_message: List[ErrorMessage] = _key("errorMessage")
    item_search_url: List[str] = _key("itemSearchURL")
    pagination_output: List[PaginationOutput] = _key("paginationOutput")
    search_result: List[SearchResult] = _key("searchResult")
    timestamp: List[datetime] = _key("timestamp")
    version: List[str] = _key("version")


@dataclass(frozen=True)
class SearchResponse:
    """Decoded envelope for one operation.

    An empty ``items_response`` or an entry carrying ``error_message`` is a
    valid response; use :attr:`is_empty` and :attr:`has_errors` to tell a
    zero-result search from an upstream-reported error.
    """

    operation: ClassVar[Operation]
    response_key: ClassVar[str]

    items_response: List[FindItemsResponse] = field(default_factory=list)

    def items(self) -> List[FindItemsResponse]:
        return self.items_response

    @property
    def is_empty(self) -> bool:
        return not self.items_response

    @property
    def has_errors(self) -> bool:
        return bool(self.items_response) and bool(self.items_response[0].error_message)

    def to_dict(self) -> Dict[str, Any]:
        return {self.response_key: [_encode(entry) for entry in self.items_response]}


@dataclass(frozen=True)
class FindItemsByKeywordsResponse(SearchResponse):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_KEYWORDS
    response_key: ClassVar[str] = "findItemsByKeywordsResponse"


@dataclass(frozen=True)
class FindItemsByCategoryResponse(SearchResponse):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_CATEGORY
    response_key: ClassVar[str] = "findItemsByCategoryResponse"


@dataclass(frozen=True)
class FindItemsAdvancedResponse(SearchResponse):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_ADVANCED
    response_key: ClassVar[str] = "findItemsAdvancedResponse"


@dataclass(frozen=True)
class FindItemsByProductResponse(SearchResponse):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_PRODUCT
    response_key: ClassVar[str] = "findItemsByProductResponse"


@dataclass(frozen=True)
class FindItemsInEBayStoresResponse(SearchResponse):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_IN_EBAY_STORES
    response_key: ClassVar[str] = "findItemsIneBayStoresResponse"


RESPONSE_TYPES: Dict[Operation, Type[SearchResponse]] = {
    cls.operation: cls
    for cls in (
        FindItemsByKeywordsResponse,
        FindItemsByCategoryResponse,
        FindItemsAdvancedResponse,
        FindItemsByProductResponse,
        FindItemsInEBayStoresResponse,
    )
}


class _DecodeError(ValueError):
    pass


_HINTS: Dict[type, Dict[str, Any]] = {}


def _hints(cls: type) -> Dict[str, Any]:
    hints = _HINTS.get(cls)
    if hints is None:
        hints = get_type_hints(cls)
        _HINTS[cls] = hints
    return hints


def _decode(tp: Any, value: Any, path: str) -> Any:
    origin = getattr(tp, "__origin__", None)
    if origin in (list, List):
        if not isinstance(value, list):
            raise _DecodeError(f"{path}: expected array, got {type(value).__name__}")
        (item_type,) = tp.__args__
        return [_decode(item_type, item, f"{path}[{idx}]") for idx, item in enumerate(value)]
    if tp is str:
        if not isinstance(value, str):
            raise _DecodeError(f"{path}: expected string, got {type(value).__name__}")
        return value
    if tp is datetime:
        parsed = parse_datetime(value) if isinstance(value, str) else None
        if parsed is None:
            raise _DecodeError(f"{path}: invalid timestamp {value!r}")
        return parsed
    if dataclasses.is_dataclass(tp):
        return _decode_object(tp, value, path)
    raise _DecodeError(f"{path}: unsupported type {tp!r}")  # pragma: no cover


def _decode_object(cls: Type[T], value: Any, path: str) -> T:
    if not isinstance(value, dict):
        raise _DecodeError(f"{path}: expected object, got {type(value).__name__}")
    hints = _hints(cls)
    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        key = f.metadata.get("json", f.name)
        if key in value and value[key] is not None:
            kwargs[f.name] = _decode(hints[f.name], value[key], f"{path}.{key}")
    return cls(**kwargs)


def _format_datetime(value: datetime) -> str:
    text = value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + "Z"


def _encode(value: Any) -> Any:
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, datetime):
        return _format_datetime(value)
    if dataclasses.is_dataclass(value):
        encoded: Dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if item == [] or item == "":
                continue
            encoded[f.metadata.get("json", f.name)] = _encode(item)
        return encoded
    return value


def decode_response(operation: Union[Operation, str], payload: Union[bytes, str]) -> SearchResponse:
    """Decode a raw JSON body into the response type registered for ``operation``."""

    response_cls = RESPONSE_TYPES[Operation(operation)]
    try:
        document = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise FindingError(
            ErrorKind.DECODE_FAILURE,
            f"finding: failed to decode Finding API response body: {exc}",
            code="DecodeAPIResponse",
        ) from exc
    if not isinstance(document, dict):
        raise FindingError(
            ErrorKind.DECODE_FAILURE,
            f"finding: failed to decode Finding API response body: expected object, got {type(document).__name__}",
            code="DecodeAPIResponse",
        )
    entries = document.get(response_cls.response_key)
    if entries is None:
        return response_cls()
    try:
        items = _decode(List[FindItemsResponse], entries, response_cls.response_key)
    except _DecodeError as exc:
        raise FindingError(
            ErrorKind.DECODE_FAILURE,
            f"finding: failed to decode Finding API response body: {exc}",
            code="DecodeAPIResponse",
        ) from exc
    return response_cls(items_response=items)


__all__ = [
    "Category",
    "Condition",
    "ErrorMessage",
    "FindItemsAdvancedResponse",
    "FindItemsByCategoryResponse",
    "FindItemsByKeywordsResponse",
    "FindItemsByProductResponse",
    "FindItemsInEBayStoresResponse",
    "FindItemsResponse",
    "ListingInfo",
    "PaginationOutput",
    "Price",
    "RESPONSE_TYPES",
    "SearchItem",
    "SearchResponse",
    "SearchResult",
    "SellingStatus",
    "ShippingInfo",
    "decode_response",
]
