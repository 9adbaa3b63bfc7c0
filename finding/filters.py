"""Item filter rules.

Every supported filter name maps to a validator in
:data:`ITEM_FILTER_VALIDATORS`. Validators look at one filter in isolation;
rules that relate several filters of the same request run afterwards in
:func:`validate_filter_relationships`, once the full list is known.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import ErrorKind, FindingError, cross_field, invalid_enum, invalid_integer
from .params import ItemFilter, RawParameters

MAX_EXCLUDE_CATEGORIES = 25
MAX_EXCLUDE_SELLERS = 100
MAX_LOCATED_INS = 25
MAX_SELLERS = 100
SMALLEST_MAX_DISTANCE = 5

BOOLEAN_VALUES = ("true", "false")
NUMERIC_BOOLEAN_VALUES = ("1", "0")

# https://developer.ebay.com/Devzone/finding/CallRef/Enums/conditionIdList.html
CONDITION_IDS = frozenset(
    {1000, 1500, 1750, 2000, 2010, 2020, 2030, 2500, 2750, 3000, 4000, 5000, 6000, 7000}
)

CURRENCY_IDS = frozenset(
    {"AUD", "CAD", "CHF", "CNY", "EUR", "GBP", "HKD", "INR", "MYR", "PHP", "PLN", "SEK", "SGD", "TWD", "USD"}
)

GLOBAL_IDS = frozenset(
    {
        "EBAY-AT", "EBAY-AU", "EBAY-CH", "EBAY-DE", "EBAY-ENCA", "EBAY-ES", "EBAY-FR", "EBAY-FRBE",
        "EBAY-FRCA", "EBAY-GB", "EBAY-HK", "EBAY-IE", "EBAY-IN", "EBAY-IT", "EBAY-MOTOR", "EBAY-MY",
        "EBAY-NL", "EBAY-NLBE", "EBAY-PH", "EBAY-PL", "EBAY-SG", "EBAY-US",
    }
)

LISTING_TYPES = ("Auction", "AuctionWithBIN", "Classified", "FixedPrice", "StoreInventory", "All")

PAYMENT_METHODS = frozenset(
    {
        "AmEx", "CashOnPickup", "CCAccepted", "COD", "CreditCard", "CustomCode", "DirectDebit",
        "Discover", "ELV", "LoanCheck", "MOCC", "MoneyXferAccepted", "MoneyXferAcceptedInCheckout",
        "None", "Other", "OtherOnlinePayments", "PaymentSeeDescription", "PayPal", "PersonalCheck",
        "VisaMC",
    }
)

EXPEDITED_SHIPPING_TYPES = ("Expedited", "OneDayShipping")
SELLER_BUSINESS_TYPES = ("Business", "Private")

SELLER_FILTERS = ("Seller", "ExcludeSeller", "TopRatedSellerOnly")

# (max filter, min filter) pairs compared after individual validation.
MIN_MAX_PAIRS = (
    ("MaxBids", "MinBids"),
    ("FeedbackScoreMax", "FeedbackScoreMin"),
    ("MaxQuantity", "MinQuantity"),
    ("MaxPrice", "MinPrice"),
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")
_DATETIME_RE = re.compile(r"([0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2})(?:\.([0-9]+))?Z")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FilterContext:
    """Request-level facts a single filter rule may depend on."""

    params: RawParameters
    now: Callable[[], datetime] = _utcnow

    @property
    def has_buyer_postal_code(self) -> bool:
        return "buyerPostalCode" in self.params


Validator = Callable[[ItemFilter, FilterContext], None]


def parse_int(value: str) -> Optional[int]:
    if not _INTEGER_RE.fullmatch(value):
        return None
    return int(value)


def parse_float(value: str) -> Optional[float]:
    if not _FLOAT_RE.fullmatch(value):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def parse_datetime(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp expressed in UTC (``Z`` suffix)."""

    match = _DATETIME_RE.fullmatch(value)
    if match is None:
        return None
    try:
        parsed = datetime.strptime(match.group(1), "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    fraction = match.group(2)
    if fraction:
        parsed += timedelta(microseconds=int(fraction[:6].ljust(6, "0")))
    return parsed.replace(tzinfo=timezone.utc)


def is_valid_country_code(value: str) -> bool:
    return len(value) == 2 and all("A" <= ch <= "Z" for ch in value)


def is_valid_currency_id(value: str) -> bool:
    return value in CURRENCY_IDS


def _check_integer(value: str, minimum: int) -> int:
    number = parse_int(value)
    if number is None or number < minimum:
        raise invalid_integer(value, minimum)
    return number


def _boolean(item_filter: ItemFilter, context: FilterContext) -> None:
    for value in item_filter.values:
        if value not in BOOLEAN_VALUES:
            raise invalid_enum("InvalidBooleanValue", "boolean item filter value, allowed values are true and false", value)


def _numeric_boolean(item_filter: ItemFilter, context: FilterContext) -> None:
    for value in item_filter.values:
        if value not in NUMERIC_BOOLEAN_VALUES:
            raise invalid_enum("InvalidValueBoxInventory", "value box inventory", value)


def _country(item_filter: ItemFilter, context: FilterContext) -> None:
    for value in item_filter.values:
        if not is_valid_country_code(value):
            raise invalid_enum("InvalidCountryCode", "country code", value)


def _located_in(item_filter: ItemFilter, context: FilterContext) -> None:
    _check_count(item_filter, MAX_LOCATED_INS, "MaxLocatedIns", "countries to locate items in")
    _country(item_filter, context)


def _condition(item_filter: ItemFilter, context: FilterContext) -> None:
    for value in item_filter.values:
        condition_id = parse_int(value)
        # Non-numeric values are condition names and pass through unchecked.
        if condition_id is not None and condition_id not in CONDITION_IDS:
            raise invalid_enum("InvalidCondition", "condition", value)


def _currency(item_filter: ItemFilter, context: FilterContext) -> None:
    for value in item_filter.values:
        if not is_valid_currency_id(value):
            raise invalid_enum("InvalidCurrencyID", "currency ID", value)


def _date_time(*, future: bool) -> Validator:
    def validate(item_filter: ItemFilter, context: FilterContext) -> None:
        now = context.now()
        for value in item_filter.values:
            parsed = parse_datetime(value)
            if parsed is None or (future and parsed <= now) or (not future and parsed >= now):
                raise FindingError(
                    ErrorKind.INVALID_RANGE,
                    f"finding: invalid date time value: {value}",
                    code="InvalidDateTime",
                    value=value,
                )

    return validate


def _integer(minimum: int) -> Validator:
    def validate(item_filter: ItemFilter, context: FilterContext) -> None:
        for value in item_filter.values:
            _check_integer(value, minimum)

    return validate


def _check_count(item_filter: ItemFilter, limit: int, code: str, label: str) -> None:
    if len(item_filter.values) > limit:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            f"finding: maximum {label} is {limit}",
            code=code,
            value=str(len(item_filter.values)),
            bounds=(1, limit),
        )


def _exclude_category(item_filter: ItemFilter, context: FilterContext) -> None:
    _check_count(item_filter, MAX_EXCLUDE_CATEGORIES, "MaxExcludeCategories", "categories to exclude")
    for value in item_filter.values:
        _check_integer(value, 0)


def _exclude_seller(item_filter: ItemFilter, context: FilterContext) -> None:
    _check_count(item_filter, MAX_EXCLUDE_SELLERS, "MaxExcludeSellers", "sellers to exclude")


def _seller(item_filter: ItemFilter, context: FilterContext) -> None:
    _check_count(item_filter, MAX_SELLERS, "MaxSellers", "sellers to include")


def _one_of(choices: Iterable[str], code: str, label: str) -> Validator:
    allowed = frozenset(choices)

    def validate(item_filter: ItemFilter, context: FilterContext) -> None:
        for value in item_filter.values:
            if value not in allowed:
                raise invalid_enum(code, label, value)

    return validate


def _seller_business_type(item_filter: ItemFilter, context: FilterContext) -> None:
    if len(item_filter.values) != 1:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            "finding: SellerBusinessType accepts exactly one value",
            code="MultipleSellerBusinessType",
            value=str(len(item_filter.values)),
            bounds=(1, 1),
        )
    if item_filter.value not in SELLER_BUSINESS_TYPES:
        raise invalid_enum("InvalidSellerBusinessType", "seller business type", item_filter.value)


def _listing_type(item_filter: ItemFilter, context: FilterContext) -> None:
    seen = set()
    for value in item_filter.values:
        if value not in LISTING_TYPES:
            raise invalid_enum("InvalidListingType", "listing type", value)
        if value in seen:
            raise invalid_enum("DuplicateListingType", "duplicate listing type", value)
        seen.add(value)
    if "All" in seen and len(seen) > 1:
        raise invalid_enum("InvalidAllListingType", "listing type, All cannot be combined with other types", "All")
    if "Auction" in seen and "AuctionWithBIN" in seen:
        raise invalid_enum(
            "InvalidAuctionListingTypes",
            "listing type, Auction and AuctionWithBIN cannot be used together",
            "AuctionWithBIN",
        )


def _require_buyer_postal_code(context: FilterContext, filter_name: str) -> None:
    if not context.has_buyer_postal_code:
        raise cross_field(
            "BuyerPostalCodeMissing",
            f"finding: buyerPostalCode is missing, it is required by the {filter_name} item filter",
        )


def _max_distance(item_filter: ItemFilter, context: FilterContext) -> None:
    _require_buyer_postal_code(context, item_filter.name)
    for value in item_filter.values:
        _check_integer(value, SMALLEST_MAX_DISTANCE)


def _local_search_only(item_filter: ItemFilter, context: FilterContext) -> None:
    _require_buyer_postal_code(context, item_filter.name)
    _boolean(item_filter, context)


def parse_price(item_filter: ItemFilter) -> float:
    """Validate a MaxPrice/MinPrice filter and return its first amount."""

    prices: List[float] = []
    for value in item_filter.values:
        price = parse_float(value)
        if price is None or price < 0:
            raise FindingError(
                ErrorKind.INVALID_RANGE,
                f"finding: invalid price: {value}",
                code="InvalidPrice",
                value=value,
                bounds=(0, None),
            )
        prices.append(price)
    if item_filter.param is not None:
        if item_filter.param.name != "Currency":
            raise invalid_enum(
                "InvalidPriceParamName", 'price parameter name, must be "Currency"', item_filter.param.name
            )
        if not is_valid_currency_id(item_filter.param.value):
            raise invalid_enum("InvalidCurrencyID", "currency ID", item_filter.param.value)
    return prices[0]


def _price(item_filter: ItemFilter, context: FilterContext) -> None:
    parse_price(item_filter)


_BOOLEAN_FILTERS = (
    "AuthorizedSellerOnly",
    "BestOfferOnly",
    "CharityOnly",
    "ExcludeAutoPay",
    "FeaturedOnly",
    "FreeShippingOnly",
    "GetItFastOnly",
    "HideDuplicateItems",
    "LocalPickupOnly",
    "LotsOnly",
    "OutletSellerOnly",
    "ReturnsAcceptedOnly",
    "SoldItemsOnly",
    "TopRatedSellerOnly",
    "WorldOfGoodOnly",
)

# See https://developer.ebay.com/devzone/finding/CallRef/types/ItemFilterType.html
ITEM_FILTER_VALIDATORS: Dict[str, Validator] = {
    **{name: _boolean for name in _BOOLEAN_FILTERS},
    "AvailableTo": _country,
    "Condition": _condition,
    "Currency": _currency,
    "EndTimeFrom": _date_time(future=True),
    "EndTimeTo": _date_time(future=True),
    "ExcludeCategory": _exclude_category,
    "ExcludeSeller": _exclude_seller,
    "ExpeditedShippingType": _one_of(EXPEDITED_SHIPPING_TYPES, "InvalidExpeditedShippingType", "expedited shipping type"),
    "FeedbackScoreMax": _integer(0),
    "FeedbackScoreMin": _integer(0),
    "ListedIn": _one_of(GLOBAL_IDS, "InvalidGlobalID", "global ID"),
    "ListingType": _listing_type,
    "LocalSearchOnly": _local_search_only,
    "LocatedIn": _located_in,
    "MaxBids": _integer(0),
    "MaxDistance": _max_distance,
    "MaxHandlingTime": _integer(1),
    "MaxPrice": _price,
    "MaxQuantity": _integer(1),
    "MinBids": _integer(0),
    "MinPrice": _price,
    "MinQuantity": _integer(1),
    "ModTimeFrom": _date_time(future=False),
    "PaymentMethod": _one_of(PAYMENT_METHODS, "InvalidPaymentMethod", "payment method"),
    "Seller": _seller,
    "SellerBusinessType": _seller_business_type,
    "StartTimeFrom": _date_time(future=True),
    "StartTimeTo": _date_time(future=True),
    "ValueBoxInventory": _numeric_boolean,
}


def validate_item_filter(item_filter: ItemFilter, context: FilterContext) -> None:
    """Apply the single-filter rule registered for ``item_filter.name``."""

    validator = ITEM_FILTER_VALIDATORS.get(item_filter.name)
    if validator is None:
        raise FindingError(
            ErrorKind.UNSUPPORTED_FILTER_TYPE,
            f"finding: unsupported item filter type: {item_filter.name}",
            code="UnsupportedItemFilterType",
            value=item_filter.name,
        )
    validator(item_filter, context)


def _first(filters: Sequence[ItemFilter], name: str) -> Optional[ItemFilter]:
    for item_filter in filters:
        if item_filter.name == name:
            return item_filter
    return None


def _check_min_max(filters: Sequence[ItemFilter]) -> None:
    for max_name, min_name in MIN_MAX_PAIRS:
        max_filter = _first(filters, max_name)
        min_filter = _first(filters, min_name)
        if max_filter is None or min_filter is None:
            continue
        if max_name == "MaxPrice":
            if parse_price(max_filter) < parse_price(min_filter):
                raise cross_field(
                    "InvalidMaxPrice",
                    "finding: invalid maximum price: maximum price must be greater than or equal to minimum price",
                )
        elif int(max_filter.value) < int(min_filter.value):
            raise cross_field(
                "InvalidNumericFilter",
                f"finding: invalid item filter relationship: {max_name} must be greater than or equal to {min_name}",
            )


_SELLER_CONFLICT_CODES = {
    "Seller": (
        "SellerCannotBeUsedWithOtherSellers",
        "Seller item filter cannot be used together with either the ExcludeSeller or TopRatedSellerOnly item filters",
    ),
    "ExcludeSeller": (
        "ExcludeSellerCannotBeUsedWithSellers",
        "ExcludeSeller item filter cannot be used together with either the Seller or TopRatedSellerOnly item filters",
    ),
    "TopRatedSellerOnly": (
        "TopRatedSellerCannotBeUsedWithSellers",
        "TopRatedSellerOnly item filter cannot be used together with either the Seller or ExcludeSeller item filters",
    ),
}


def _check_seller_exclusivity(filters: Sequence[ItemFilter]) -> None:
    present = [f.name for f in filters if f.name in SELLER_FILTERS]
    if len(set(present)) < 2:
        return
    # Report from the point of view of the first seller filter in request order.
    code, message = _SELLER_CONFLICT_CODES[present[0]]
    raise cross_field(code, f"finding: {message}")


def validate_filter_relationships(filters: Sequence[ItemFilter]) -> None:
    """Rules spanning several item filters of one request."""

    _check_min_max(filters)
    _check_seller_exclusivity(filters)
    if sum(1 for f in filters if f.name == "SellerBusinessType") > 1:
        raise cross_field("MultipleSellerBusinessType", "finding: multiple SellerBusinessType item filters found")
    if _first(filters, "LocalSearchOnly") is not None and _first(filters, "MaxDistance") is None:
        raise cross_field(
            "MaxDistanceMissing",
            "finding: MaxDistance item filter is missing when using LocalSearchOnly item filter",
        )


def validate_item_filters(filters: Sequence[ItemFilter], context: FilterContext) -> List[ItemFilter]:
    """Validate every filter individually, then their relationships."""

    for item_filter in filters:
        validate_item_filter(item_filter, context)
    validate_filter_relationships(filters)
    return list(filters)


SORT_ORDERS = (
    "BestMatch",
    "BidCountFewest",
    "BidCountMost",
    "CountryAscending",
    "CountryDescending",
    "CurrentPriceHighest",
    "DistanceNearest",
    "EndTimeSoonest",
    "PricePlusShippingHighest",
    "PricePlusShippingLowest",
    "StartTimeNewest",
    "WatchCountDecreaseSort",
)

_AUCTION_SORT_ORDERS: Tuple[str, ...] = ("BidCountFewest", "BidCountMost")


def validate_sort_order(sort_order: str, filters: Sequence[ItemFilter], context: FilterContext) -> str:
    if sort_order not in SORT_ORDERS:
        raise invalid_enum("InvalidSortOrder", "sort order", sort_order)
    if sort_order in _AUCTION_SORT_ORDERS:
        listing_type = _first(filters, "ListingType")
        if listing_type is None or "Auction" not in listing_type.values:
            raise cross_field(
                "AuctionListingMissing",
                f"finding: sortOrder {sort_order} requires a ListingType item filter including Auction",
            )
    if sort_order == "DistanceNearest" and not context.has_buyer_postal_code:
        raise cross_field("BuyerPostalCodeMissing", "finding: buyerPostalCode is missing, it is required by sortOrder DistanceNearest")
    return sort_order


__all__ = [
    "CONDITION_IDS",
    "CURRENCY_IDS",
    "FilterContext",
    "GLOBAL_IDS",
    "ITEM_FILTER_VALIDATORS",
    "LISTING_TYPES",
    "SORT_ORDERS",
    "is_valid_country_code",
    "is_valid_currency_id",
    "parse_datetime",
    "parse_float",
    "parse_int",
    "parse_price",
    "validate_filter_relationships",
    "validate_item_filter",
    "validate_item_filters",
    "validate_sort_order",
]
