"""Search request variants, their validation and outbound query assembly."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from .errors import ErrorKind, FindingError, invalid_enum, invalid_integer, missing_field
from .filters import BOOLEAN_VALUES, FilterContext, parse_int, validate_item_filters, validate_sort_order
from .params import (
    AspectFilter,
    ItemFilter,
    RawParameters,
    parse_aspect_filters,
    parse_item_filters,
    parse_output_selectors,
    parse_values,
)
from .product import ProductID, parse_product_id

SERVICE_VERSION = "1.0.0"
RESPONSE_DATA_FORMAT = "JSON"

MAX_CATEGORY_IDS = 3
MAX_CATEGORY_ID_LENGTH = 10
MIN_KEYWORDS_LENGTH = 2
MAX_KEYWORDS_LENGTH = 350
MAX_KEYWORD_LENGTH = 98
MAX_CUSTOM_ID_LENGTH = 256
MIN_NETWORK_ID = 2
MAX_NETWORK_ID = 9
EBAY_PARTNER_NETWORK_ID = 9
TRACKING_ID_LENGTH = 10
MIN_POSTAL_CODE_LENGTH = 3
MIN_PAGINATION_VALUE = 1
MAX_PAGINATION_VALUE = 100

OUTPUT_SELECTORS = (
    "AspectHistogram",
    "CategoryHistogram",
    "ConditionHistogram",
    "GalleryInfo",
    "PictureURLLarge",
    "PictureURLSuperSize",
    "SellerInfo",
    "StoreInfo",
    "UnitPriceInfo",
)
PRODUCT_OUTPUT_SELECTORS = tuple(s for s in OUTPUT_SELECTORS if s not in ("AspectHistogram", "CategoryHistogram"))


class Operation(str, Enum):
    """Finding API operations supported by this client."""

    FIND_ITEMS_BY_KEYWORDS = "findItemsByKeywords"
    FIND_ITEMS_BY_CATEGORY = "findItemsByCategory"
    FIND_ITEMS_ADVANCED = "findItemsAdvanced"
    FIND_ITEMS_BY_PRODUCT = "findItemsByProduct"
    FIND_ITEMS_IN_EBAY_STORES = "findItemsIneBayStores"


@dataclass(frozen=True)
class PaginationInput:
    entries_per_page: Optional[int] = None
    page_number: Optional[int] = None


@dataclass(frozen=True)
class AffiliateNetwork:
    """Affiliate network id and the tracking id it requires."""

    network_id: int
    tracking_id: str


@dataclass(frozen=True)
class Affiliate:
    custom_id: Optional[str] = None
    geo_targeting: Optional[bool] = None
    network: Optional[AffiliateNetwork] = None


@dataclass(frozen=True)
class SearchRequest:
    """Fields shared by every search operation."""

    operation: ClassVar[Operation]
    output_selector_choices: ClassVar[Tuple[str, ...]] = OUTPUT_SELECTORS

    item_filters: Tuple[ItemFilter, ...] = ()
    aspect_filters: Tuple[AspectFilter, ...] = ()
    output_selectors: Tuple[str, ...] = ()
    affiliate: Optional[Affiliate] = None
    buyer_postal_code: Optional[str] = None
    pagination: Optional[PaginationInput] = None
    sort_order: Optional[str] = None

    def variant_params(self) -> List[Tuple[str, str]]:
        return []

    def to_params(self) -> List[Tuple[str, str]]:
        """Serialise every field using the numbered syntax for repeated groups."""

        pairs = self.variant_params()
        for idx, aspect_filter in enumerate(self.aspect_filters):
            pairs.append((f"aspectFilter({idx}).aspectName", aspect_filter.aspect_name))
            for jdx, value in enumerate(aspect_filter.value_names):
                pairs.append((f"aspectFilter({idx}).aspectValueName({jdx})", value))
        for idx, item_filter in enumerate(self.item_filters):
            pairs.append((f"itemFilter({idx}).name", item_filter.name))
            for jdx, value in enumerate(item_filter.values):
                pairs.append((f"itemFilter({idx}).value({jdx})", value))
            if item_filter.param is not None:
                pairs.append((f"itemFilter({idx}).paramName", item_filter.param.name))
                pairs.append((f"itemFilter({idx}).paramValue", item_filter.param.value))
        for idx, selector in enumerate(self.output_selectors):
            pairs.append((f"outputSelector({idx})", selector))
        if self.affiliate is not None:
            pairs.extend(_affiliate_params(self.affiliate))
        if self.buyer_postal_code is not None:
            pairs.append(("buyerPostalCode", self.buyer_postal_code))
        if self.pagination is not None:
            if self.pagination.entries_per_page is not None:
                pairs.append(("paginationInput.entriesPerPage", str(self.pagination.entries_per_page)))
            if self.pagination.page_number is not None:
                pairs.append(("paginationInput.pageNumber", str(self.pagination.page_number)))
        if self.sort_order is not None:
            pairs.append(("sortOrder", self.sort_order))
        return pairs


def _category_params(category_ids: Tuple[str, ...]) -> List[Tuple[str, str]]:
    return [(f"categoryId({idx})", category_id) for idx, category_id in enumerate(category_ids)]


@dataclass(frozen=True)
class FindItemsByKeywords(SearchRequest):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_KEYWORDS

    keywords: str = ""

    def variant_params(self) -> List[Tuple[str, str]]:
        return [("keywords", self.keywords)]


@dataclass(frozen=True)
class FindItemsByCategory(SearchRequest):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_CATEGORY

    category_ids: Tuple[str, ...] = ()

    def variant_params(self) -> List[Tuple[str, str]]:
        return _category_params(self.category_ids)


@dataclass(frozen=True)
class FindItemsAdvanced(SearchRequest):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_ADVANCED

    keywords: Optional[str] = None
    category_ids: Tuple[str, ...] = ()
    description_search: Optional[bool] = None

    def variant_params(self) -> List[Tuple[str, str]]:
        pairs = _category_params(self.category_ids)
        if self.keywords is not None:
            pairs.append(("keywords", self.keywords))
        if self.description_search is not None:
            pairs.append(("descriptionSearch", _format_bool(self.description_search)))
        return pairs


@dataclass(frozen=True)
class FindItemsByProduct(SearchRequest):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_BY_PRODUCT
    output_selector_choices: ClassVar[Tuple[str, ...]] = PRODUCT_OUTPUT_SELECTORS

    product_id: Optional[ProductID] = None

    def variant_params(self) -> List[Tuple[str, str]]:
        if self.product_id is None:
            return []
        return [("productId.@type", self.product_id.id_type.value), ("productId", self.product_id.value)]


@dataclass(frozen=True)
class FindItemsInEBayStores(SearchRequest):
    operation: ClassVar[Operation] = Operation.FIND_ITEMS_IN_EBAY_STORES

    keywords: Optional[str] = None
    category_ids: Tuple[str, ...] = ()
    store_name: Optional[str] = None

    def variant_params(self) -> List[Tuple[str, str]]:
        pairs = _category_params(self.category_ids)
        if self.keywords is not None:
            pairs.append(("keywords", self.keywords))
        if self.store_name is not None:
            pairs.append(("storeName", self.store_name))
        return pairs


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _affiliate_params(affiliate: Affiliate) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    if affiliate.custom_id is not None:
        pairs.append(("affiliate.customId", affiliate.custom_id))
    if affiliate.geo_targeting is not None:
        pairs.append(("affiliate.geoTargeting", _format_bool(affiliate.geo_targeting)))
    if affiliate.network is not None:
        pairs.append(("affiliate.networkId", str(affiliate.network.network_id)))
        pairs.append(("affiliate.trackingId", affiliate.network.tracking_id))
    return pairs


def _parse_bool(value: str, code: str, label: str) -> bool:
    if value not in BOOLEAN_VALUES:
        raise invalid_enum(code, label, value)
    return value == "true"


def parse_keywords(value: str) -> str:
    if not MIN_KEYWORDS_LENGTH <= len(value) <= MAX_KEYWORDS_LENGTH:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            f"finding: invalid keywords length: must be between {MIN_KEYWORDS_LENGTH} and {MAX_KEYWORDS_LENGTH} characters",
            code="InvalidKeywordsLength",
            value=value,
            bounds=(MIN_KEYWORDS_LENGTH, MAX_KEYWORDS_LENGTH),
        )
    for word in value.split():
        if len(word) > MAX_KEYWORD_LENGTH:
            raise FindingError(
                ErrorKind.INVALID_RANGE,
                f"finding: invalid keyword length: individual keywords must be at most {MAX_KEYWORD_LENGTH} characters",
                code="InvalidKeywordLength",
                value=word,
                bounds=(None, MAX_KEYWORD_LENGTH),
            )
    return value


def parse_category_ids(params: RawParameters) -> Tuple[str, ...]:
    """Return the category ids from ``categoryId`` (comma separated) or ``categoryId(n)``."""

    if "categoryId" not in params and "categoryId(0)" not in params:
        return ()
    values = parse_values(params, "categoryId")
    if "categoryId" in params:
        values = values[0].split(",")
    if len(values) > MAX_CATEGORY_IDS:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            f"finding: maximum category IDs to specify is {MAX_CATEGORY_IDS}",
            code="MaxCategoryIDs",
            value=str(len(values)),
            bounds=(1, MAX_CATEGORY_IDS),
        )
    for category_id in values:
        if not category_id or len(category_id) > MAX_CATEGORY_ID_LENGTH:
            raise FindingError(
                ErrorKind.INVALID_RANGE,
                f"finding: invalid category ID length: must be between 1 and {MAX_CATEGORY_ID_LENGTH} characters",
                code="InvalidCategoryIDLength",
                value=category_id,
                bounds=(1, MAX_CATEGORY_ID_LENGTH),
            )
    return tuple(values)


def parse_affiliate(params: RawParameters) -> Optional[Affiliate]:
    custom_id = params.get("affiliate.customId")
    geo_targeting = params.get("affiliate.geoTargeting")
    network_id = params.get("affiliate.networkId")
    tracking_id = params.get("affiliate.trackingId")
    if custom_id is None and geo_targeting is None and network_id is None and tracking_id is None:
        return None

    if custom_id is not None and len(custom_id) > MAX_CUSTOM_ID_LENGTH:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            f"finding: invalid affiliate custom ID length: must be at most {MAX_CUSTOM_ID_LENGTH} characters",
            code="InvalidCustomIDLength",
            value=custom_id,
            bounds=(None, MAX_CUSTOM_ID_LENGTH),
        )
    geo = None
    if geo_targeting is not None:
        geo = _parse_bool(geo_targeting, "InvalidGeoTargeting", "affiliate geoTargeting, allowed values are true and false")

    if (network_id is None) != (tracking_id is None):
        raise FindingError(
            ErrorKind.INCOMPLETE_FILTER,
            "finding: incomplete affiliate: both networkId and trackingId must be specified together",
            code="IncompleteAffiliateParams",
        )
    network = None
    if network_id is not None and tracking_id is not None:
        number = parse_int(network_id)
        if number is None or not MIN_NETWORK_ID <= number <= MAX_NETWORK_ID:
            raise invalid_integer(network_id, MIN_NETWORK_ID, MAX_NETWORK_ID, code="InvalidNetworkID")
        if number == EBAY_PARTNER_NETWORK_ID and not (
            len(tracking_id) == TRACKING_ID_LENGTH and tracking_id.isascii() and tracking_id.isdigit()
        ):
            raise FindingError(
                ErrorKind.INVALID_RANGE,
                f"finding: invalid affiliate tracking ID: must be a {TRACKING_ID_LENGTH}-digit number for the eBay Partner Network",
                code="InvalidTrackingID",
                value=tracking_id,
            )
        network = AffiliateNetwork(network_id=number, tracking_id=tracking_id)
    return Affiliate(custom_id=custom_id, geo_targeting=geo, network=network)


def parse_buyer_postal_code(params: RawParameters) -> Optional[str]:
    postal_code = params.get("buyerPostalCode")
    if postal_code is not None and len(postal_code) < MIN_POSTAL_CODE_LENGTH:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            f"finding: invalid postal code: {postal_code}",
            code="InvalidPostalCode",
            value=postal_code,
            bounds=(MIN_POSTAL_CODE_LENGTH, None),
        )
    return postal_code


def _pagination_value(params: RawParameters, key: str, code: str) -> Optional[int]:
    raw = params.get(key)
    if raw is None:
        return None
    number = parse_int(raw)
    if number is None or not MIN_PAGINATION_VALUE <= number <= MAX_PAGINATION_VALUE:
        raise invalid_integer(raw, MIN_PAGINATION_VALUE, MAX_PAGINATION_VALUE, code=code)
    return number


def parse_pagination(params: RawParameters) -> Optional[PaginationInput]:
    entries = _pagination_value(params, "paginationInput.entriesPerPage", "InvalidEntriesPerPage")
    page = _pagination_value(params, "paginationInput.pageNumber", "InvalidPageNumber")
    if entries is None and page is None:
        return None
    return PaginationInput(entries_per_page=entries, page_number=page)


def _validate_output_selectors(selectors: List[str], choices: Tuple[str, ...]) -> Tuple[str, ...]:
    for selector in selectors:
        if selector not in choices:
            raise invalid_enum("InvalidOutputSelector", "output selector", selector)
    return tuple(selectors)


def _optional_keywords(params: RawParameters) -> Optional[str]:
    if "keywords" not in params:
        return None
    return parse_keywords(params["keywords"])


def _keywords_fields(params: RawParameters) -> Dict[str, object]:
    if "keywords" not in params:
        raise missing_field("keywords")
    return {"keywords": parse_keywords(params["keywords"])}


def _category_fields(params: RawParameters) -> Dict[str, object]:
    category_ids = parse_category_ids(params)
    if not category_ids:
        raise missing_field("categoryId")
    return {"category_ids": category_ids}


def _advanced_fields(params: RawParameters) -> Dict[str, object]:
    keywords = _optional_keywords(params)
    category_ids = parse_category_ids(params)
    if keywords is None and not category_ids:
        raise FindingError(
            ErrorKind.MISSING_REQUIRED_FIELD,
            "finding: keywords or categoryId parameter is required",
            code="KeywordsOrCategoryIdMissing",
        )
    description_search = None
    if "descriptionSearch" in params:
        description_search = _parse_bool(
            params["descriptionSearch"], "InvalidDescriptionSearch", "descriptionSearch, allowed values are true and false"
        )
    return {"keywords": keywords, "category_ids": category_ids, "description_search": description_search}


def _product_fields(params: RawParameters) -> Dict[str, object]:
    id_type = params.get("productId.@type")
    value = params.get("productId")
    if id_type is None or value is None:
        raise missing_field("productId", "finding: productId and productId.@type parameters are required")
    return {"product_id": parse_product_id(id_type, value)}


def _stores_fields(params: RawParameters) -> Dict[str, object]:
    keywords = _optional_keywords(params)
    category_ids = parse_category_ids(params)
    store_name = params.get("storeName")
    if store_name is not None and not store_name:
        raise FindingError(
            ErrorKind.INVALID_RANGE,
            "finding: storeName must not be empty",
            code="InvalidStoreName",
            value=store_name,
        )
    if keywords is None and not category_ids and store_name is None:
        raise FindingError(
            ErrorKind.MISSING_REQUIRED_FIELD,
            "finding: keywords, categoryId or storeName parameter is required",
            code="KeywordsCategoryIdOrStoreNameMissing",
        )
    return {"keywords": keywords, "category_ids": category_ids, "store_name": store_name}


_VARIANTS: Dict[Operation, Tuple[Type[SearchRequest], Callable[[RawParameters], Dict[str, object]]]] = {
    Operation.FIND_ITEMS_BY_KEYWORDS: (FindItemsByKeywords, _keywords_fields),
    Operation.FIND_ITEMS_BY_CATEGORY: (FindItemsByCategory, _category_fields),
    Operation.FIND_ITEMS_ADVANCED: (FindItemsAdvanced, _advanced_fields),
    Operation.FIND_ITEMS_BY_PRODUCT: (FindItemsByProduct, _product_fields),
    Operation.FIND_ITEMS_IN_EBAY_STORES: (FindItemsInEBayStores, _stores_fields),
}


def parse_request(
    operation: Operation,
    params: RawParameters,
    *,
    now: Optional[Callable[[], datetime]] = None,
) -> SearchRequest:
    """Validate ``params`` for ``operation`` and return the typed request.

    Checks run in a fixed order and stop at the first violation: item
    filters (individually, then their relationships), aspect filters,
    output selectors, affiliate, buyer postal code, pagination, sort order
    and finally the operation's own required fields.
    """

    request_cls, variant_fields = _VARIANTS[Operation(operation)]
    context = FilterContext(params) if now is None else FilterContext(params, now)

    item_filters = validate_item_filters(parse_item_filters(params), context)
    aspect_filters = parse_aspect_filters(params)
    output_selectors = _validate_output_selectors(parse_output_selectors(params), request_cls.output_selector_choices)
    affiliate = parse_affiliate(params)
    buyer_postal_code = parse_buyer_postal_code(params)
    pagination = parse_pagination(params)
    sort_order = None
    if "sortOrder" in params:
        sort_order = validate_sort_order(params["sortOrder"], item_filters, context)

    return request_cls(
        item_filters=tuple(item_filters),
        aspect_filters=tuple(aspect_filters),
        output_selectors=output_selectors,
        affiliate=affiliate,
        buyer_postal_code=buyer_postal_code,
        pagination=pagination,
        sort_order=sort_order,
        **variant_fields(params),
    )


def build_query(request: SearchRequest, app_id: str) -> Dict[str, str]:
    """Return the outbound query parameters for ``request``, control parameters first."""

    query: Dict[str, str] = {
        "OPERATION-NAME": request.operation.value,
        "SERVICE-VERSION": SERVICE_VERSION,
        "SECURITY-APPNAME": app_id,
        "RESPONSE-DATA-FORMAT": RESPONSE_DATA_FORMAT,
    }
    for key, value in request.to_params():
        query[key] = value
    return query


def request_params(request: SearchRequest) -> Mapping[str, str]:
    """Return ``request`` as caller-side parameters, suitable for :func:`parse_request`."""

    return dict(request.to_params())


__all__ = [
    "Affiliate",
    "AffiliateNetwork",
    "FindItemsAdvanced",
    "FindItemsByCategory",
    "FindItemsByKeywords",
    "FindItemsByProduct",
    "FindItemsInEBayStores",
    "Operation",
    "PaginationInput",
    "SearchRequest",
    "build_query",
    "parse_affiliate",
    "parse_category_ids",
    "parse_keywords",
    "parse_pagination",
    "parse_request",
    "request_params",
]
