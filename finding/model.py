"""Client for the eBay Finding API: validate, send and decode a search."""
from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional, Tuple, Union
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

import structlog

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from .credentials import CredentialProvider
from .errors import ErrorKind, FindingError
from .request import Operation, SearchRequest, build_query, parse_request
from .response import (
    FindItemsAdvancedResponse,
    FindItemsByCategoryResponse,
    FindItemsByKeywordsResponse,
    FindItemsByProductResponse,
    FindItemsInEBayStoresResponse,
    SearchResponse,
    decode_response,
)

logger = structlog.get_logger(__name__)

HttpGet = Callable[[str, Dict[str, str], float], Tuple[int, bytes]]


class FindingClient:
    """Searches the Finding API with caller-supplied query parameters.

    ``app_id`` may be a plain string or a zero-argument callable; callables
    are only invoked once the parameters have validated, so a rejected
    request never touches the credential store or the network.
    """

    def __init__(
        self,
        *,
        app_id: Union[str, CredentialProvider],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_get: Optional[HttpGet] = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.base_url = base_url
        self.timeout = timeout
        self._app_id = app_id
        self._http_get = http_get or _default_http_get

    def find_items_by_keywords(self, params: Mapping[str, str]) -> FindItemsByKeywordsResponse:
        """Search by keywords (``findItemsByKeywords``)."""
        return self.find_items(Operation.FIND_ITEMS_BY_KEYWORDS, params)  # type: ignore[return-value]

    def find_items_by_category(self, params: Mapping[str, str]) -> FindItemsByCategoryResponse:
        """Search by up to three category ids (``findItemsByCategory``)."""
        return self.find_items(Operation.FIND_ITEMS_BY_CATEGORY, params)  # type: ignore[return-value]

    def find_items_advanced(self, params: Mapping[str, str]) -> FindItemsAdvancedResponse:
        """Search by category and/or keywords (``findItemsAdvanced``)."""
        return self.find_items(Operation.FIND_ITEMS_ADVANCED, params)  # type: ignore[return-value]

    def find_items_by_product(self, params: Mapping[str, str]) -> FindItemsByProductResponse:
        """Search by product identifier (``findItemsByProduct``)."""
        return self.find_items(Operation.FIND_ITEMS_BY_PRODUCT, params)  # type: ignore[return-value]

    def find_items_in_ebay_stores(self, params: Mapping[str, str]) -> FindItemsInEBayStoresResponse:
        """Search eBay stores by store name, category and/or keywords (``findItemsIneBayStores``)."""
        return self.find_items(Operation.FIND_ITEMS_IN_EBAY_STORES, params)  # type: ignore[return-value]

    def find_items(self, operation: Union[Operation, str], params: Mapping[str, str]) -> SearchResponse:
        op = Operation(operation)
        try:
            request = parse_request(op, params)
        except FindingError as exc:
            logger.info("finding.rejected", operation=op.value, kind=exc.kind.value, code=exc.code)
            raise
        return self.send(request)

    def send(self, request: SearchRequest) -> SearchResponse:
        """Send an already validated request and decode the response."""

        op = request.operation
        query = build_query(request, self._resolve_app_id())
        logger.info("finding.request", operation=op.value, parameters=len(query))
        try:
            try:
                status, body = self._http_get(self.base_url, query, self.timeout)
            except OSError as exc:
                raise _transport_error(exc) from exc
            if status != 200:
                raise FindingError(
                    ErrorKind.UPSTREAM_STATUS_ERROR,
                    f"finding: failed to perform Finding API request with status code {status}",
                    code="InvalidStatus",
                    value=str(status),
                )
            response = decode_response(op, body)
        except FindingError as exc:
            logger.warning("finding.error", operation=op.value, kind=exc.kind.value, error=exc.message)
            raise
        logger.info(
            "finding.response",
            operation=op.value,
            entries=len(response.items_response),
            upstream_errors=response.has_errors,
        )
        return response

    def build_url(self, operation: Union[Operation, str], params: Mapping[str, str]) -> str:
        """Validate ``params`` and return the outbound URL without sending it."""

        request = parse_request(Operation(operation), params)
        return f"{self.base_url}?{urlencode(build_query(request, self._resolve_app_id()))}"

    def _resolve_app_id(self) -> str:
        if callable(self._app_id):
            return self._app_id()
        return self._app_id


def _transport_error(exc: Exception) -> FindingError:
    return FindingError(
        ErrorKind.TRANSPORT_FAILURE,
        f"finding: failed to perform Finding API request: {exc}",
        code="FailedRequest",
    )


def _default_http_get(url: str, params: Dict[str, str], timeout: float) -> Tuple[int, bytes]:
    query = urlencode(params)
    target = f"{url}?{query}" if query else url
    request = Request(target, headers={"Accept": "application/json"})
    try:
        with urlopen(request, timeout=timeout) as response:
            return response.status, response.read()
    except HTTPError as exc:
        return exc.code, b""
    except (URLError, OSError) as exc:
        raise _transport_error(exc) from exc


__all__ = [
    "FindingClient",
    "HttpGet",
]
