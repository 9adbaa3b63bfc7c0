"""AWS Lambda handler that exposes the Finding API client behind API Gateway."""
from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Dict, Mapping, Optional

import structlog

from .config import FindingConfig
from .credentials import credential_provider_for
from .errors import FindingError
from .model import FindingClient
from .records import ItemSink, response_to_records
from .request import Operation
from .response import SearchResponse

logger = structlog.get_logger(__name__)

ROUTES: Dict[str, Operation] = {
    "keywords": Operation.FIND_ITEMS_BY_KEYWORDS,
    "category": Operation.FIND_ITEMS_BY_CATEGORY,
    "advanced": Operation.FIND_ITEMS_ADVANCED,
    "product": Operation.FIND_ITEMS_BY_PRODUCT,
    "ebay-stores": Operation.FIND_ITEMS_IN_EBAY_STORES,
}

_JSON_HEADERS = {"Content-Type": "application/json"}


class _ClientFactory:
    """Callable wrapper used for dependency injection in tests."""

    def __call__(self, config: FindingConfig) -> FindingClient:
        return FindingClient(
            app_id=credential_provider_for(config),
            base_url=config.base_url,
            timeout=config.timeout,
        )


_client_factory: _ClientFactory = _ClientFactory()
_sink: Optional[ItemSink] = None


def handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """Entry point compatible with API Gateway proxy integrations (REST and HTTP APIs).

    The operation is chosen from the last path segment (``/find/keywords``,
    ``/find/category``, ``/find/advanced``, ``/find/product`` or
    ``/find/ebay-stores``) or from a ``operation`` path parameter. Query
    string parameters are passed to the client unchanged.
    """

    if event is None:
        raise ValueError("Event payload must be an API Gateway proxy event mapping.")

    operation = _resolve_operation(event)
    if operation is None:
        return _json_response(HTTPStatus.NOT_FOUND, {"error": "finding: unknown search operation"})

    try:
        params = _query_parameters(event)
    except ValueError as exc:
        return _json_response(HTTPStatus.BAD_REQUEST, {"error": str(exc)})

    client = _client_factory(FindingConfig.from_env())
    try:
        response = client.find_items(operation, params)
    except FindingError as exc:
        logger.info("finding.handler.error", operation=operation.value, status=exc.status_code, code=exc.code)
        return _json_response(exc.status_code, exc.to_dict())

    if response.has_errors:
        return _json_response(HTTPStatus.BAD_REQUEST, response.to_dict())

    store_items(response)
    return _json_response(HTTPStatus.OK, response.to_dict())


def set_sink(sink: Optional[ItemSink]) -> None:
    """Register the sink that receives item records from successful searches.

    No sink is registered by default, so searches are only relayed. A
    deployment that persists listings registers its sink once at import time
    of its own entry module; ``None`` unregisters it. The sink is shared by
    this handler and the FastAPI app.
    """

    global _sink
    _sink = sink


def store_items(response: SearchResponse) -> None:
    """Hand decoded items to the registered sink; sink failures are logged, never raised."""

    sink = _sink
    if sink is None or response.is_empty:
        return
    records = response_to_records(response)
    if not records:
        return
    try:
        sink.write(records)
    except Exception:  # noqa: BLE001
        logger.exception("finding.sink.failed", operation=response.operation.value, records=len(records))


def _resolve_operation(event: Mapping[str, Any]) -> Optional[Operation]:
    path_parameters = event.get("pathParameters") or {}
    name = path_parameters.get("operation")
    if not name:
        path = str(event.get("rawPath") or event.get("path") or "")
        name = path.rstrip("/").rsplit("/", 1)[-1]
    return ROUTES.get(name)


def _query_parameters(event: Mapping[str, Any]) -> Dict[str, str]:
    multi = event.get("multiValueQueryStringParameters") or {}
    for key, values in multi.items():
        if values is not None and len(values) > 1:
            raise ValueError(f"finding: parameter {key!r} contains more than one value")
    params = event.get("queryStringParameters") or {}
    return {str(key): str(value) for key, value in params.items()}


def _json_response(status: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": int(status),
        "headers": dict(_JSON_HEADERS),
        "body": json.dumps(payload),
    }


__all__ = ["ROUTES", "handler", "set_sink", "store_items"]
