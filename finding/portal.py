"""HTTP API exposing Finding API searches as JSON endpoints."""
from __future__ import annotations

from collections import Counter
from typing import Callable, Dict

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum

from .config import FindingConfig
from .credentials import credential_provider_for
from .errors import FindingError
from .lambda_handler import ROUTES, store_items
from .model import FindingClient

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[FindingConfig], FindingClient]


def _default_client_factory(config: FindingConfig) -> FindingClient:
    return FindingClient(
        app_id=credential_provider_for(config),
        base_url=config.base_url,
        timeout=config.timeout,
    )


_client_factory: ClientFactory = _default_client_factory


app = FastAPI(title="eBay Finding API Gateway", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/find/{operation}", response_class=JSONResponse)
def find(operation: str, request: Request) -> JSONResponse:
    """Validate the query string, search the Finding API and relay the decoded body.

    Validation failures answer 400 with ``{"error", "kind", "code"}``; upstream
    and transport failures answer 500 with the same shape. A response whose
    first entry carries an ``errorMessage`` is relayed with status 400.
    """

    op = ROUTES.get(operation)
    if op is None:
        raise HTTPException(status_code=404, detail=f"Unknown search operation {operation!r}.")

    params = _single_valued(request)
    client = _client_factory(FindingConfig.from_env())
    try:
        response = client.find_items(op, params)
    except FindingError as exc:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    if response.has_errors:
        return JSONResponse(status_code=400, content=response.to_dict())

    store_items(response)
    return JSONResponse(content=response.to_dict())


def _single_valued(request: Request) -> Dict[str, str]:
    items = request.query_params.multi_items()
    repeated = sorted(key for key, count in Counter(key for key, _ in items).items() if count > 1)
    if repeated:
        logger.info("finding.portal.repeated_parameters", parameters=repeated)
        raise HTTPException(
            status_code=400,
            detail=f"Query parameters must be single-valued: {', '.join(repeated)}.",
        )
    return dict(items)


handler = Mangum(app, lifespan="off")


__all__ = ["app", "handler"]
