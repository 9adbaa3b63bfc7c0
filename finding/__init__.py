"""Validating request builder and response decoder for the eBay Finding API."""

# Keep package import light-weight; avoid importing FastAPI app at package import time.
from .config import FindingConfig
from .errors import ErrorKind, FindingError
from .model import FindingClient
from .request import Operation, parse_request
from .response import SearchResponse, decode_response

__all__ = [
    "ErrorKind",
    "FindingClient",
    "FindingConfig",
    "FindingError",
    "Operation",
    "SearchResponse",
    "decode_response",
    "parse_request",
]
