"""Error taxonomy shared by validation, transport and decoding."""
from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Optional, Tuple


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the finding client."""

    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_FILTER_SYNTAX = "InvalidFilterSyntax"
    INCOMPLETE_FILTER = "IncompleteFilter"
    UNSUPPORTED_FILTER_TYPE = "UnsupportedFilterType"
    INVALID_ENUM_VALUE = "InvalidEnumValue"
    INVALID_RANGE = "InvalidRange"
    INVALID_CROSS_FIELD_CONSTRAINT = "InvalidCrossFieldConstraint"
    INVALID_CHECKSUM = "InvalidChecksum"
    CREDENTIAL_RETRIEVAL_FAILURE = "CredentialRetrievalFailure"
    TRANSPORT_FAILURE = "TransportFailure"
    UPSTREAM_STATUS_ERROR = "UpstreamStatusError"
    DECODE_FAILURE = "DecodeFailure"

    @property
    def is_validation(self) -> bool:
        return self in _VALIDATION_KINDS

    @property
    def status_code(self) -> int:
        if self.is_validation:
            return int(HTTPStatus.BAD_REQUEST)
        return int(HTTPStatus.INTERNAL_SERVER_ERROR)


_VALIDATION_KINDS = frozenset(
    {
        ErrorKind.MISSING_REQUIRED_FIELD,
        ErrorKind.INVALID_FILTER_SYNTAX,
        ErrorKind.INCOMPLETE_FILTER,
        ErrorKind.UNSUPPORTED_FILTER_TYPE,
        ErrorKind.INVALID_ENUM_VALUE,
        ErrorKind.INVALID_RANGE,
        ErrorKind.INVALID_CROSS_FIELD_CONSTRAINT,
        ErrorKind.INVALID_CHECKSUM,
    }
)


class FindingError(RuntimeError):
    """Raised for every failure while validating, sending or decoding a search.

    ``kind`` is the taxonomy member callers branch on, ``code`` names the
    specific rule that failed (for example ``InvalidCurrencyID``), ``value``
    carries the offending input and ``bounds`` the limits it violated, when
    those apply.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        code: Optional[str] = None,
        value: Optional[str] = None,
        bounds: Optional[Tuple[Optional[float], Optional[float]]] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code or kind.value
        self.value = value
        self.bounds = bounds

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": self.message,
            "kind": self.kind.value,
            "code": self.code,
        }
        if self.value is not None:
            payload["value"] = self.value
        return payload

    def __repr__(self) -> str:
        return f"FindingError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"


def missing_field(field: str, message: Optional[str] = None) -> FindingError:
    return FindingError(
        ErrorKind.MISSING_REQUIRED_FIELD,
        message or f"finding: {field} parameter is required",
        code=f"{field[0].upper()}{field[1:]}Missing",
    )


def invalid_enum(code: str, label: str, value: str) -> FindingError:
    return FindingError(
        ErrorKind.INVALID_ENUM_VALUE,
        f"finding: invalid {label}: {value}",
        code=code,
        value=value,
    )


def invalid_integer(value: str, minimum: int, maximum: Optional[int] = None, *, code: str = "InvalidInteger") -> FindingError:
    if maximum is None:
        message = f"finding: invalid integer: {value} (minimum value: {minimum})"
    else:
        message = f"finding: invalid integer: {value} (must be between {minimum} and {maximum})"
    return FindingError(
        ErrorKind.INVALID_RANGE,
        message,
        code=code,
        value=value,
        bounds=(minimum, maximum),
    )


def cross_field(code: str, message: str) -> FindingError:
    return FindingError(ErrorKind.INVALID_CROSS_FIELD_CONSTRAINT, message, code=code)


__all__ = [
    "ErrorKind",
    "FindingError",
    "cross_field",
    "invalid_enum",
    "invalid_integer",
    "missing_field",
]
