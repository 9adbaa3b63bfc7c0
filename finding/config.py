"""Runtime configuration for the Finding API client and its entry points."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://svcs.ebay.com/services/search/FindingService/v1"
DEFAULT_TIMEOUT = 10.0
DEFAULT_APP_ID_PARAMETER = "ebay-app-id"
DEFAULT_APP_ID_ENV = "EBAY_APP_ID"


@dataclass
class FindingConfig:
    """Default configuration for talking to the Finding API."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    app_id_parameter: str = DEFAULT_APP_ID_PARAMETER
    app_id_env: str = DEFAULT_APP_ID_ENV

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FindingConfig":
        """Build a configuration from ``FINDING_*`` environment variables."""

        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get("FINDING_BASE_URL", DEFAULT_BASE_URL),
            timeout=_coerce_float(env.get("FINDING_TIMEOUT", DEFAULT_TIMEOUT), "FINDING_TIMEOUT"),
            app_id_parameter=env.get("FINDING_APP_ID_PARAMETER", DEFAULT_APP_ID_PARAMETER),
            app_id_env=env.get("FINDING_APP_ID_ENV", DEFAULT_APP_ID_ENV),
        )


def _coerce_float(value: object, field: str) -> float:
    try:
        candidate = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number") from exc
    if candidate <= 0:
        raise ValueError(f"{field} must be positive")
    return candidate


__all__ = ["FindingConfig"]
