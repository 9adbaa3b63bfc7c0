"""Providers for the Finding API application id (``SECURITY-APPNAME``)."""
from __future__ import annotations

import os
from typing import Any, Callable, Mapping, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .config import FindingConfig
from .errors import ErrorKind, FindingError

logger = structlog.get_logger(__name__)

CredentialProvider = Callable[[], str]


class EnvCredentialProvider:
    """Reads the application id from an environment variable."""

    def __init__(self, variable: str, *, environ: Optional[Mapping[str, str]] = None) -> None:
        self.variable = variable
        self._environ = environ

    def __call__(self) -> str:
        env = os.environ if self._environ is None else self._environ
        value = env.get(self.variable)
        if not value:
            raise FindingError(
                ErrorKind.CREDENTIAL_RETRIEVAL_FAILURE,
                f"finding: failed to retrieve app ID: environment variable {self.variable} is not set",
                code="CredentialRetrieval",
            )
        return value


class SSMCredentialProvider:
    """Reads the application id from an encrypted SSM parameter."""

    def __init__(self, parameter_name: str, *, client: Any = None) -> None:
        self.parameter_name = parameter_name
        self._client = client

    def _ssm(self) -> Any:
        if self._client is None:
            self._client = boto3.client("ssm")
        return self._client

    def __call__(self) -> str:
        try:
            output = self._ssm().get_parameter(Name=self.parameter_name, WithDecryption=True)
            return output["Parameter"]["Value"]
        except (BotoCoreError, ClientError, KeyError) as exc:
            logger.warning("finding.credentials.ssm_failed", parameter=self.parameter_name, error=str(exc))
            raise FindingError(
                ErrorKind.CREDENTIAL_RETRIEVAL_FAILURE,
                f"finding: failed to retrieve app ID: {exc}",
                code="CredentialRetrieval",
            ) from exc


def credential_provider_for(
    config: FindingConfig, *, environ: Optional[Mapping[str, str]] = None
) -> CredentialProvider:
    """Prefer the environment variable when set, otherwise fall back to SSM."""

    env = os.environ if environ is None else environ
    if env.get(config.app_id_env):
        return EnvCredentialProvider(config.app_id_env, environ=env)
    return SSMCredentialProvider(config.app_id_parameter)


__all__ = [
    "CredentialProvider",
    "EnvCredentialProvider",
    "SSMCredentialProvider",
    "credential_provider_for",
]
