"""SSM Parameter Store access for marketplace secrets.

The payment gateway signing secret lives under
/booking/{environment}/payments/key_secret as a SecureString.
"""

import logging
import os
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails."""


class SSMService:
    """Cached reader for SecureString parameters.

    Values are cached per process; a Lambda container fetches each
    secret once.

    Usage:
        ssm = get_ssm_service()
        secret = ssm.get_parameter(ssm.parameter_path("payments/key_secret"))
    """

    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self, environment: str | None = None) -> None:
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._client = boto3.client("ssm")

    def parameter_path(self, name: str) -> str:
        """Build the full parameter path for this environment."""
        return f"/booking/{self._environment}/{name.lstrip('/')}"

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve a decrypted parameter value.

        Args:
            name: Full parameter path (e.g., "/booking/dev/payments/key_secret")
            use_cache: Whether to return a cached value when present

        Returns:
            The decrypted parameter value.

        Raises:
            SSMServiceError: If the parameter cannot be retrieved.
        """
        if use_cache and name in self._cache:
            logger.debug("SSM cache hit for %s", name)
            return self._cache[name]

        try:
            logger.info("Fetching SSM parameter: %s", name)
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter: {name}. "
                    "Check IAM permissions for ssm:GetParameter."
                ) from e
            raise SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}") from e

        value = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def clear_cache(self) -> None:
        """Drop all cached parameters."""
        self._cache.clear()
        logger.info("SSM parameter cache cleared")


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
