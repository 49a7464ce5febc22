"""Unit tests for SSM parameter access and the payment signing secret.

Tests for:
- SSMService reads, caching and missing parameters against moto SSM
- PaymentService fetching its signing secret lazily
"""

import hashlib
import hmac
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import boto3
import pytest
from moto import mock_aws

from stayhub.services.payment_service import PaymentService
from stayhub.services.ssm_service import SSMService, SSMServiceError

SECRET_PATH = "/booking/test/payments/key_secret"


@pytest.fixture
def ssm_client() -> Generator[Any, None, None]:
    """moto SSM holding the gateway signing secret."""
    with mock_aws():
        client = boto3.client("ssm")
        client.put_parameter(Name=SECRET_PATH, Value="ssm_secret", Type="SecureString")
        yield client


class TestSSMService:
    """Tests for SSMService."""

    def test_parameter_path_uses_environment(self) -> None:
        with mock_aws():
            service = SSMService(environment="prod")
        assert service.parameter_path("payments/key_secret") == "/booking/prod/payments/key_secret"
        assert service.parameter_path("/payments/key_secret") == "/booking/prod/payments/key_secret"

    def test_reads_secure_string(self, ssm_client: Any) -> None:
        service = SSMService(environment="test")
        assert service.get_parameter(service.parameter_path("payments/key_secret")) == "ssm_secret"

    def test_cached_after_first_read(self, ssm_client: Any) -> None:
        service = SSMService()
        service.get_parameter(SECRET_PATH)

        ssm_client.put_parameter(
            Name=SECRET_PATH, Value="rotated", Type="SecureString", Overwrite=True
        )

        assert service.get_parameter(SECRET_PATH) == "ssm_secret"
        assert service.get_parameter(SECRET_PATH, use_cache=False) == "rotated"

    def test_clear_cache(self, ssm_client: Any) -> None:
        service = SSMService()
        service.get_parameter(SECRET_PATH)
        ssm_client.put_parameter(
            Name=SECRET_PATH, Value="rotated", Type="SecureString", Overwrite=True
        )

        service.clear_cache()

        assert service.get_parameter(SECRET_PATH) == "rotated"

    def test_missing_parameter(self, ssm_client: Any) -> None:
        service = SSMService()

        with pytest.raises(SSMServiceError, match="not found"):
            service.get_parameter("/booking/test/payments/missing")


class TestPaymentSigningSecret:
    """Tests for PaymentService.signing_secret."""

    def test_explicit_secret_skips_ssm(self) -> None:
        with patch("stayhub.services.payment_service.get_ssm_service") as mock_get_ssm:
            service = PaymentService(signing_secret="explicit")
            assert service.signing_secret == "explicit"

        mock_get_ssm.assert_not_called()

    def test_secret_read_from_ssm_once(self) -> None:
        with patch("stayhub.services.payment_service.get_ssm_service") as mock_get_ssm:
            mock_ssm = MagicMock()
            mock_ssm.parameter_path.return_value = SECRET_PATH
            mock_ssm.get_parameter.return_value = "ssm_secret"
            mock_get_ssm.return_value = mock_ssm

            service = PaymentService()
            signature = service.compute_signature("order_1", "pay_1")
            service.compute_signature("order_2", "pay_2")

        expected = hmac.new(b"ssm_secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert signature == expected
        mock_ssm.parameter_path.assert_called_once_with("payments/key_secret")
        mock_ssm.get_parameter.assert_called_once_with(SECRET_PATH)
