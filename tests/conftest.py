"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import structlog

from sreq.cache.encryption import generate_key, save_key
from sreq.config.settings import ProviderConfig, ServiceConfig, SreqConfig
from sreq.models.domain import ResolvedCredentials

ISOLATED_ENV_VARS = (
    "CI",
    "SREQ_NO_CACHE",
    "SREQ_CONFIG",
    "SREQ_CONFIG_DIR",
    "SREQ_CACHE_TTL",
    "SREQ_TIMEOUT",
    "AWS_REGION",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Keep host CI and sreq variables out of every test."""
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Configuration root with a cache key in place."""
    root = tmp_path / "sreq"
    save_key(root, generate_key())
    return root


@pytest.fixture
def sample_credentials() -> ResolvedCredentials:
    """Sample credentials for testing."""
    return ResolvedCredentials(
        base_url="https://billing.internal",
        username="svc-billing",
        password="s3cret-password",
        api_key="ak_live_1234567890",
        custom={"tenant_id": "t-42"},
    )


@pytest.fixture
def sreq_config() -> SreqConfig:
    """Configuration with simple- and advanced-mode services."""
    return SreqConfig(
        providers={
            "consul": ProviderConfig(
                address="consul-dev:8500",
                paths={
                    "base_url": "services/{service}/config/base_url",
                    "username": "services/{service}/config/username",
                },
            ),
            "aws_secrets": ProviderConfig(
                region="us-east-1",
                paths={
                    "password": "{service}/{env}/credentials#password",
                    "api_key": "{service}/{env}/credentials#api_key",
                    "base_url": "{service}/{env}/credentials#base_url",
                },
            ),
        },
        default_env="dev",
        services={
            "auth-service": ServiceConfig(name="auth-service", consul_key="auth", aws_prefix="auth-svc"),
            "kv-only": ServiceConfig(name="kv-only", consul_key="kv"),
            "invoice": ServiceConfig(
                name="invoice",
                paths={
                    "base_url": "billing_service/invoice_svc_url",
                    "password": "aws:billing/{env}/invoice#password",
                    "tenant": "env:INVOICE_{region}_TENANT",
                },
            ),
        },
    )
