"""
Shared pytest fixtures: RSA key pairs, claim bundles and token helpers.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest
from prometheus_client import CollectorRegistry

from service_token.app.keys.loader import generate_key_pair, load_key_pair
from service_token.app.tokens.models import ClaimBundle
from shared.metrics import MetricsCollector


@pytest.fixture(scope="session")
def pem_pair():
    """(private_pem, public_pem); generated once, RSA generation is slow."""
    return generate_key_pair(2048)


@pytest.fixture(scope="session")
def other_pem_pair():
    """A second, unrelated key pair."""
    return generate_key_pair(2048)


@pytest.fixture(scope="session")
def key_pair(pem_pair):
    private_pem, public_pem = pem_pair
    return load_key_pair(private_pem, public_pem)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def make_bundle(now) -> Callable[..., ClaimBundle]:
    """Factory for claim bundles valid for ``expires_in`` seconds."""

    def _make(
        subject: str = "user42",
        identity: Optional[str] = None,
        audience: Optional[str] = "app1",
        tenancy_id: Optional[int] = 7,
        issuer: str = "uniauth",
        issued_at: Optional[datetime] = None,
        expires_in: int = 3600,
    ) -> ClaimBundle:
        issued_at = issued_at or now
        return ClaimBundle(
            issuer=issuer,
            audience=audience,
            subject=subject,
            identity=identity or subject,
            tenancy_id=tenancy_id,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(seconds=expires_in),
        )

    return _make


@pytest.fixture
def tamper_signature() -> Callable[[str], str]:
    """Replace one base64url character of the signature segment."""

    def _tamper(token: str, position: int = 0) -> str:
        header, payload, signature = token.split(".")
        position %= len(signature)
        replacement = "A" if signature[position] != "A" else "B"
        return ".".join([header, payload, signature[:position] + replacement + signature[position + 1:]])

    return _tamper


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector("token", registry=CollectorRegistry())


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    """Keep UNIAUTH_* variables from the outer environment out of tests."""
    import os

    for name in list(os.environ):
        if name.upper().startswith("UNIAUTH_"):
            monkeypatch.delenv(name)
