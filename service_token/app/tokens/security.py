"""
Token security facade: one key pair, one issuer, one verifier.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from shared.config import BaseConfig
from shared.errors import UniauthException, VerifierCreationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ..keys.loader import RSAKeyPair, load_key_pair, resolve_key
from .issuer import TokenIssuer
from .models import ClaimBundle
from .verifier import TokenVerifier


class TokenSecurity:
    """Creates and verifies identity tokens with a single RSA key pair.

    The key pair is parsed once here and shared read-only by the issuer and
    the verifier, so an instance can be used from several threads.
    """

    def __init__(
        self,
        private_key: Optional[str],
        public_key: Optional[str],
        issuer: str = "uniauth",
        ttl_seconds: int = 3600,
        leeway: int = 0,
        expected_issuer: Optional[str] = None,
        expected_audience: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.logger = get_logger("token.security")
        self.key_pair: RSAKeyPair = load_key_pair(private_key, public_key)
        self.issuer = issuer
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self.token_issuer = TokenIssuer(self.key_pair.private_key, metrics=metrics)
        try:
            self.token_verifier = TokenVerifier(
                self.key_pair.public_key,
                leeway=leeway,
                expected_issuer=expected_issuer,
                expected_audience=expected_audience,
                clock=clock,
                metrics=metrics,
            )
        except UniauthException:
            raise
        except Exception as e:
            self.logger.error("Failed to create token verifier", error=str(e))
            raise VerifierCreationError(f"Failed to create token verifier: {e}") from e

    @classmethod
    def from_config(cls, config: BaseConfig, private_key: Optional[str] = None, public_key: Optional[str] = None) -> "TokenSecurity":
        """Build from settings; explicit key text overrides the configured keys."""
        private_source, public_source = config.key_sources()
        metrics = get_metrics_collector(getattr(config, "service_name", "token")) if config.metrics_enabled else None

        return cls(
            private_key or resolve_key(private_source),
            public_key or resolve_key(public_source),
            issuer=config.jwt_issuer,
            ttl_seconds=config.jwt_ttl_seconds,
            leeway=config.jwt_leeway_seconds,
            expected_issuer=config.jwt_issuer,
            expected_audience=config.jwt_audience,
            metrics=metrics,
        )

    def new_bundle(
        self,
        subject: str,
        identity: str,
        tenancy_id: Optional[int] = None,
        audience: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> ClaimBundle:
        """Stamp a claim bundle that is valid from now for ``ttl_seconds``."""
        issued_at = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        lifetime = timedelta(seconds=self.ttl_seconds if ttl_seconds is None else ttl_seconds)
        return ClaimBundle(
            issuer=self.issuer,
            audience=audience,
            subject=subject,
            identity=identity,
            tenancy_id=tenancy_id,
            issued_at=issued_at,
            expires_at=issued_at + lifetime,
        )

    def create_token(self, bundle: Optional[ClaimBundle]) -> str:
        return self.token_issuer.create_token(bundle)

    def verify_token(self, token: Optional[str]) -> ClaimBundle:
        return self.token_verifier.verify(token)
