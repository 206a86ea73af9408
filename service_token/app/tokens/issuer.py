"""
Token issuing: signs a claim bundle into a compact RS256 JWT.
"""

from typing import Any, Dict, Optional

from jose import jwt
from jose.backends.base import Key
from jose.constants import ALGORITHMS

from shared.errors import MissingArgumentError, TokenCreationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import ClaimBundle, IDENTITY_CLAIM, TENANCY_ID_CLAIM


def build_claims(bundle: ClaimBundle) -> Dict[str, Any]:
    """Map a claim bundle to the JWT payload; absent optional claims are omitted."""
    claims: Dict[str, Any] = {
        "iss": bundle.issuer,
        "iat": int(bundle.issued_at.timestamp()),
        "exp": int(bundle.expires_at.timestamp()),
        "sub": bundle.subject,
        IDENTITY_CLAIM: bundle.identity,
    }
    if bundle.audience is not None:
        claims["aud"] = bundle.audience
    if bundle.tenancy_id is not None:
        claims[TENANCY_ID_CLAIM] = bundle.tenancy_id
    return claims


class TokenIssuer:
    """Signs identity tokens with an RSA private key."""

    algorithm = ALGORITHMS.RS256

    def __init__(self, private_key: Key, metrics: Optional[MetricsCollector] = None):
        if private_key is None:
            raise MissingArgumentError("private_key")
        self._private_key = private_key
        self.metrics = metrics
        self.logger = get_logger("token.issuer")

    def create_token(self, bundle: Optional[ClaimBundle]) -> str:
        """Sign ``bundle`` and return the compact token string."""
        if bundle is None:
            raise MissingArgumentError("bundle")

        try:
            token = jwt.encode(build_claims(bundle), self._private_key, algorithm=self.algorithm)
        except Exception as e:
            self.logger.error(
                "Failed to create token",
                subject=bundle.subject,
                identity=bundle.identity,
                error=str(e)
            )
            if self.metrics:
                self.metrics.record_error("token_creation_failed")
            raise TokenCreationError(
                f"Failed to create token for subject {bundle.subject}",
                details={"subject": bundle.subject, "identity": bundle.identity}
            ) from e

        self.logger.debug(
            "Token issued",
            subject=bundle.subject,
            tenancy_id=bundle.tenancy_id,
            expires_at=bundle.expires_at.isoformat()
        )
        if self.metrics:
            self.metrics.record_token_issued()
        return token
