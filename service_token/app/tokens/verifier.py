"""
Token verification: checks signature and expiry, then rebuilds the claim bundle.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt
from jose.backends.base import Key
from jose.constants import ALGORITHMS
from jose.exceptions import JWTError
from jose.utils import base64url_decode, base64url_encode

from shared.errors import (
    InvalidTokenError,
    MissingArgumentError,
    TokenExpiredError,
    TokenVerificationError,
    VerifierCreationError,
)
from shared.logging import get_logger, token_preview
from shared.metrics import MetricsCollector
from .models import ClaimBundle, IDENTITY_CLAIM, TENANCY_ID_CLAIM


def _first_audience(audience: Any) -> Optional[str]:
    if isinstance(audience, (list, tuple)):
        return audience[0] if audience else None
    return audience


def _timestamp(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _check_signature_encoding(token: str) -> None:
    """Reject a signature segment that does not re-encode to itself.

    The base64url decoder ignores the spare low bits of the last character.
    """
    segments = token.split(".")
    if len(segments) != 3:
        return
    try:
        signature = segments[2].encode("ascii")
        canonical = base64url_encode(base64url_decode(signature))
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token signature is not valid base64url") from e
    if canonical != signature:
        raise InvalidTokenError("Token signature is not canonically encoded")


def bundle_from_claims(claims: Dict[str, Any]) -> ClaimBundle:
    """Rebuild a claim bundle from a decoded JWT payload."""
    tenancy_id = claims.get(TENANCY_ID_CLAIM)
    return ClaimBundle(
        issuer=claims.get("iss"),
        audience=_first_audience(claims.get("aud")),
        subject=claims.get("sub"),
        identity=claims.get(IDENTITY_CLAIM),
        tenancy_id=None if tenancy_id is None else int(tenancy_id),
        issued_at=_timestamp(claims["iat"]),
        expires_at=_timestamp(claims["exp"]),
    )


class TokenVerifier:
    """Verifies identity tokens against an RSA public key.

    Only RS256 is accepted. Expiry is compared against ``clock()`` after the
    signature has been verified, so a forged token is reported as invalid
    even when its expiry has also passed.
    """

    algorithms = [ALGORITHMS.RS256]

    def __init__(
        self,
        public_key: Key,
        leeway: int = 0,
        expected_issuer: Optional[str] = None,
        expected_audience: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        if public_key is None:
            raise MissingArgumentError("public_key")
        if leeway < 0:
            raise VerifierCreationError("Leeway must not be negative", details={"leeway": leeway})

        self._public_key = public_key
        self.leeway = leeway
        self.expected_issuer = expected_issuer
        self.expected_audience = expected_audience
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("token.verifier")

    def verify(self, token: Optional[str]) -> ClaimBundle:
        """Verify ``token`` and return the claims it carries.

        Raises:
            MissingArgumentError: no token was given.
            TokenExpiredError: the signature is valid but the token has expired.
            InvalidTokenError: anything else that makes the token unusable.
        """
        if token is None or not str(token).strip():
            raise MissingArgumentError("token")

        try:
            claims = self._decode(token)
            self._check_expiry(claims)
            bundle = bundle_from_claims(claims)

        except TokenExpiredError as e:
            self.logger.info("Token expired", token=token_preview(token), expired_at=e.details.get("expired_at"))
            self._record("expired")
            raise
        except TokenVerificationError as e:
            self.logger.warning("Token verification failed", token=token_preview(token), error=e.message)
            self._record("invalid")
            raise
        except JWTError as e:
            self.logger.warning("Token verification failed", token=token_preview(token), error=str(e))
            self._record("invalid")
            raise InvalidTokenError(f"Invalid token: {e}") from e
        except Exception as e:
            self.logger.error("Unexpected error during token verification", token=token_preview(token), error=str(e))
            self._record("invalid")
            raise InvalidTokenError(f"Invalid token: {e}") from e

        self.logger.debug("Token verified", subject=bundle.subject, tenancy_id=bundle.tenancy_id)
        self._record("valid")
        return bundle

    def _decode(self, token: str) -> Dict[str, Any]:
        _check_signature_encoding(token)
        claims = jwt.decode(
            token,
            self._public_key,
            algorithms=self.algorithms,
            issuer=self.expected_issuer,
            audience=self.expected_audience,
            options={
                "verify_exp": False,
                "verify_aud": self.expected_audience is not None,
                "leeway": self.leeway,
            }
        )
        # jose skips the audience check when the claim is absent
        if self.expected_audience is not None and "aud" not in claims:
            raise InvalidTokenError("Token has no audience claim")
        return claims

    def _check_expiry(self, claims: Dict[str, Any]) -> None:
        if "exp" not in claims:
            raise InvalidTokenError("Token has no expiry claim")
        try:
            expires_at = int(claims["exp"])
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Token expiry claim is not a timestamp") from e

        if expires_at <= self._clock() - self.leeway:
            expired_at = datetime.fromtimestamp(expires_at, tz=timezone.utc).isoformat()
            raise TokenExpiredError(f"Token expired at {expired_at}", details={"expired_at": expired_at})

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_verification(outcome)
