"""
Identity token package.

- models: the ClaimBundle carried by a token and the custom claim names.
- issuer: signs a ClaimBundle into a compact RS256 token.
- verifier: checks signature and expiry, then rebuilds the ClaimBundle.
- security: facade owning one key pair plus an issuer and a verifier.

Verification failures are typed (see shared.errors): callers branch on
TokenExpiredError vs InvalidTokenError instead of inspecting messages.
"""

from .issuer import TokenIssuer
from .models import ClaimBundle, IDENTITY_CLAIM, TENANCY_ID_CLAIM
from .security import TokenSecurity
from .verifier import TokenVerifier

__all__ = [
    "ClaimBundle",
    "IDENTITY_CLAIM",
    "TENANCY_ID_CLAIM",
    "TokenIssuer",
    "TokenSecurity",
    "TokenVerifier",
]
