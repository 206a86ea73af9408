"""
Claim models for identity tokens.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# Custom claim names carried next to the registered JWT claims
IDENTITY_CLAIM = "identity"
TENANCY_ID_CLAIM = "tenancyId"


class ClaimBundle(BaseModel):
    """Claims carried by an identity token.

    Timestamps are normalised to timezone-aware UTC. A token only stores
    whole seconds, so a verified bundle equals ``bundle.truncated()``.
    """

    model_config = ConfigDict(validate_assignment=True)

    issuer: str
    audience: Optional[str] = None
    subject: str
    identity: str
    tenancy_id: Optional[int] = None
    issued_at: datetime
    expires_at: datetime

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_lifetime(self) -> "ClaimBundle":
        if self.expires_at < self.issued_at:
            raise ValueError("expires_at must not be earlier than issued_at")
        return self

    def truncated(self) -> "ClaimBundle":
        """Copy with timestamps truncated to whole seconds."""
        return self.model_copy(update={
            "issued_at": self.issued_at.replace(microsecond=0),
            "expires_at": self.expires_at.replace(microsecond=0),
        })
