"""
Unit tests for ClaimBundle.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from service_token.app.tokens.models import ClaimBundle


def _bundle(**overrides) -> ClaimBundle:
    values = {
        "issuer": "uniauth",
        "audience": "app1",
        "subject": "user42",
        "identity": "user42",
        "tenancy_id": 7,
        "issued_at": datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
        "expires_at": datetime(2024, 5, 1, 13, 0, 0, 654321, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return ClaimBundle(**values)


class TestClaimBundle:
    """Test cases for ClaimBundle."""

    def test_naive_datetimes_are_utc(self):
        bundle = _bundle(issued_at=datetime(2024, 5, 1, 12, 0), expires_at=datetime(2024, 5, 1, 13, 0))

        assert bundle.issued_at.tzinfo == timezone.utc
        assert bundle.expires_at == datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)

    def test_other_timezones_are_converted(self):
        plus_two = timezone(timedelta(hours=2))
        bundle = _bundle(issued_at=datetime(2024, 5, 1, 14, 0, tzinfo=plus_two))

        assert bundle.issued_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert bundle.issued_at.utcoffset() == timedelta(0)

    def test_epoch_seconds(self):
        bundle = _bundle(issued_at=1714564800, expires_at=1714568400)

        assert bundle.issued_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_truncated(self):
        """Test truncation drops sub-second precision only."""
        truncated = _bundle().truncated()

        assert truncated.issued_at == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert truncated.expires_at == datetime(2024, 5, 1, 13, 0, 0, tzinfo=timezone.utc)
        assert truncated.subject == "user42"
        assert truncated.tenancy_id == 7

    def test_expiry_before_issue(self):
        with pytest.raises(ValidationError):
            _bundle(expires_at=datetime(2024, 5, 1, 11, 0, tzinfo=timezone.utc))

    def test_mutable_with_validation(self):
        """Test assignments are validated."""
        bundle = _bundle()

        bundle.tenancy_id = 9
        assert bundle.tenancy_id == 9

        with pytest.raises(ValidationError):
            bundle.tenancy_id = "not-a-number"

    def test_tenancy_id_defaults_to_absent(self):
        bundle = _bundle()
        values = bundle.model_dump(exclude={"tenancy_id"})

        assert ClaimBundle(**values).tenancy_id is None
