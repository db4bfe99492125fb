"""Unit tests for remittance route helpers"""
from datetime import datetime

import pytest

from app.api.v1.remittance import _parse_timestamp


class TestParseTimestamp:
    """Circle timestamps are stored as naive UTC"""

    @pytest.mark.parametrize("value,expected", [
        ("2025-03-01T12:00:00Z", datetime(2025, 3, 1, 12, 0, 0)),
        ("2025-03-01T14:30:00+02:00", datetime(2025, 3, 1, 12, 30, 0)),
        ("2025-03-01T01:00:00-05:00", datetime(2025, 3, 1, 6, 0, 0)),
        ("2025-03-01T12:00:00", datetime(2025, 3, 1, 12, 0, 0)),
    ])
    def test_converts_to_utc(self, value, expected):
        parsed = _parse_timestamp(value)
        assert parsed == expected
        assert parsed.tzinfo is None

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_missing_or_unparseable(self, value):
        assert _parse_timestamp(value) is None
