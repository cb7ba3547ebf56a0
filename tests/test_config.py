"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from receipt_ledger.config import AppSettings, HouseholdSettings


class TestHouseholdSettings:
    """Tests for household configuration."""

    def test_valid_household(self):
        """Test two distinct parties are accepted."""
        household = HouseholdSettings(id="flat-1", self_party="alice", other_party="bob")
        assert household.self_party == "alice"
        assert household.other_party == "bob"

    def test_identical_parties_rejected(self):
        """Test a household needs two different parties."""
        with pytest.raises(ValidationError, match="different identifiers"):
            HouseholdSettings(id="flat-1", self_party="alice", other_party="alice")

    def test_reserved_party_id(self):
        """Test 'both' cannot be used as a party id."""
        with pytest.raises(ValidationError, match="reserved"):
            HouseholdSettings(id="flat-1", self_party="both", other_party="bob")

    def test_reads_environment(self, monkeypatch):
        """Test values come from HOUSEHOLD_ variables."""
        monkeypatch.setenv("HOUSEHOLD_ID", "flat-9")
        monkeypatch.setenv("HOUSEHOLD_SELF_PARTY", "carol")
        monkeypatch.setenv("HOUSEHOLD_OTHER_PARTY", "dave")

        household = HouseholdSettings()
        assert (household.id, household.self_party, household.other_party) == (
            "flat-9", "carol", "dave",
        )


class TestAppSettings:
    """Tests for application settings."""

    def test_formats_list(self):
        """Test the comma-separated format list is normalized."""
        settings = AppSettings(supported_image_formats=" JPG, png ,webp")
        assert settings.supported_formats_list == ["jpg", "png", "webp"]

    def test_upload_size_bytes(self):
        """Test the MB limit converts to bytes."""
        assert AppSettings(max_upload_size_mb=2).max_upload_size_bytes == 2 * 1024 * 1024

    def test_attempts_bounds(self):
        """Test external call attempts must be at least one."""
        with pytest.raises(ValidationError):
            AppSettings(external_call_attempts=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
