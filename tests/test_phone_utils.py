"""
Tests for dial code lookups.
"""

from application_autofill.phone_utils import (
    find_country_option_index,
    get_country_info,
    normalize_dial_code,
)


class TestGetCountryInfo:
    """Tests for dial code resolution."""

    def test_exact_code(self):
        """A known code should resolve directly."""
        assert get_country_info('+48') == {'code': '+48', 'name': 'Poland', 'iso': 'PL'}

    def test_code_without_plus(self):
        """Digits without a plus sign should still resolve."""
        assert get_country_info('44')['iso'] == 'GB'

    def test_longest_prefix(self):
        """Extra digits should fall back to the longest known prefix."""
        assert get_country_info('+48 12')['name'] == 'Poland'
        assert get_country_info('+1 415')['iso'] == 'US'
        assert get_country_info('+3531')['name'] == 'Ireland'

    def test_unknown_code(self):
        """Unknown and empty codes should not resolve."""
        assert get_country_info('+999') is None
        assert get_country_info('') is None

    def test_normalize_dial_code(self):
        """Whitespace and punctuation should be dropped."""
        assert normalize_dial_code(' (48) ') == '+48'
        assert normalize_dial_code('') == ''


class TestFindCountryOptionIndex:
    """Tests for picking a dial-code option."""

    def test_by_code(self):
        """Options showing the dial code should match first."""
        assert find_country_option_index(['Germany (+49)', 'Poland (+48)'], '+48') == 1

    def test_code_does_not_match_longer_code(self):
        """'+1' should not match '+124'."""
        assert find_country_option_index(['Belize +124', 'United States +1'], '+1') == 1

    def test_by_name(self):
        """Options with only the country name should match by name."""
        assert find_country_option_index(['Germany', 'Poland'], '+48') == 1

    def test_by_iso(self):
        """Options with only ISO codes should match by ISO code."""
        assert find_country_option_index(['DE', 'PL'], '+48') == 1

    def test_no_match(self):
        """No matching option yields -1."""
        assert find_country_option_index(['Germany', 'France'], '+48') == -1
        assert find_country_option_index(['Germany'], '+999') == -1
