"""
Tests for the option-matching helpers.

These are pure functions shared by the interaction engine and the handlers,
so no browser is needed.
"""

import pytest

from application_autofill.option_matching import (
    find_option_index,
    format_index_tokens,
    is_truthy,
    match_native_option,
    native_option_exists,
    normalize_text,
    option_exists,
    parse_index_list,
    parse_option_index,
    split_multi_values,
)


# ============ Fixtures ============

@pytest.fixture
def country_options():
    """Native <select> options as read from the page."""
    return [
        {'position': 0, 'value': '', 'text': 'Select...', 'disabled': False},
        {'position': 1, 'value': 'PL', 'text': 'Poland', 'disabled': False},
        {'position': 2, 'value': 'DE', 'text': 'Germany', 'disabled': False},
        {'position': 3, 'value': 'GB', 'text': 'United Kingdom', 'disabled': True},
    ]


# ============ Index Token Tests ============

class TestParseOptionIndex:
    """Tests for index token parsing."""

    @pytest.mark.parametrize('token', ['#1', 'index:1', 'option-1', '1', ' #1 '])
    def test_token_forms_resolve_the_same(self, token):
        """Every accepted token form should resolve to the same index."""
        assert parse_option_index(token, 3) == 1

    def test_out_of_range_is_none(self):
        """An index past the option count should not resolve."""
        assert parse_option_index('#3', 3) is None

    def test_text_is_not_an_index(self):
        """Plain option text should not parse as an index."""
        assert parse_option_index('Yes', 3) is None
        assert parse_option_index('', 3) is None

    def test_format_index_tokens(self):
        """Indices should be rendered as a comma-separated token list."""
        assert format_index_tokens([0, 2]) == '#0,#2'

    def test_parse_index_list_drops_invalid_and_duplicates(self):
        """Only in-range, unique indices should survive."""
        assert parse_index_list('#0,#2,#9,#0,abc', 3) == [0, 2]


class TestSplitMultiValues:
    """Tests for multi-value splitting."""

    def test_json_array(self):
        """A JSON array should be split into its items."""
        assert split_multi_values('["Asian", "White"]') == ['Asian', 'White']

    def test_separated_list(self):
        """Commas, semicolons and newlines should all separate items."""
        assert split_multi_values('Asian; White,\nOther') == ['Asian', 'White', 'Other']

    def test_empty(self):
        """An empty value should give no items."""
        assert split_multi_values('') == []
        assert split_multi_values(None) == []


# ============ Native Select Tests ============

class TestMatchNativeOption:
    """Tests for native option selection strategies."""

    def test_exact_value(self, country_options):
        """Should match on the option value first."""
        assert match_native_option(country_options, 'PL') == 1

    def test_case_insensitive_text(self, country_options):
        """Should match on trimmed, case-insensitive text."""
        assert match_native_option(country_options, 'germany') == 2

    def test_target_contains_option_text(self, country_options):
        """Should match when the target contains the option text."""
        assert match_native_option(country_options, 'Republic of Poland') == 1

    def test_skips_disabled_and_placeholder(self, country_options):
        """Disabled options and options without a value are never chosen."""
        assert match_native_option(country_options, 'United Kingdom') is None
        assert match_native_option(country_options, 'Select...') is None

    def test_no_match(self, country_options):
        """Unknown values should not match."""
        assert match_native_option(country_options, 'France') is None

    def test_native_option_exists(self, country_options):
        """Validation should compare against values and texts."""
        assert native_option_exists(country_options, 'pl') is True
        assert native_option_exists(country_options, 'Germany') is True
        assert native_option_exists(country_options, 'France') is False
        assert native_option_exists(country_options, '') is False


# ============ Virtual Option Tests ============

class TestFindOptionIndex:
    """Tests for rendered option matching."""

    def test_index_token_when_index_based(self):
        """Index tokens should win when the value is index based."""
        assert find_option_index(['Yes', 'No'], '#1', index_based=True) == 1

    def test_index_token_ignored_when_not_index_based(self):
        """A literal '#1' should not be treated as an index."""
        assert find_option_index(['Yes', 'No'], '#1') is None

    def test_out_of_range_index_matches_nothing(self):
        """An out-of-range index should not fall back to matching its digits as text."""
        options = ['Less than 1 year', '1-3 years', '7+ years']
        assert find_option_index(options, '#7', index_based=True) is None
        assert find_option_index(options, '7', index_based=True) is None

    def test_text_still_matches_when_index_based(self):
        """Values that are not index tokens go through text matching."""
        assert find_option_index(['Yes', 'No'], 'No', index_based=True) == 1

    def test_exact_beats_contains(self):
        """An exact match should beat an earlier partial match."""
        assert find_option_index(['Prefer not to say', 'Yes', 'No'], 'no') == 2

    def test_contains(self):
        """Should fall back to substring matching."""
        options = ['United States of America', 'United Kingdom of Great Britain']
        assert find_option_index(options, 'United Kingdom') == 1

    def test_target_contains_option(self):
        """Should match when the option text appears inside the target."""
        assert find_option_index(['LinkedIn', 'Indeed'], 'Found it on LinkedIn') == 0

    def test_empty_target(self):
        """An empty target should not match anything."""
        assert find_option_index(['Yes', 'No'], '') is None


class TestOptionExists:
    """Tests for option validation."""

    def test_present(self):
        """Should find values regardless of case and punctuation."""
        assert option_exists(['Yes', 'No'], 'yes') is True
        assert option_exists(['U.S. Citizen', 'Other'], 'us citizen') is True

    def test_absent(self):
        """Should reject values missing from the options."""
        assert option_exists(['Yes', 'No'], 'Maybe') is False
        assert option_exists([], 'Yes') is False


class TestTextHelpers:
    """Tests for small text helpers."""

    def test_normalize_text(self):
        """Should keep only lowercase alphanumerics."""
        assert normalize_text('U.S.-A ') == 'usa'

    def test_is_truthy(self):
        """Boolean-like tokens should be recognised."""
        assert is_truthy('Yes') is True
        assert is_truthy('true') is True
        assert is_truthy('false') is False
        assert is_truthy('') is False
