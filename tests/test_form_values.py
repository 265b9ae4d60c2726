"""Tests for the fill-value table."""

import re

import pytest

from drupal_crawler.form_values import (
    FieldContext,
    determine_fill_value,
    has_existing_value,
    matching_rule,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[a-z]{2,}$")


class TestDetermineFillValue:
    """Test cases for determine_fill_value."""

    def test_email_input_type(self):
        """An empty email input gets a syntactically valid address."""
        value = determine_fill_value("field_contact[0][value]", "email")
        assert EMAIL_PATTERN.match(value)

    def test_existing_value_kept(self):
        """Non-empty, non-zero values are left untouched."""
        assert determine_fill_value("title[0][value]", "text", "Keep me") == "Keep me"

    def test_zero_is_not_a_value(self):
        """A literal '0' counts as empty."""
        assert determine_fill_value("field_count", "number", "0") == "1"

    @pytest.mark.parametrize("field_type,expected", [
        ("number", "1"),
        ("url", "https://example.com"),
        ("tel", "+1234567890"),
        ("date", "2024-12-11"),
        ("time", "12:00:00"),
        ("color", "#FF0000"),
    ])
    def test_input_type_table(self, field_type, expected):
        assert determine_fill_value("anything", field_type) == expected

    def test_input_type_beats_name(self):
        """The HTML type is consulted before name patterns."""
        assert determine_fill_value("field_title", "url") == "https://example.com"

    def test_override_by_exact_name(self):
        """Overrides apply to matching names only."""
        overrides = {"field_code[0][value]": "ABC-1"}
        assert determine_fill_value("field_code[0][value]", "text", overrides=overrides) == "ABC-1"
        assert determine_fill_value("field_other", "text", overrides=overrides) == "test_value"

    def test_generic_fallback(self):
        assert determine_fill_value("field_mystery", "text") == "test_value"


class TestNamePatterns:
    """Precedence of the name-pattern rules."""

    @pytest.mark.parametrize("name,expected", [
        ("body[0][format]", "basic_html"),
        ("body[0][summary]", "Automated test summary content"),
        ("field_date[0][value][date]", "2024-12-11"),
        ("field_date[0][value][time]", "12:00:00"),
        ("field_author[0][target_id]", ""),
        ("status[value]", "1"),
        ("promote[value]", "0"),
        ("sticky[value]", "0"),
        ("field_price[0][number]", "99.99"),
        ("field_price[0][currency_code]", "USD"),
        ("field_quantity", "42"),
        ("field_rating", "4.5"),
        ("field_link[0][options][attributes][target]", "_blank"),
        ("field_tags", ""),
        ("langcode", "en"),
        ("revision_log[0][value]", "Automated test content"),
        ("field_address[0][address][country_code]", "US"),
        ("field_address[0][address][locality]", "Test City"),
        ("field_address[0][address][postal_code]", "12345"),
        ("field_geo[0][geolocation][lat]", "40.7128"),
        ("field_metatag[0][basic][keywords]", "test, automated, drupal"),
        ("subject[0][value]", "Automated test content"),
    ])
    def test_rule_values(self, name, expected):
        assert determine_fill_value(name, "text").startswith(expected)

    def test_reference_left_blank(self):
        """Entity references stay empty even though [value]-like rules exist."""
        assert determine_fill_value("field_related[0][target_id]", "text") == ""

    def test_link_uri_follows_placeholder(self):
        """Link URIs are external only when the placeholder suggests it."""
        assert determine_fill_value("field_link[0][uri]", "text") == "/node/1"
        assert determine_fill_value(
            "field_link[0][uri]", "text", placeholder="http://example.com"
        ) == "https://example.com"

    def test_title_is_unique(self):
        """Title values carry a timestamp."""
        value = determine_fill_value("title", "text")
        assert value.startswith("Automated Test ")
        assert value.split()[-1].isdigit()

    def test_declining_rule_lets_later_rules_decide(self):
        """An address sub-field the table does not know falls through."""
        ctx = FieldContext(name="address[0][unknown_part]")
        rule = matching_rule(ctx)
        assert rule is None or rule.label != "address"


class TestHasExistingValue:
    def test_values(self):
        assert has_existing_value("x")
        assert not has_existing_value("")
        assert not has_existing_value("0")
        assert not has_existing_value(None)
