"""
Fill-value heuristics for Drupal form fields.

Values are chosen by an ordered table of rules. A field keeps a non-empty
existing value; otherwise its HTML input type is looked up first, then the
name-pattern rules are evaluated top to bottom and the first rule that
produces a value wins. A rule may decline (return None) to let later rules
decide, e.g. an address sub-field the table has no value for.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from drupal_crawler.constants import GENERIC_FILL_VALUE


@dataclass(frozen=True)
class FieldContext:
    """Attributes of a form field relevant to value selection."""

    name: str
    field_type: str = ""
    value: str = ""
    placeholder: str = ""

    @property
    def lower(self) -> str:
        return self.name.lower()

    def has(self, *parts: str) -> bool:
        """True if the lowercased name contains any of the parts."""
        return any(p in self.lower for p in parts)


@dataclass(frozen=True)
class FillRule:
    """One row of the fill table: a predicate and a value producer."""

    label: str
    matches: Callable[[FieldContext], bool]
    produce: Callable[[FieldContext], Optional[str]]


def _stamp() -> str:
    """Millisecond timestamp so repeated submissions stay unique."""
    return str(int(time.time() * 1000))


def _pattern(regex: str) -> Callable[[FieldContext], bool]:
    compiled = re.compile(regex)
    return lambda ctx: bool(compiled.search(ctx.name))


def _const(value: str) -> Callable[[FieldContext], str]:
    return lambda ctx: value


# HTML input types with a canned example value
INPUT_TYPE_VALUES: Dict[str, str] = {
    "email": "automated.test@example.com",
    "number": "1",
    "url": "https://example.com",
    "tel": "+1234567890",
    "date": "2024-12-11",
    "datetime-local": "2024-12-11T12:00",
    "datetime": "2024-12-11T12:00",
    "time": "12:00:00",
    "color": "#FF0000",
}


def _value_content(ctx: FieldContext) -> str:
    if ctx.has("body", "description"):
        return f"Automated test content with detailed information for testing purposes. {_stamp()}"
    return f"Automated test content {_stamp()}"


def _price_value(ctx: FieldContext) -> Optional[str]:
    if ctx.has("number"):
        return "99.99"
    if ctx.has("currency_code"):
        return "USD"
    return None


def _link_uri(ctx: FieldContext) -> str:
    if ctx.placeholder and ("http" in ctx.placeholder or "://" in ctx.placeholder):
        return "https://example.com"
    return "/node/1"


ADDRESS_PARTS = (
    (("country_code",), "US"),
    (("address_line1",), "123 Test Street"),
    (("address_line2",), "Apt 456"),
    (("locality", "city"), "Test City"),
    (("administrative_area", "state"), "CA"),
    (("postal_code", "zip"), "12345"),
    (("given_name", "first"), "John"),
    (("family_name", "last"), "Doe"),
    (("organization",), "Test Organization"),
)


def _address_value(ctx: FieldContext) -> Optional[str]:
    for parts, value in ADDRESS_PARTS:
        if ctx.has(*parts):
            return value
    return None


def _geolocation_value(ctx: FieldContext) -> Optional[str]:
    if ctx.has("lat"):
        return "40.7128"
    if ctx.has("lng", "lon"):
        return "-74.0060"
    return None


def _metatag_value(ctx: FieldContext) -> str:
    if ctx.has("title"):
        return "Test Meta Title"
    if ctx.has("description"):
        return "Test meta description for SEO"
    if ctx.has("keywords"):
        return "test, automated, drupal"
    return "test value"


# Name-pattern rules in priority order. Composite and reference suffixes come
# before the generic [value] rule so they are not shadowed by it.
FILL_RULES: List[FillRule] = [
    # Text (formatted)
    FillRule("text_format", _pattern(r"\[format\]"), _const("basic_html")),
    FillRule("text_summary", _pattern(r"\[summary\]"), _const("Automated test summary content")),
    # Date and time composites
    FillRule("date_part", _pattern(r"\[(date|value)\]\[date\]"), _const("2024-12-11")),
    FillRule("time_part", _pattern(r"\[(date|value)\]\[time\]"), _const("12:00:00")),
    # Entity references need a real id, left blank
    FillRule("entity_reference", _pattern(r"\[target_id\]"), _const("")),
    # Publishing options
    FillRule("status", lambda ctx: ctx.has("status[value]"), _const("1")),
    FillRule("promote", lambda ctx: ctx.has("promote[value]"), _const("0")),
    FillRule("sticky", lambda ctx: ctx.has("sticky[value]"), _const("0")),
    FillRule("text_value", _pattern(r"\[value\]"), _value_content),
    # Contrib composite sub-fields
    FillRule("address", lambda ctx: ctx.has("address["), _address_value),
    FillRule("geolocation", lambda ctx: ctx.has("geolocation"), _geolocation_value),
    # Numbers
    FillRule("price", lambda ctx: ctx.has("price[", "amount["), _price_value),
    FillRule("integer", lambda ctx: ctx.has("integer", "quantity", "count"), _const("42")),
    FillRule("decimal", lambda ctx: ctx.has("decimal", "amount"), _const("99.99")),
    FillRule("float", lambda ctx: ctx.has("float", "rating"), _const("4.5")),
    FillRule("timestamp", lambda ctx: ctx.has("created", "changed", "timestamp"), _const("2024-12-11 12:00:00")),
    # Link fields
    FillRule("link_uri", _pattern(r"\[uri\]"), _link_uri),
    FillRule("link_title", lambda ctx: "[title]" in ctx.name and "field" in ctx.name, _const("Link Title")),
    FillRule("link_target", _pattern(r"\[options\]\[attributes\]\[target\]"), _const("_blank")),
    FillRule("email", lambda ctx: ctx.has("email", "mail"), _const("automated.test@example.com")),
    FillRule("taxonomy_reference", lambda ctx: ctx.has("field_tags", "taxonomy"), _const("")),
    FillRule("media_reference", lambda ctx: ctx.has("field_media"), _const("")),
    FillRule("path_alias", lambda ctx: ctx.has("path[", "alias"), lambda ctx: f"/automated-test-{_stamp()}"),
    FillRule("langcode", lambda ctx: ctx.has("langcode") or (ctx.has("language") and not ctx.has("field")), _const("en")),
    FillRule("revision_log", lambda ctx: ctx.has("revision_log"), _const("Automated test revision")),
    # Contrib module sub-fields
    FillRule("telephone", lambda ctx: ctx.has("telephone", "phone"), _const("+1-555-123-4567")),
    FillRule("video_url", lambda ctx: ctx.has("video") and ctx.has("url"), _const("https://www.youtube.com/watch?v=dQw4w9WgXcQ")),
    FillRule("metatag", lambda ctx: ctx.has("metatag[", "meta_"), _metatag_value),
    FillRule("webform", lambda ctx: ctx.has("webform"), _const("Webform test value")),
    # Common core names
    FillRule("title", lambda ctx: ctx.has("title") and not ctx.has("field"), lambda ctx: f"Automated Test {_stamp()}"),
    FillRule("name", lambda ctx: ctx.has("name") and not ctx.has("field_name"), lambda ctx: f"Test Name {_stamp()}"),
    FillRule("summary", lambda ctx: ctx.has("summary"), _const("Automated test summary")),
    FillRule("description", lambda ctx: ctx.has("description"), _const("Automated test description")),
    FillRule("subject", lambda ctx: ctx.has("subject"), _const("Test Subject")),
    FillRule("message", lambda ctx: ctx.has("message", "comment"), _const("Test message content")),
]


def has_existing_value(value: Optional[str]) -> bool:
    """A value counts as present unless empty or the literal '0'."""
    return bool(value) and value != "0"


def matching_rule(ctx: FieldContext) -> Optional[FillRule]:
    """First name rule that matches and produces a value, if any."""
    for rule in FILL_RULES:
        if rule.matches(ctx) and rule.produce(ctx) is not None:
            return rule
    return None


def determine_fill_value(
    name: str,
    field_type: str = "",
    value: str = "",
    placeholder: str = "",
    overrides: Optional[Dict[str, str]] = None,
) -> str:
    """Pick the value to submit for a field.

    Args:
        name: Field name attribute
        field_type: HTML input type (or tag name for textarea)
        value: Current value of the field
        placeholder: Placeholder attribute
        overrides: Optional exact-name overrides loaded from a values file

    Returns:
        The existing value, an override, a table value, or the generic fallback.
        May be the empty string for reference fields with no known target.
    """
    if has_existing_value(value):
        return value

    if overrides and name in overrides:
        return str(overrides[name])

    field_type = (field_type or "").lower()
    if field_type in INPUT_TYPE_VALUES:
        return INPUT_TYPE_VALUES[field_type]

    ctx = FieldContext(name=name or "", field_type=field_type, value=value or "", placeholder=placeholder or "")
    for rule in FILL_RULES:
        if not rule.matches(ctx):
            continue
        produced = rule.produce(ctx)
        if produced is not None:
            return produced

    return GENERIC_FILL_VALUE
