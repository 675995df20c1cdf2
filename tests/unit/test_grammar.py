"""Unit tests for the placeholder grammar.

Covers token discovery, per-kind parsing with optional trailing arguments,
source-key derivation, unsupported tokens, and integer argument validation.
"""

import pytest

from grammar.placeholder import (
    IMAGE_DEFAULTS,
    QRCODE_DEFAULTS,
    QRCODE_ERROR_LEVELS,
    find_tokens,
    int_arg,
    parse,
    strip_token,
)
from models.placeholder import PlaceholderKind


# ---------------------------------------------------------------------------
# Token discovery
# ---------------------------------------------------------------------------


def test_find_tokens_distinct_in_order() -> None:
    text = "Dear ${user:name}, total ${money:total} (${money:total}) on ${date:now:j F Y}."
    assert find_tokens(text) == ["user:name", "money:total", "date:now:j F Y"]


def test_find_tokens_ignores_unclosed_and_nested() -> None:
    assert find_tokens("${open and ${closed}") == ["closed"]
    assert find_tokens("no tokens") == []


def test_strip_token() -> None:
    assert strip_token("${company}") == "company"
    assert strip_token("company") == "company"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def test_parse_image_full_and_partial() -> None:
    full = parse("image:logo:50:60:left:top")
    assert full is not None
    assert full.kind is PlaceholderKind.IMAGE
    assert full.args == ["logo", "50", "60", "left", "top"]
    assert full.source_key == "image:logo"

    short = parse("${image:logo}")
    assert short is not None
    assert short.args == ["logo"]
    assert short.arg(1) is None
    assert short.token == "${image:logo}"


def test_parse_qrcode_source_key() -> None:
    descriptor = parse("qrcode:payload:100:M")
    assert descriptor is not None
    assert descriptor.kind is PlaceholderKind.QRCODE
    assert descriptor.source_key == "qrcode:payload"
    assert descriptor.arg(1) == "100"
    assert descriptor.arg(2) == "M"


def test_parse_date_format_may_contain_colons() -> None:
    descriptor = parse("date:issued_at:d/m/Y H:i:s")
    assert descriptor is not None
    assert descriptor.args == ["issued_at", "d/m/Y H:i:s"]
    assert descriptor.source_key == "issued_at"


def test_parse_user_and_site_have_no_source_key() -> None:
    user = parse("user:email")
    site = parse("site:name")
    assert user is not None and user.source_key is None
    assert site is not None and site.args == ["name"]


def test_parse_formatter_kinds() -> None:
    assert parse("money:total:USD").args == ["total", "USD"]
    assert parse("number:qty:2").args == ["qty", "2"]
    assert parse("gelar:nama:Dr.|S.H.").args == ["nama", "Dr.|S.H."]
    assert parse("alamat:street:kec:kab:prov:12345").kind is PlaceholderKind.ALAMAT
    assert parse("custom:note").source_key == "note"


@pytest.mark.parametrize(
    "token",
    [
        "foobar:x",            # unsupported kind
        "company",             # plain data key, no kind
        "user:",               # empty field
        "terbilang:a:b",       # too many args
        "image:logo:1:2:3:4:5",
        "qrcode:",
    ],
)
def test_parse_returns_none_for_unsupported(token: str) -> None:
    assert parse(token) is None


def test_empty_argument_counts_as_absent() -> None:
    descriptor = parse("image:logo::80")
    assert descriptor is not None
    assert descriptor.arg(1, "default") == "default"
    assert descriptor.arg(2) == "80"


# ---------------------------------------------------------------------------
# Defaults and integer arguments
# ---------------------------------------------------------------------------


def test_defaults_are_explicit() -> None:
    assert IMAGE_DEFAULTS == {"width": 100, "height": 100, "halign": "center", "valign": "middle"}
    assert QRCODE_DEFAULTS == {"size": 100, "error_level": "L"}
    assert QRCODE_ERROR_LEVELS == {"L", "M", "Q", "H"}


@pytest.mark.parametrize(
    "value, expected",
    [("150", 150), (" 42 ", 42), ("-3", -3), ("abc", 7), ("1.5", 7), ("", 7), (None, 7)],
)
def test_int_arg(value, expected: int) -> None:
    assert int_arg(value, 7) == expected
