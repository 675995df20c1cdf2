"""Placeholder grammar: ``${kind:arg1:arg2:...}``.

Each supported kind has its own full-match pattern with explicit optional
groups for trailing arguments, e.g.::

    image:NAME[:WIDTH[:HEIGHT[:HALIGN[:VALIGN]]]]
    qrcode:NAME[:SIZE[:ERROR_LEVEL]]
    date:SOURCE[:FORMAT]            FORMAT may itself contain ':' (``H:i``)

Tokens that match no pattern are not errors: :func:`parse` returns ``None``
and the token stays literal in the document, since templates may contain
``${...}`` text meant for someone else.

Numeric arguments are validated with :func:`int_arg` at use time; a
non-numeric value counts as absent and the per-kind default applies.
"""

import re

from models.placeholder import PlaceholderDescriptor, PlaceholderKind

TOKEN_PATTERN = re.compile(r"\$\{([^${}]+)\}")

_ARG = r"([^:]*)"
_OPT = r"(?::([^:]*))?"
_REST = r"(?::(.*))?"

_KIND_PATTERNS: dict[PlaceholderKind, re.Pattern[str]] = {
    PlaceholderKind.DATE:      re.compile(rf"date:{_ARG}{_REST}", re.DOTALL),
    PlaceholderKind.USER:      re.compile(r"user:([^:]+)"),
    PlaceholderKind.SITE:      re.compile(r"site:([^:]+)"),
    PlaceholderKind.IMAGE:     re.compile(rf"image:([^:]+){_OPT}{_OPT}{_OPT}{_OPT}"),
    PlaceholderKind.QRCODE:    re.compile(rf"qrcode:([^:]+){_OPT}{_OPT}"),
    PlaceholderKind.MONEY:     re.compile(rf"money:([^:]+){_REST}", re.DOTALL),
    PlaceholderKind.TERBILANG: re.compile(r"terbilang:([^:]+)"),
    PlaceholderKind.NUMBER:    re.compile(rf"number:([^:]+){_OPT}"),
    PlaceholderKind.GELAR:     re.compile(rf"gelar:([^:]+){_OPT}{_OPT}"),
    PlaceholderKind.ALAMAT:    re.compile(rf"alamat:([^:]+){_OPT}{_OPT}{_OPT}{_OPT}"),
    PlaceholderKind.CUSTOM:    re.compile(r"custom:([^:]+)"),
}

# Defaults for omitted or invalid trailing arguments.
IMAGE_DEFAULTS: dict[str, object] = {
    "width": 100,
    "height": 100,
    "halign": "center",
    "valign": "middle",
}

QRCODE_DEFAULTS: dict[str, object] = {
    "size": 100,
    "error_level": "L",
}

QRCODE_MIN_SIZE = 50
QRCODE_MAX_SIZE = 500
QRCODE_ERROR_LEVELS: frozenset[str] = frozenset({"L", "M", "Q", "H"})

NUMBER_DEFAULTS: dict[str, object] = {"decimals": 0}


def find_tokens(text: str) -> list[str]:
    """Return the distinct inner tokens in *text*, first appearance first."""
    seen: dict[str, None] = {}
    for match in TOKEN_PATTERN.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def strip_token(key: str) -> str:
    """``"${company}"`` -> ``"company"``; other keys are returned unchanged."""
    if key.startswith("${") and key.endswith("}"):
        return key[2:-1]
    return key


def int_arg(value: str | None, default: int) -> int:
    """Return *value* as an int, or *default* when absent or not an integer."""
    if value is None:
        return default
    text = value.strip()
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return default


def _source_key(kind: PlaceholderKind, args: list[str]) -> str | None:
    if not args or kind in (PlaceholderKind.USER, PlaceholderKind.SITE):
        return None
    if kind is PlaceholderKind.IMAGE:
        return f"image:{args[0]}"
    if kind is PlaceholderKind.QRCODE:
        return f"qrcode:{args[0]}"
    return args[0]


def parse(raw_token: str) -> PlaceholderDescriptor | None:
    """Parse the inner text of a placeholder into a descriptor.

    Args:
        raw_token:  Token text with or without the ``${`` ``}`` wrapper.

    Returns:
        A :class:`~models.placeholder.PlaceholderDescriptor`, or ``None`` when
        the kind is unsupported or the arguments do not fit its pattern.
    """
    inner = strip_token(raw_token)
    kind_name, sep, _ = inner.partition(":")
    if not sep:
        return None
    try:
        kind = PlaceholderKind(kind_name)
    except ValueError:
        return None

    match = _KIND_PATTERNS[kind].fullmatch(inner)
    if match is None:
        return None

    args = [g for g in match.groups() if g is not None]
    return PlaceholderDescriptor(
        kind=kind,
        raw_token=inner,
        args=args,
        source_key=_source_key(kind, args),
    )
