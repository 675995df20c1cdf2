"""Shared resolver contract and data-map helpers.

Every resolver maps one :class:`~models.placeholder.PlaceholderKind` to a
value::

    value = resolver.resolve(descriptor, data_map, env)

and returns text, an :class:`~models.resolution.ImageAsset`, or ``SKIP``.
Per-field problems are handled inside the resolver (logged, then ``""`` or
``SKIP``); they never abort a generation.
"""

from decimal import Decimal
from typing import Any, Mapping, Protocol

from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import ImageAsset, ResolvedValue, ResolverEnv

DataMap = Mapping[str, Any]

_TEXT_TYPES = (str, int, float, Decimal)


class FieldResolver(Protocol):
    kind: PlaceholderKind

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue: ...


def is_text_value(value: object) -> bool:
    """True for values that inject as plain text (bools excluded)."""
    return isinstance(value, _TEXT_TYPES) and not isinstance(value, bool)


def as_text(value: object) -> str:
    """Render a text-like value; anything else becomes ``""``."""
    if value is None or not is_text_value(value):
        return ""
    return str(value)


def value_or_literal(data_map: DataMap, arg: str | None) -> Any:
    """Data-map value for *arg* when it is a key, else *arg* itself.

    Lets ``${money:total}`` read ``data_map["total"]`` while the inline form
    ``${money:1500000}`` still works.
    """
    if arg is None:
        return None
    if arg in data_map:
        return data_map[arg]
    return arg


def text_or_literal(data_map: DataMap, arg: str | None) -> str:
    return as_text(value_or_literal(data_map, arg))


def image_source_path(value: object) -> str | None:
    """File path behind an image data value (a path string or an asset)."""
    if isinstance(value, ImageAsset):
        return value.source_path
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
