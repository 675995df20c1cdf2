"""Resolvers backed by the pure formatter library.

Each first argument is a data-map key; when the key is absent the argument
is used as a literal, so both ``${money:total}`` and ``${money:1500000}``
work.  Non-numeric input for the numeric kinds resolves to ``""``.

  ${money:SOURCE[:CURRENCY]}
  ${terbilang:SOURCE}
  ${number:SOURCE[:DECIMALS]}
  ${gelar:NAME[:PREFIX[:SUFFIX]]}        PREFIX|SUFFIX also accepted
  ${alamat:STREET[:KECAMATAN[:KABUPATEN[:PROVINSI[:KODE_POS]]]]}
  ${custom:SOURCE}
"""

from typing import Mapping

from app.utils.logging import get_logger
from formatters.fields import (
    MAX_DECIMALS,
    format_alamat,
    format_alamat_mapping,
    format_field,
    format_gelar,
    format_money,
    format_number,
)
from formatters.terbilang import terbilang
from grammar.placeholder import NUMBER_DEFAULTS, int_arg
from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import ResolvedValue, ResolverEnv
from resolvers.base import DataMap, as_text, text_or_literal, value_or_literal

logger = get_logger("resolvers.formatted")


def _numeric_source(descriptor: PlaceholderDescriptor, data_map: DataMap) -> object:
    return value_or_literal(data_map, descriptor.arg(0))


class MoneyResolver:
    kind = PlaceholderKind.MONEY

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        currency = descriptor.arg(1, env.settings.currency)
        try:
            return format_money(_numeric_source(descriptor, data_map), currency)
        except ValueError as exc:
            logger.warning("money_not_numeric", token=descriptor.raw_token, error=str(exc))
            return ""


class TerbilangResolver:
    kind = PlaceholderKind.TERBILANG

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        try:
            return terbilang(_numeric_source(descriptor, data_map))
        except ValueError as exc:
            logger.warning("terbilang_not_numeric", token=descriptor.raw_token, error=str(exc))
            return ""


class NumberResolver:
    kind = PlaceholderKind.NUMBER

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        decimals = int_arg(descriptor.arg(1), int(NUMBER_DEFAULTS["decimals"]))
        decimals = min(max(decimals, 0), MAX_DECIMALS)
        try:
            return format_number(_numeric_source(descriptor, data_map), decimals)
        except ValueError as exc:
            logger.warning("number_not_numeric", token=descriptor.raw_token, error=str(exc))
            return ""


class GelarResolver:
    kind = PlaceholderKind.GELAR

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        name = text_or_literal(data_map, descriptor.arg(0))
        prefix = text_or_literal(data_map, descriptor.arg(1))
        suffix = text_or_literal(data_map, descriptor.arg(2))
        if len(descriptor.args) == 2 and "|" in prefix:
            prefix, _, suffix = prefix.partition("|")
        return format_gelar(name, prefix, suffix)


class AlamatResolver:
    kind = PlaceholderKind.ALAMAT

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        first = value_or_literal(data_map, descriptor.arg(0))
        if isinstance(first, Mapping):
            return format_alamat_mapping(first)
        parts = [text_or_literal(data_map, descriptor.arg(i)) for i in range(1, 5)]
        return format_alamat(as_text(first), *parts)


class CustomResolver:
    """Passes a data value through, evaluating inline ``${type:...}`` fields."""

    kind = PlaceholderKind.CUSTOM

    def resolve(self, descriptor: PlaceholderDescriptor, data_map: DataMap, env: ResolverEnv) -> ResolvedValue:
        text = as_text(data_map.get(descriptor.source_key))
        return format_field(text) if "${" in text else text
