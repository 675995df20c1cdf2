"""Pure formatters for money, numbers, dates, honorific names and addresses.

Separators follow Indonesian conventions: ``,`` decimal point and ``.``
thousands separator.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Mapping

from formatters.php_date import format_php_date, localize_id, parse_date
from formatters.terbilang import terbilang

MONEY_DECIMALS = 2
MAX_DECIMALS = 20
DEC_POINT = ","
THOUSANDS_SEP = "."

DISTRICT_PREFIX = "Kec. "

# ${type:value[:options]}; options run to the closing brace.
_FIELD_RE = re.compile(r"\$\{([^:{}]*):([^:{}]*)(?::([^{}]*))?\}")


def to_decimal(value: object) -> Decimal:
    """Coerce *value* to a finite Decimal.

    Raises:
        ValueError: *value* is not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def number_format(
    value: object,
    decimals: int = 0,
    dec_point: str = DEC_POINT,
    thousands_sep: str = THOUSANDS_SEP,
) -> str:
    """Group and round *value* the way PHP ``number_format`` does.

    *decimals* is clamped to ``[0, MAX_DECIMALS]``.
    """
    number = to_decimal(value)
    decimals = min(max(decimals, 0), MAX_DECIMALS)
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # quantize needs every integer and fraction digit within precision
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 3)
        try:
            rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ValueError(f"cannot format {value!r}") from exc
    sign = "-" if rounded < 0 else ""
    integer, _, fraction = f"{rounded.copy_abs():f}".partition(".")
    groups = []
    while len(integer) > 3:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    groups.insert(0, integer)
    text = sign + thousands_sep.join(groups)
    if decimals > 0:
        text += dec_point + fraction.ljust(decimals, "0")
    return text


def format_money(number: object, currency: str = "Rp") -> str:
    """``format_money(1234567, "Rp") == "Rp 1.234.567,00"``."""
    formatted = number_format(number, MONEY_DECIMALS)
    return f"{currency} {formatted}" if currency else formatted


def format_number(number: object, decimals: int = 0) -> str:
    return number_format(number, decimals)


def format_tanggal(value: object, fmt: str = "j F Y") -> str:
    """Format a date with Indonesian month/day names; ``""`` if unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return localize_id(format_php_date(parsed, fmt))


def format_gelar(nama: str, gelar_depan: str = "", gelar_belakang: str = "") -> str:
    """Compose ``"<gelar_depan> <nama>, <gelar_belakang>"`` from present parts."""
    formatted = f"{gelar_depan} " if gelar_depan else ""
    formatted += nama
    if gelar_belakang:
        formatted += f", {gelar_belakang}"
    return formatted


def format_alamat(
    alamat: str,
    kecamatan: str = "",
    kabupaten: str = "",
    provinsi: str = "",
    kode_pos: str = "",
    separator: str = ", ",
) -> str:
    """Join the non-empty address components; the district gets ``Kec. ``."""
    parts = [
        alamat,
        f"{DISTRICT_PREFIX}{kecamatan}" if kecamatan else "",
        kabupaten,
        provinsi,
        kode_pos,
    ]
    return separator.join(str(p) for p in parts if p)


def format_alamat_mapping(components: Mapping[str, object], separator: str = ", ") -> str:
    """:func:`format_alamat` over a mapping of named components."""

    def get(name: str) -> str:
        value = components.get(name)
        return "" if value is None else str(value)

    return format_alamat(
        get("alamat") or get("street"),
        kecamatan=get("kecamatan"),
        kabupaten=get("kabupaten"),
        provinsi=get("provinsi"),
        kode_pos=get("kode_pos"),
        separator=get("separator") or separator,
    )


def format_field(field_string: str) -> str:
    """Evaluate one inline ``${type:value[:options]}`` expression.

    Supported types: ``money`` (options = currency), ``terbilang``,
    ``tanggal`` (options = PHP date format), ``number`` (options = decimals),
    ``gelar`` (options = ``prefix|suffix``).  Unknown types return the value;
    a string that is not an expression is returned unchanged.
    """
    match = _FIELD_RE.search(field_string)
    if match is None:
        return field_string

    kind, value, options = match.group(1), match.group(2), match.group(3) or ""
    try:
        if kind == "money":
            return format_money(value, options)
        if kind == "terbilang":
            return terbilang(value)
        if kind == "tanggal":
            return format_tanggal(value, options or "j F Y")
        if kind == "number":
            return format_number(value, int(options) if options.isdigit() else 0)
    except ValueError:
        return ""
    if kind == "gelar":
        depan, _, belakang = options.partition("|")
        return format_gelar(value, depan, belakang)
    return value
