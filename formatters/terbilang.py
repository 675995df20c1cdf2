"""Indonesian number-to-words ("terbilang").

Vocabulary and magnitude bands:

  0-11           direct word (``sepuluh``, ``sebelas`` are irregular)
  12-19          X ``belas``
  20-99          X ``puluh`` Y
  100-199        ``seratus`` Y
  200-999        X ``ratus`` Y
  1000-1999      ``seribu`` Y
  < 10**6        X ``ribu`` Y
  < 10**9        X ``juta`` Y
  < 10**12       X ``milyar`` Y
  < 10**15       X ``trilyun`` Y

Negative numbers are spelled by absolute value.  Zero is ``nol``.  Decimal
fractions are read digit by digit after ``koma`` (``12.05`` ->
``dua belas koma nol lima``).  Both functions are pure; ``terbilang`` and
``terbilang_iterative`` return identical strings for every input.
"""

from decimal import Decimal, InvalidOperation

_SMALL: tuple[str, ...] = (
    "", "satu", "dua", "tiga", "empat", "lima",
    "enam", "tujuh", "delapan", "sembilan", "sepuluh", "sebelas",
)

_DIGITS: tuple[str, ...] = ("nol",) + _SMALL[1:10]

_ZERO = "nol"
_DECIMAL_POINT = "koma"

MAX_VALUE = 10**15 - 1

# (group multiplier, connector word), largest first.
_GROUPS: tuple[tuple[int, str], ...] = (
    (10**12, "trilyun"),
    (10**9, "milyar"),
    (10**6, "juta"),
    (10**3, "ribu"),
    (1, ""),
)


def _to_decimal(number: object) -> Decimal:
    if isinstance(number, bool):
        raise ValueError(f"not a number: {number!r}")
    try:
        value = Decimal(str(number).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"not a number: {number!r}") from exc
    if not value.is_finite():
        raise ValueError(f"not a finite number: {number!r}")
    value = value.copy_abs()
    if value > MAX_VALUE:
        raise ValueError(f"number too large for terbilang: {number!r}")
    return value


def _split(number: object) -> tuple[int, str]:
    """Return (integer part, fraction digits without trailing zeros)."""
    value = _to_decimal(number)
    integer = int(value)
    fraction = ""
    if value != integer:
        _, digits, exponent = (value - integer).normalize().as_tuple()
        fraction = "".join(str(d) for d in digits).rjust(-exponent, "0")
    return integer, fraction


def _words(n: int) -> list[str]:
    if n < 12:
        return [_SMALL[n]] if n else []
    if n < 20:
        return _words(n - 10) + ["belas"]
    if n < 100:
        return _words(n // 10) + ["puluh"] + _words(n % 10)
    if n < 200:
        return ["seratus"] + _words(n - 100)
    if n < 1000:
        return _words(n // 100) + ["ratus"] + _words(n % 100)
    if n < 2000:
        return ["seribu"] + _words(n - 1000)
    if n < 10**6:
        return _words(n // 10**3) + ["ribu"] + _words(n % 10**3)
    if n < 10**9:
        return _words(n // 10**6) + ["juta"] + _words(n % 10**6)
    if n < 10**12:
        return _words(n // 10**9) + ["milyar"] + _words(n % 10**9)
    return _words(n // 10**12) + ["trilyun"] + _words(n % 10**12)


def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    hundreds, rest = divmod(n, 100)
    if hundreds == 1:
        words.append("seratus")
    elif hundreds > 1:
        words += [_SMALL[hundreds], "ratus"]
    if rest >= 20:
        words += [_SMALL[rest // 10], "puluh"]
        rest %= 10
    elif rest >= 12:
        words += [_SMALL[rest - 10], "belas"]
        rest = 0
    if rest:
        words.append(_SMALL[rest])
    return words


def _join(integer_words: list[str], fraction: str) -> str:
    words = integer_words or [_ZERO]
    if fraction:
        words = words + [_DECIMAL_POINT] + [_DIGITS[int(d)] for d in fraction]
    return " ".join(words)


def terbilang(number: object) -> str:
    """Spell *number* in Indonesian words.

    Raises:
        ValueError: *number* is not numeric or its magnitude is 10**15 or more.
    """
    integer, fraction = _split(number)
    return _join(_words(integer), fraction)


def terbilang_iterative(number: object) -> str:
    """Non-recursive twin of :func:`terbilang` (groups of three digits)."""
    integer, fraction = _split(number)
    words: list[str] = []
    for multiplier, connector in _GROUPS:
        group, integer = divmod(integer, multiplier)
        if not group:
            continue
        if connector == "ribu" and group == 1:
            words.append("seribu")
            continue
        words += _below_thousand(group)
        if connector:
            words.append(connector)
    return _join(words, fraction)
