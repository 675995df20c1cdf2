"""PHP ``date()``-style formatting, lenient date parsing, Indonesian names.

Existing templates carry PHP format strings
(``Y-m-d``, ``j F Y``, ``l, d/m/Y H:i``), so the format letters below follow
PHP rather than ``strftime``.  A backslash escapes the next character.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta

# English -> Indonesian, applied after formatting.
MONTH_NAMES_ID: dict[str, str] = {
    "January": "Januari",
    "February": "Februari",
    "March": "Maret",
    "April": "April",
    "May": "Mei",
    "June": "Juni",
    "July": "Juli",
    "August": "Agustus",
    "September": "September",
    "October": "Oktober",
    "November": "November",
    "December": "Desember",
}

DAY_NAMES_ID: dict[str, str] = {
    "Sunday": "Minggu",
    "Monday": "Senin",
    "Tuesday": "Selasa",
    "Wednesday": "Rabu",
    "Thursday": "Kamis",
    "Friday": "Jumat",
    "Saturday": "Sabtu",
}

_MONTHS = [""] + list(MONTH_NAMES_ID)
_MONTHS_ABBR = [name[:3] for name in _MONTHS]
_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

_PARSE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d-%m-%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)

_RELATIVE_DAYS: dict[str, int] = {"today": 0, "tomorrow": 1, "yesterday": -1}


def _translation_pattern(table: dict[str, str]) -> re.Pattern[str]:
    # Longest first, like PHP strtr().
    names = sorted(table, key=len, reverse=True)
    return re.compile("|".join(re.escape(n) for n in names))


_MONTH_RE = _translation_pattern(MONTH_NAMES_ID)
_DAY_RE = _translation_pattern(DAY_NAMES_ID)


def localize_id(text: str) -> str:
    """Replace English month and day names in *text* with Indonesian ones."""
    text = _MONTH_RE.sub(lambda m: MONTH_NAMES_ID[m.group(0)], text)
    return _DAY_RE.sub(lambda m: DAY_NAMES_ID[m.group(0)], text)


def parse_date(value: object, now: datetime | None = None) -> datetime | None:
    """Best-effort conversion of *value* to a datetime; ``None`` on failure."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    lowered = text.lower()
    if lowered == "now":
        return now or datetime.now()
    if lowered in _RELATIVE_DAYS:
        base = (now or datetime.now()).replace(hour=0, minute=0, second=0, microsecond=0)
        return base + timedelta(days=_RELATIVE_DAYS[lowered])

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _PARSE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def _offset(dt: datetime, colon: bool) -> str:
    offset = dt.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}" if colon else f"{sign}{hours:02d}{minutes:02d}"


def _letter(dt: datetime, ch: str) -> str:
    hour12 = dt.hour % 12 or 12
    if ch == "d":
        return f"{dt.day:02d}"
    if ch == "D":
        return _DAYS[dt.weekday()][:3]
    if ch == "j":
        return str(dt.day)
    if ch == "l":
        return _DAYS[dt.weekday()]
    if ch == "N":
        return str(dt.isoweekday())
    if ch == "S":
        return _ordinal_suffix(dt.day)
    if ch == "w":
        return str(dt.isoweekday() % 7)
    if ch == "z":
        return str(dt.timetuple().tm_yday - 1)
    if ch == "W":
        return f"{dt.isocalendar()[1]:02d}"
    if ch == "F":
        return _MONTHS[dt.month]
    if ch == "m":
        return f"{dt.month:02d}"
    if ch == "M":
        return _MONTHS_ABBR[dt.month]
    if ch == "n":
        return str(dt.month)
    if ch == "t":
        return str(calendar.monthrange(dt.year, dt.month)[1])
    if ch == "L":
        return "1" if calendar.isleap(dt.year) else "0"
    if ch == "o":
        return str(dt.isocalendar()[0])
    if ch == "Y":
        return str(dt.year)
    if ch == "y":
        return f"{dt.year % 100:02d}"
    if ch == "a":
        return "am" if dt.hour < 12 else "pm"
    if ch == "A":
        return "AM" if dt.hour < 12 else "PM"
    if ch == "g":
        return str(hour12)
    if ch == "G":
        return str(dt.hour)
    if ch == "h":
        return f"{hour12:02d}"
    if ch == "H":
        return f"{dt.hour:02d}"
    if ch == "i":
        return f"{dt.minute:02d}"
    if ch == "s":
        return f"{dt.second:02d}"
    if ch == "u":
        return f"{dt.microsecond:06d}"
    if ch == "v":
        return f"{dt.microsecond // 1000:03d}"

    aware = dt if dt.tzinfo else dt.astimezone()
    if ch == "e":
        return str(aware.tzinfo)
    if ch == "T":
        return aware.tzname() or ""
    if ch == "P":
        return _offset(aware, colon=True)
    if ch == "O":
        return _offset(aware, colon=False)
    if ch == "Z":
        return str(int((aware.utcoffset() or timedelta(0)).total_seconds()))
    if ch == "U":
        return str(int(aware.timestamp()))
    if ch == "c":
        return aware.replace(microsecond=0).isoformat()
    if ch == "r":
        return format_php_date(aware, "D, d M Y H:i:s O")
    return ch


def format_php_date(dt: datetime, fmt: str) -> str:
    """Render *dt* using PHP ``date()`` format letters."""
    out: list[str] = []
    escaped = False
    for ch in fmt:
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        else:
            out.append(_letter(dt, ch))
    return "".join(out)
