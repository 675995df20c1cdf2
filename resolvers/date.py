"""``${date:SOURCE:FORMAT}`` resolver.

``SOURCE`` is a data-map key; when it is absent the current time from the
env clock is used.  ``FORMAT`` uses PHP ``date()`` letters and defaults to
``settings.date_format``.  The output is post-processed with the Indonesian
month/day name table.

The one-argument form ``${date:FORMAT}`` (format for "now") is recognised
when the argument is not a data key, consists only of format letters,
spaces and punctuation, and is either a single letter or contains a
separator.  ``${date:Y-m-d}`` is a format; ``${date:issue_date}`` and
``${date:tanggal}`` are source keys and fall back to the clock when absent.

An unparseable source value resolves to ``""``; it never raises.
"""

import re

from app.utils.logging import get_logger
from formatters.php_date import format_php_date, localize_id, parse_date
from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import ResolvedValue, ResolverEnv
from resolvers.base import DataMap

logger = get_logger("resolvers.date")

_FORMAT_ONLY = re.compile(r"[dDjlNSwzWFmMntLoYyaAgGhHisuveTPOZcrU\s\\/.,:;\-]+")
_KEY_SHAPED = re.compile(r"\w{2,}")


def _is_format(argument: str) -> bool:
    return bool(_FORMAT_ONLY.fullmatch(argument)) and not _KEY_SHAPED.fullmatch(argument)


class DateResolver:
    kind = PlaceholderKind.DATE

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue:
        source = descriptor.arg(0)
        fmt = descriptor.arg(1)

        if fmt is None and source is not None and source not in data_map:
            if _is_format(source):
                source, fmt = None, source

        if source is not None and source in data_map:
            value = data_map[source]
        else:
            value = env.now()

        parsed = parse_date(value, now=env.now())
        if parsed is None:
            logger.warning(
                "date_unparseable",
                token=descriptor.raw_token,
                source=source,
                value=repr(value),
            )
            return ""
        return localize_id(format_php_date(parsed, fmt or env.settings.date_format))
