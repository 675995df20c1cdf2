"""Static kind -> resolver table.

Order matters: the engine resolves kinds in this order and threads the data
map through them, so later kinds see values written by earlier ones.  The
context kinds (date, image, user, site, qrcode) run first and the formatter
kinds after them.
"""

from app.config import DocGenSettings
from cache.asset_cache import AssetCache
from models.placeholder import PlaceholderKind
from resolvers.base import FieldResolver
from resolvers.date import DateResolver
from resolvers.formatted import (
    AlamatResolver,
    CustomResolver,
    GelarResolver,
    MoneyResolver,
    NumberResolver,
    TerbilangResolver,
)
from resolvers.image import ImageResolver
from resolvers.qr import QRCodeResolver
from resolvers.site import SiteResolver
from resolvers.user import UserResolver

RESOLUTION_ORDER: tuple[PlaceholderKind, ...] = (
    PlaceholderKind.DATE,
    PlaceholderKind.IMAGE,
    PlaceholderKind.USER,
    PlaceholderKind.SITE,
    PlaceholderKind.QRCODE,
    PlaceholderKind.MONEY,
    PlaceholderKind.TERBILANG,
    PlaceholderKind.NUMBER,
    PlaceholderKind.GELAR,
    PlaceholderKind.ALAMAT,
    PlaceholderKind.CUSTOM,
)


def build_registry(
    cache: AssetCache,
    settings: DocGenSettings | None = None,
) -> dict[PlaceholderKind, FieldResolver]:
    """Return the resolver table in :data:`RESOLUTION_ORDER`."""
    settings = settings or DocGenSettings()
    resolvers: list[FieldResolver] = [
        DateResolver(),
        ImageResolver(),
        UserResolver(),
        SiteResolver(),
        QRCodeResolver(cache, border=settings.qr_border),
        MoneyResolver(),
        TerbilangResolver(),
        NumberResolver(),
        GelarResolver(),
        AlamatResolver(),
        CustomResolver(),
    ]
    table = {resolver.kind: resolver for resolver in resolvers}
    return {kind: table[kind] for kind in RESOLUTION_ORDER}
