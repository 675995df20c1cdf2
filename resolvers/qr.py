"""``${qrcode:NAME:SIZE:ERROR_LEVEL}`` resolver and QR PNG renderer.

The text to encode comes from ``data_map["qrcode:" + NAME]``; an empty or
missing payload resolves to ``SKIP``.  ``SIZE`` is the final edge length of
the PNG in pixels, clamped to [50, 500]; ``ERROR_LEVEL`` is one of L/M/Q/H
(anything else means L).

Rendering goes through the shared :class:`~cache.asset_cache.AssetCache`, so
the same (payload, size, level) is drawn once per TTL.  A rendering failure
puts the visible marker ``[QR Code Error]`` in the document instead.
"""

import io

import qrcode
from PIL import Image, ImageDraw
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

from app.errors import AssetGenerationFailed
from app.utils.logging import get_logger
from cache.asset_cache import AssetCache
from grammar.placeholder import (
    QRCODE_DEFAULTS,
    QRCODE_ERROR_LEVELS,
    QRCODE_MAX_SIZE,
    QRCODE_MIN_SIZE,
    int_arg,
)
from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import SKIP, ImageAsset, ResolvedValue, ResolverEnv
from resolvers.base import DataMap, as_text

logger = get_logger("resolvers.qrcode")

QR_ERROR_MARKER = "[QR Code Error]"

DEFAULT_BORDER = 2

_ERROR_CORRECTION: dict[str, int] = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


def render_qr_png(payload: str, size: int, error_level: str, border: int = DEFAULT_BORDER) -> bytes:
    """Encode *payload* as a ``size`` x ``size`` PNG.

    Modules are drawn with the largest integer box size that fits, then the
    bitmap is scaled to exactly *size* pixels with nearest-neighbour sampling
    so module edges stay sharp.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[error_level],
        box_size=1,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    matrix = qr.get_matrix()

    modules = len(matrix)
    box = max(1, size // modules)
    edge = modules * box
    image = Image.new("L", (edge, edge), 255)
    draw = ImageDraw.Draw(image)
    for y, row in enumerate(matrix):
        for x, dark in enumerate(row):
            if dark:
                draw.rectangle(
                    (x * box, y * box, (x + 1) * box - 1, (y + 1) * box - 1),
                    fill=0,
                )
    if edge != size:
        image = image.resize((size, size), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class QRCodeResolver:
    kind = PlaceholderKind.QRCODE

    def __init__(self, cache: AssetCache, border: int = DEFAULT_BORDER) -> None:
        self._cache = cache
        self._border = border

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue:
        raw = data_map.get(descriptor.source_key)
        if isinstance(raw, ImageAsset):
            raw = raw.payload
        payload = as_text(raw)
        if not payload.strip():
            logger.info("qrcode_payload_missing", token=descriptor.raw_token, key=descriptor.source_key)
            return SKIP
        if payload == QR_ERROR_MARKER:
            # The bare token for this source already failed to render.
            return QR_ERROR_MARKER

        size = int_arg(descriptor.arg(1), int(QRCODE_DEFAULTS["size"]))
        size = min(max(size, QRCODE_MIN_SIZE), QRCODE_MAX_SIZE)

        level = (descriptor.arg(2) or str(QRCODE_DEFAULTS["error_level"])).upper()
        if level not in QRCODE_ERROR_LEVELS:
            logger.warning("qrcode_error_level_invalid", token=descriptor.raw_token, value=level)
            level = str(QRCODE_DEFAULTS["error_level"])

        try:
            path = self._cache.get_or_create(payload, size, level, self._render)
        except AssetGenerationFailed as exc:
            logger.error("qrcode_generation_failed", token=descriptor.raw_token, error=exc.message)
            return QR_ERROR_MARKER

        return ImageAsset(
            source_path=str(path),
            width=size,
            height=size,
            preserve_aspect=True,
            payload=payload,
        )

    def _render(self, payload: str, size: int, error_level: str) -> bytes:
        return render_qr_png(payload, size, error_level, border=self._border)
