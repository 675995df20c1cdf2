"""``${image:NAME:WIDTH:HEIGHT:HALIGN:VALIGN}`` resolver.

The file path comes from ``data_map["image:" + NAME]``.  A missing key or a
path that does not exist resolves to ``SKIP`` so the document never receives
a broken picture reference.  Invalid sizes or alignments fall back to the
defaults in :data:`grammar.placeholder.IMAGE_DEFAULTS` with a warning.
"""

import os
from pathlib import Path

from app.utils.logging import get_logger
from grammar.placeholder import IMAGE_DEFAULTS, int_arg
from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import SKIP, HAlign, ImageAsset, ResolvedValue, ResolverEnv, VAlign
from resolvers.base import DataMap, image_source_path

logger = get_logger("resolvers.image")


def _dimension(descriptor: PlaceholderDescriptor, index: int, name: str) -> int:
    default = int(IMAGE_DEFAULTS[name])
    value = int_arg(descriptor.arg(index), default)
    if value <= 0:
        logger.warning("image_dimension_invalid", token=descriptor.raw_token, **{name: value})
        return default
    return value


def _alignment(descriptor: PlaceholderDescriptor, index: int, enum_cls, name: str):
    raw = descriptor.arg(index)
    default = enum_cls(IMAGE_DEFAULTS[name])
    if raw is None:
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        logger.warning(
            "image_alignment_invalid",
            token=descriptor.raw_token,
            value=raw,
            allowed=[member.value for member in enum_cls],
        )
        return default


class ImageResolver:
    kind = PlaceholderKind.IMAGE

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue:
        path = image_source_path(data_map.get(descriptor.source_key))
        if path is None:
            logger.info("image_source_missing", token=descriptor.raw_token, key=descriptor.source_key)
            return SKIP
        if not (Path(path).is_file() and os.access(path, os.R_OK)):
            logger.warning("image_not_found", token=descriptor.raw_token, path=path)
            return SKIP

        return ImageAsset(
            source_path=str(Path(path).resolve()),
            width=_dimension(descriptor, 1, "width"),
            height=_dimension(descriptor, 2, "height"),
            preserve_aspect=True,
            horizontal_align=_alignment(descriptor, 3, HAlign, "halign"),
            vertical_align=_alignment(descriptor, 4, VAlign, "valign"),
        )
