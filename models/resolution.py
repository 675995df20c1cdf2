"""Pydantic models for resolved placeholder values.

A resolver returns one of:
  - ``str``          text injected in place of the token
  - ``ImageAsset``   a picture injected in place of the token
  - ``SKIP``         leave the token unresolved (not an error)
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Union

from pydantic import BaseModel, ConfigDict, Field

from app.config import DocGenSettings


class HAlign(str, Enum):
    LEFT   = "left"
    CENTER = "center"
    RIGHT  = "right"


class VAlign(str, Enum):
    TOP    = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class ImageAsset(BaseModel):
    """Reference to an image file to be placed at a token position."""

    source_path: str
    """Absolute path of an existing, readable image file."""

    width: int = Field(gt=0)
    """Target width in pixels (96 dpi)."""

    height: int = Field(gt=0)
    """Target height in pixels (96 dpi)."""

    preserve_aspect: bool = True
    """Fit inside width x height keeping the source aspect ratio."""

    horizontal_align: HAlign | None = None
    """Paragraph alignment to apply; ``None`` keeps the template's."""

    vertical_align: VAlign | None = None
    """Table-cell vertical alignment to apply; ``None`` keeps the template's."""

    payload: str | None = None
    """Encoded text for generated QR assets; ``None`` for plain images."""


class CacheEntry(BaseModel):
    """One generated file in the asset cache."""

    key: str
    """Hex digest over (version, payload, size, quality)."""

    path: str
    created_at: datetime


class UserInfo(BaseModel):
    """The current user as seen by ``${user:...}`` placeholders.

    Extra attributes (``login``, ``department`` ...) are allowed and are
    reachable through ``${user:<attribute>}``.
    """

    model_config = ConfigDict(extra="allow")

    display_name: str = ""
    email: str = ""
    roles: list[str] = Field(default_factory=list)


class SiteInfo(BaseModel):
    """Site metadata for ``${site:...}`` placeholders."""

    name: str = ""
    url: str = ""
    description: str = ""
    admin_email: str = ""
    version: str = ""


def _local_now() -> datetime:
    return datetime.now().astimezone()


class ResolverEnv(BaseModel):
    """Everything a resolver may consult besides the data map."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    user: UserInfo = Field(default_factory=UserInfo)
    site: SiteInfo = Field(default_factory=SiteInfo)
    clock: Callable[[], datetime] = _local_now
    settings: DocGenSettings = Field(default_factory=DocGenSettings)

    def now(self) -> datetime:
        return self.clock()


class Skip(Enum):
    """Sentinel: the placeholder is deliberately left unresolved."""

    SKIP = "skip"

    def __repr__(self) -> str:
        return "SKIP"


SKIP = Skip.SKIP

ResolvedValue = Union[str, ImageAsset, Skip]
