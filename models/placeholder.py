"""Pydantic models for parsed placeholder tokens.

A template placeholder is written ``${kind:arg1:arg2:...}``.  The grammar
turns the inner text (``kind:arg1:...``) into a :class:`PlaceholderDescriptor`;
tokens whose kind is not listed in :class:`PlaceholderKind` never become
descriptors and stay literal in the document.
"""

from enum import Enum

from pydantic import BaseModel, Field


class PlaceholderKind(str, Enum):
    DATE      = "date"
    USER      = "user"
    SITE      = "site"
    IMAGE     = "image"
    QRCODE    = "qrcode"
    MONEY     = "money"
    TERBILANG = "terbilang"
    NUMBER    = "number"
    GELAR     = "gelar"
    ALAMAT    = "alamat"
    CUSTOM    = "custom"


class PlaceholderDescriptor(BaseModel):
    """A typed view of one placeholder token."""

    kind: PlaceholderKind

    raw_token: str
    """Inner token text without ``${`` and ``}``; also the output-map key."""

    args: list[str] = Field(default_factory=list)
    """Positional arguments in token order; omitted trailing args are absent."""

    source_key: str | None = None
    """Data-map key the resolver reads (``image:logo``, ``issue_date`` ...)."""

    def arg(self, index: int, default: str | None = None) -> str | None:
        """Return argument *index*, or *default* when absent or empty."""
        if index < len(self.args) and self.args[index] != "":
            return self.args[index]
        return default

    @property
    def token(self) -> str:
        """The placeholder exactly as written in the document."""
        return "${" + self.raw_token + "}"
