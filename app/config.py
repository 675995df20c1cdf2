"""Runtime settings for document generation.

Value priority for every field:
  1. Explicit constructor / ``from_env`` keyword argument
  2. Environment variable (``DOCGEN_*``)
  3. Built-in default

Environment variables:
  DOCGEN_CACHE_DIR         QR/image cache directory
  DOCGEN_CACHE_TTL_HOURS   Cache entry lifetime in hours (default 24)
  DOCGEN_CURRENCY          Currency prefix for ``${money:...}`` (default Rp)
  DOCGEN_DATE_FORMAT       Default PHP-style date format (default ``j F Y``)
  DOCGEN_SOFFICE           LibreOffice binary used for pdf/odt output
  DOCGEN_CONVERT_TIMEOUT   Converter subprocess timeout in seconds
"""

import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

_DEFAULT_CACHE_DIR = Path(tempfile.gettempdir()) / "docgen" / "qrcache"

_ENV_VARS: dict[str, str] = {
    "cache_dir": "DOCGEN_CACHE_DIR",
    "cache_ttl_hours": "DOCGEN_CACHE_TTL_HOURS",
    "currency": "DOCGEN_CURRENCY",
    "date_format": "DOCGEN_DATE_FORMAT",
    "soffice_binary": "DOCGEN_SOFFICE",
    "convert_timeout": "DOCGEN_CONVERT_TIMEOUT",
}


class DocGenSettings(BaseModel):
    """Knobs shared by the engine, the resolvers and the generator."""

    cache_dir: Path = _DEFAULT_CACHE_DIR
    """Directory holding ``<digest>.png`` cache entries."""

    cache_ttl_hours: float = Field(default=24.0, gt=0)
    """Entries older than this are swept and never served as hits."""

    cache_sweep_interval: float = Field(default=3600.0, ge=0)
    """Minimum seconds between two opportunistic sweeps."""

    currency: str = "Rp"
    date_format: str = "j F Y"

    qr_border: int = Field(default=2, ge=0)
    """Quiet-zone width in modules around every QR symbol."""

    soffice_binary: str = "soffice"
    convert_timeout: float = Field(default=120.0, gt=0)

    @classmethod
    def from_env(cls, **overrides: object) -> "DocGenSettings":
        """Build settings from ``DOCGEN_*`` env vars, *overrides* first."""
        values: dict[str, object] = {}
        for field_name, env_name in _ENV_VARS.items():
            raw = os.environ.get(env_name)
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
