"""Content-addressed cache for generated image assets (QR codes).

Layout::

    <cache_dir>/<sha256 hex>.png      promoted entries
    <cache_dir>/temp_<random>.png     in-flight writes

Key = SHA-256 over (format version, payload, size, quality).  A miss calls
the generator, writes its bytes to a ``temp_*`` file in the cache directory
and promotes it with ``os.replace``; readers therefore never see a partially
written entry.  Two concurrent misses for the same key both render and the
second rename overwrites identical bytes, so no lock is taken.

Entries older than the TTL are never served: :meth:`AssetCache.lookup`
treats them as misses and :meth:`AssetCache.sweep` deletes them.  Sweeps run
opportunistically from :meth:`AssetCache.get_or_create`, at most once per
``sweep_interval`` seconds; there is no background timer.

The cache directory is provisioned by the caller
(:func:`cache.provisioning.provision_directory`), not here.
"""

import hashlib
import os
import tempfile
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from app.config import DocGenSettings
from app.errors import AssetGenerationFailed
from app.utils.logging import get_logger
from models.resolution import CacheEntry

# Bump when the rendering of cached assets changes, so stale files miss.
CACHE_FORMAT_VERSION = "docgen-asset/1"

ENTRY_SUFFIX = ".png"
TEMP_PREFIX = "temp_"

AssetGenerator = Callable[[str, int, str], bytes]


class AssetCache:
    """Digest-keyed PNG store with expiry-based eviction.

    Args:
        cache_dir:       Existing, writable directory for entries.
        ttl:             Maximum entry age; older entries are misses.
        version:         Format version folded into every key.
        sweep_interval:  Minimum seconds between opportunistic sweeps;
                         ``0`` sweeps on every access.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        ttl: timedelta = timedelta(hours=24),
        version: str = CACHE_FORMAT_VERSION,
        sweep_interval: float = 3600.0,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl = ttl
        self.version = version
        self.sweep_interval = sweep_interval
        self._last_sweep: float | None = None
        self._log = get_logger("cache.asset_cache")

    @classmethod
    def from_settings(cls, settings: DocGenSettings) -> "AssetCache":
        return cls(
            settings.cache_dir,
            ttl=timedelta(hours=settings.cache_ttl_hours),
            sweep_interval=settings.cache_sweep_interval,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def key_for(self, payload: str, size: int, quality: str) -> str:
        """Stable hex digest for one (payload, size, quality) triple."""
        material = "\x00".join((self.version, payload, str(size), quality))
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}{ENTRY_SUFFIX}"

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the live entry for *key*, or ``None`` if absent or expired."""
        path = self.path_for(key)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        if self._expired(mtime, time.time()):
            return None
        return CacheEntry(
            key=key,
            path=str(path),
            created_at=datetime.fromtimestamp(mtime, tz=timezone.utc),
        )

    def get_or_create(
        self,
        payload: str,
        size: int,
        quality: str,
        generator: AssetGenerator,
    ) -> Path:
        """Return the cached asset path for the triple, rendering it on a miss.

        Raises:
            AssetGenerationFailed: The generator failed, produced no bytes, or
                the entry could not be written.
        """
        self._maybe_sweep()

        key = self.key_for(payload, size, quality)
        entry = self.lookup(key)
        if entry is not None:
            self._log.debug("asset_cache_hit", key=key)
            return Path(entry.path)

        self._log.debug("asset_cache_miss", key=key, size=size, quality=quality)
        try:
            data = generator(payload, size, quality)
        except AssetGenerationFailed:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AssetGenerationFailed(f"asset generator failed: {exc}") from exc
        if not data:
            raise AssetGenerationFailed("asset generator returned no data")

        return self._promote(key, data)

    def sweep(self) -> int:
        """Delete expired entries and stale temp files; return how many."""
        now = time.time()
        self._last_sweep = now
        removed = 0
        try:
            candidates = list(self.cache_dir.glob(f"*{ENTRY_SUFFIX}"))
        except OSError as exc:
            self._log.warning("asset_cache_sweep_failed", cache_dir=str(self.cache_dir), error=str(exc))
            return 0

        for path in candidates:
            try:
                if not self._expired(path.stat().st_mtime, now):
                    continue
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                self._log.warning("asset_cache_evict_failed", path=str(path), error=str(exc))

        if removed:
            self._log.info("asset_cache_swept", removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _expired(self, mtime: float, now: float) -> bool:
        return now - mtime > self.ttl.total_seconds()

    def _maybe_sweep(self) -> None:
        now = time.time()
        if self._last_sweep is None or now - self._last_sweep >= self.sweep_interval:
            self.sweep()

    def _promote(self, key: str, data: bytes) -> Path:
        final_path = self.path_for(key)
        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=TEMP_PREFIX, suffix=ENTRY_SUFFIX, dir=self.cache_dir
            )
        except OSError as exc:
            raise AssetGenerationFailed(
                f"cannot stage asset in {self.cache_dir}: {exc}"
            ) from exc

        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(temp_name, final_path)
        except OSError as exc:
            Path(temp_name).unlink(missing_ok=True)
            raise AssetGenerationFailed(f"cannot write asset {final_path}: {exc}") from exc

        self._log.debug("asset_cache_stored", key=key, path=str(final_path))
        return final_path
