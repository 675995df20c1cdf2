"""One-time creation of the docgen working directories.

Runs outside the generation hot path (CLI start-up, application install).
Each directory receives two protection markers so a web server that happens
to expose it refuses listings and direct access.
"""

from pathlib import Path

from app.utils.logging import get_logger

logger = get_logger("cache.provisioning")

DIR_MODE = 0o755

PROTECTION_MARKERS: dict[str, str] = {
    ".htaccess": "deny from all\n",
    "index.html": "",
}


def provision_directory(path: str | Path) -> Path:
    """Create *path* (with parents) and its protection markers if missing.

    Existing markers are left untouched.  Returns the directory path.

    Raises:
        OSError: The directory cannot be created.
    """
    directory = Path(path)
    created = not directory.exists()
    directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

    for name, content in PROTECTION_MARKERS.items():
        marker = directory / name
        if marker.exists():
            continue
        try:
            marker.write_text(content, encoding="utf-8")
        except OSError as exc:
            logger.warning("protection_marker_failed", path=str(marker), error=str(exc))

    if created:
        logger.info("directory_provisioned", path=str(directory))
    return directory
