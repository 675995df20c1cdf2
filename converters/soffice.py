"""LibreOffice (``soffice``) converter for pdf/odt output.

Runs ``soffice --headless --convert-to <fmt> --outdir <tmp> <input>`` in a
private temporary directory and moves the produced file next to the
requested output path.  Any failure (missing binary, non-zero exit,
timeout, no output) raises :class:`~app.errors.ConversionFailed`.
"""

import shutil
import subprocess
import tempfile
from pathlib import Path

from app.errors import ConversionFailed
from app.utils.logging import get_logger

logger = get_logger("converters.soffice")

SUPPORTED_FORMATS: frozenset[str] = frozenset({"pdf", "odt", "docx"})


class LibreOfficeConverter:
    """Convert a DOCX file with a headless LibreOffice process.

    Args:
        binary:   Executable name or path (``soffice``, ``libreoffice`` ...).
        timeout:  Seconds before the subprocess is killed.
    """

    def __init__(self, binary: str = "soffice", timeout: float = 120.0) -> None:
        self.binary = binary
        self.timeout = timeout

    def convert(self, source: str | Path, target: str | Path) -> Path:
        """Convert *source* into *target*; the format is taken from its suffix."""
        source = Path(source)
        target = Path(target)
        fmt = target.suffix.lstrip(".").lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ConversionFailed(f"unsupported output format: {fmt!r}")

        executable = shutil.which(self.binary)
        if executable is None:
            raise ConversionFailed(f"converter binary not found: {self.binary}")

        with tempfile.TemporaryDirectory(prefix="docgen_convert_") as outdir:
            cmd = [
                executable,
                "--headless",
                "--convert-to", fmt,
                "--outdir", outdir,
                str(source),
            ]
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except subprocess.TimeoutExpired as exc:
                raise ConversionFailed(f"converter timed out after {self.timeout:g}s") from exc
            except OSError as exc:
                raise ConversionFailed(f"converter could not start: {exc}") from exc

            produced = Path(outdir) / f"{source.stem}.{fmt}"
            if result.returncode != 0 or not produced.is_file():
                logger.error(
                    "conversion_failed",
                    source=str(source),
                    fmt=fmt,
                    returncode=result.returncode,
                    stderr=result.stderr.strip()[-500:],
                )
                raise ConversionFailed(f"converter exited with code {result.returncode}")

            shutil.move(str(produced), str(target))

        logger.info("document_converted", source=str(source), target=str(target))
        return target
