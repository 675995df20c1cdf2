"""DocumentGenerator — one provider request in, one output file out.

Pipeline::

    validate data -> check template -> check temp dir -> stage copy
      -> open -> engine.process -> document.apply -> save scratch docx
      -> (pdf/odt) convert into a scratch file
      -> replace <name>.<format> with the result, remove scratch files

Every generation-level failure raises a :class:`~app.errors.DocGenError`
subclass.  All work happens on uniquely named ``docgen_*`` scratch files in
the temp dir; only a finished document is moved onto the output name, so a
failed generation neither leaves output behind nor touches an existing file
of the same name.  Scratch files are removed on every exit path.
"""

import os
import re
import shutil
import uuid
from pathlib import Path
from typing import Any, Mapping

from app.errors import (
    ConversionFailed,
    CopyFailed,
    DocGenError,
    InjectionFailed,
    InvalidInputData,
    TemplateNotFound,
    TempDirUnavailable,
)
from app.models.document_request import DocumentProvider, OutputFormat
from app.utils.logging import get_logger
from engine.document import TemplateDocument
from engine.template import TemplateEngine

logger = get_logger("engine.generator")

# Characters outside the XML 1.0 Char production.
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

DEFAULT_OUTPUT_NAME = "document"
STAGING_PREFIX = "docgen_"


def sanitize_xml_text(value: str) -> str:
    return _XML_ILLEGAL.sub("", value)


def sanitize_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Copy *data* with XML-illegal characters stripped from string values."""
    clean: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = sanitize_xml_text(value)
        elif isinstance(value, Mapping):
            value = sanitize_data(value)
        clean[key] = value
    return clean


def sanitize_output_name(name: str) -> str:
    """Make *name* safe as a file stem.

    Whitespace runs become ``-``, only ``[A-Za-z0-9._-]`` survive, leading
    dots and dashes are stripped; an empty result becomes ``document``.
    """
    name = re.sub(r"\s+", "-", name.strip())
    name = re.sub(r"[^A-Za-z0-9._-]", "", name)
    name = name.lstrip(".-")
    return name or DEFAULT_OUTPUT_NAME


def _remove(path: Path | None) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("cleanup_failed", path=str(path), error=str(exc))


def _scratch_path(temp_dir: Path, suffix: str) -> Path:
    """Unique ``docgen_*`` path in *temp_dir*; the file itself is not created."""
    return temp_dir / f"{STAGING_PREFIX}{uuid.uuid4().hex}{suffix}"


def _publish(result: Path, final_path: Path) -> None:
    """Move a finished file onto its output name in one step."""
    try:
        os.replace(result, final_path)
    except OSError as exc:
        raise CopyFailed(f"cannot write output {final_path}: {exc}") from exc


class DocumentGenerator:
    """Drive one generation per :meth:`generate` call.

    Args:
        engine:     Placeholder engine shared across generations.
        converter:  Object with ``convert(source, target) -> Path`` used for
            pdf/odt output, normally
            :class:`~converters.soffice.LibreOfficeConverter`.  Without one,
            only docx output is possible.
    """

    def __init__(self, engine: TemplateEngine, converter=None) -> None:
        self.engine = engine
        self.converter = converter

    def generate(self, provider: DocumentProvider) -> Path:
        """Generate the document described by *provider*; return its path."""
        data = provider.get_data()
        if not isinstance(data, Mapping):
            raise InvalidInputData(f"data must be a mapping, got {type(data).__name__}")
        data = sanitize_data(data)

        template = Path(provider.get_template_path())
        if not template.is_file():
            raise TemplateNotFound(f"template not found: {template}")

        temp_dir = Path(provider.get_temp_dir())
        if not (temp_dir.is_dir() and os.access(temp_dir, os.W_OK)):
            raise TempDirUnavailable(f"temp dir is not a writable directory: {temp_dir}")

        try:
            output_format = OutputFormat(str(provider.get_output_format()).lower())
        except ValueError as exc:
            raise InvalidInputData(f"unsupported output format: {provider.get_output_format()!r}") from exc

        stem = sanitize_output_name(provider.get_output_filename())
        final_path = temp_dir / f"{stem}.{output_format.value}"

        log = logger.bind(template=str(template), output=str(final_path))
        log.info("generation_started", format=output_format.value)

        staged = self._stage(template, temp_dir)
        rendered = converted = None
        try:
            rendered = _scratch_path(temp_dir, f".{OutputFormat.DOCX.value}")
            self._render(staged, rendered, data)
            result = rendered
            if output_format is not OutputFormat.DOCX:
                converted = _scratch_path(temp_dir, f".{output_format.value}")
                self._convert(rendered, converted)
                result = converted
            _publish(result, final_path)
        finally:
            _remove(staged)
            _remove(rendered)
            _remove(converted)

        log.info("document_generated")
        return final_path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _stage(template: Path, temp_dir: Path) -> Path:
        staged = _scratch_path(temp_dir, template.suffix)
        try:
            shutil.copyfile(template, staged)
        except OSError as exc:
            _remove(staged)
            raise CopyFailed(f"cannot copy template {template}: {exc}") from exc
        return staged

    def _render(self, staged: Path, output: Path, data: Mapping[str, Any]) -> None:
        document = TemplateDocument.open(staged)
        try:
            values = self.engine.process(document, data)
            injected = document.apply(values)
            document.save(output)
        except DocGenError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise InjectionFailed(f"failed to process template: {exc}") from exc
        logger.debug("values_injected", output=str(output), occurrences=injected)

    def _convert(self, source: Path, target: Path) -> None:
        if self.converter is None:
            raise ConversionFailed(f"no converter configured for {target.suffix} output")
        self.converter.convert(source, target)
