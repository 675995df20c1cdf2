"""Document handle: placeholder scanning and injection over python-docx.

Word splits typed text into runs freely, so ``${date:Y-m-d}`` may arrive as
``${da`` + ``te:Y-m-d`` + ``}``.  Matching is therefore done on the
concatenated run text of each paragraph and replacements are spliced back
run by run: the run where a token starts receives the replacement (keeping
its formatting), runs fully covered by the token are emptied, and the run
where it ends keeps only its tail.

Visited paragraphs: body, tables (recursively, merged cells once) and every
header/footer that carries its own definition.
"""

import re
import zipfile
from bisect import bisect_right
from copy import deepcopy
from pathlib import Path
from typing import Iterator, Mapping

from docx import Document
from docx.enum.table import WD_CELL_VERTICAL_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.image.image import Image as DocxImage
from docx.opc.exceptions import PackageNotFoundError
from docx.shared import Emu
from docx.table import Table, _Cell
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from app.errors import TemplateLoadFailed
from app.utils.logging import get_logger
from grammar.placeholder import find_tokens, parse, strip_token
from models.placeholder import PlaceholderKind
from models.resolution import HAlign, ImageAsset, VAlign
from resolvers.base import is_text_value
from resolvers.qr import QR_ERROR_MARKER

logger = get_logger("engine.document")

EMU_PER_PIXEL = 9525  # 96 dpi

_HALIGN = {
    HAlign.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    HAlign.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    HAlign.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
}

_VALIGN = {
    VAlign.TOP: WD_CELL_VERTICAL_ALIGNMENT.TOP,
    VAlign.MIDDLE: WD_CELL_VERTICAL_ALIGNMENT.CENTER,
    VAlign.BOTTOM: WD_CELL_VERTICAL_ALIGNMENT.BOTTOM,
}


def _wrap(token: str) -> str:
    return "${" + strip_token(token) + "}"


def _is_image_token(token: str) -> bool:
    descriptor = parse(token)
    return descriptor is not None and descriptor.kind in (PlaceholderKind.IMAGE, PlaceholderKind.QRCODE)


def _iter_container(container, cell: _Cell | None = None) -> Iterator[tuple[Paragraph, _Cell | None]]:
    for paragraph in container.paragraphs:
        yield paragraph, cell
    for table in container.tables:
        yield from _iter_table(table)


def _iter_table(table: Table) -> Iterator[tuple[Paragraph, _Cell | None]]:
    seen = set()
    for row in table.rows:
        for cell in row.cells:
            if cell._tc in seen:
                continue
            seen.add(cell._tc)
            yield from _iter_container(cell, cell)


def _run_starts(runs: list[Run]) -> tuple[list[int], str]:
    starts: list[int] = []
    texts: list[str] = []
    offset = 0
    for run in runs:
        text = run.text
        starts.append(offset)
        texts.append(text)
        offset += len(text)
    return starts, "".join(texts)


def _split_runs(runs: list[Run], starts: list[int], start: int, end: int) -> tuple[int, str, str, int]:
    """Locate the match [start, end) and return (first, head, tail, last)."""
    first = bisect_right(starts, start) - 1
    last = bisect_right(starts, end - 1) - 1
    head = runs[first].text[: start - starts[first]]
    tail = runs[last].text[end - starts[last]:]
    return first, head, tail, last


def _clear_between(runs: list[Run], first: int, last: int) -> None:
    for index in range(first + 1, last):
        runs[index].text = ""


class TemplateDocument:
    """One opened template package; not shared between generations."""

    def __init__(self, document, path: Path | None = None) -> None:
        self._document = document
        self.path = path

    @classmethod
    def open(cls, path: str | Path) -> "TemplateDocument":
        """Load a DOCX package.

        Raises:
            TemplateLoadFailed: The file is not a readable DOCX package.
        """
        try:
            document = Document(str(path))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError, SyntaxError, OSError) as exc:
            raise TemplateLoadFailed(f"cannot load template {path}: {exc}") from exc
        return cls(document, Path(path))

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def paragraphs(self) -> Iterator[tuple[Paragraph, _Cell | None]]:
        """Every visited paragraph with its enclosing table cell (if any)."""
        seen = set()
        sources = [self._document]
        for section in self._document.sections:
            for part in (
                section.header,
                section.footer,
                section.first_page_header,
                section.first_page_footer,
                section.even_page_header,
                section.even_page_footer,
            ):
                if not part.is_linked_to_previous:
                    sources.append(part)

        for source in sources:
            for paragraph, cell in _iter_container(source):
                if paragraph._p in seen:
                    continue
                seen.add(paragraph._p)
                yield paragraph, cell

    def text(self) -> str:
        return "\n".join(paragraph.text for paragraph, _ in self.paragraphs())

    def placeholders(self) -> list[str]:
        """Distinct inner placeholder tokens, in document order."""
        tokens: dict[str, None] = {}
        for paragraph, _ in self.paragraphs():
            for token in find_tokens(paragraph.text):
                tokens.setdefault(token, None)
        return list(tokens)

    # ------------------------------------------------------------------
    # Injection
    # ------------------------------------------------------------------

    def set_value(self, token: str, value: str) -> int:
        """Replace every occurrence of *token* with *value*; return the count."""
        needle = _wrap(token)
        count = 0
        for paragraph, _ in self.paragraphs():
            runs = paragraph.runs
            if not runs:
                continue
            starts, full = _run_starts(runs)
            matches = [m.start() for m in re.finditer(re.escape(needle), full)]
            for start in reversed(matches):
                first, head, tail, last = _split_runs(runs, starts, start, start + len(needle))
                if first == last:
                    runs[first].text = head + value + tail
                else:
                    runs[first].text = head + value
                    _clear_between(runs, first, last)
                    runs[last].text = tail
                count += 1
        return count

    def set_image(self, token: str, asset: ImageAsset) -> int:
        """Replace every occurrence of *token* with an inline picture.

        An unreadable or unsupported image leaves the token in place.
        """
        try:
            width, height = self._picture_size(asset)
        except (OSError, UnrecognizedImageError) as exc:
            logger.warning("image_unreadable", token=token, path=asset.source_path, error=str(exc))
            return 0

        needle = _wrap(token)
        count = 0
        for paragraph, cell in self.paragraphs():
            runs = paragraph.runs
            if not runs:
                continue
            starts, full = _run_starts(runs)
            matches = [m.start() for m in re.finditer(re.escape(needle), full)]
            for start in reversed(matches):
                first, head, tail, last = _split_runs(runs, starts, start, start + len(needle))
                anchor = runs[first]
                anchor.text = head
                if first == last:
                    if tail:
                        tail_r = deepcopy(anchor._r)
                        anchor._r.addnext(tail_r)
                        Run(tail_r, paragraph).text = tail
                else:
                    _clear_between(runs, first, last)
                    runs[last].text = tail

                picture = paragraph.add_run()
                picture.add_picture(asset.source_path, width=width, height=height)
                anchor._r.addnext(picture._r)
                count += 1

            if matches:
                if asset.horizontal_align is not None:
                    paragraph.alignment = _HALIGN[asset.horizontal_align]
                if cell is not None and asset.vertical_align is not None:
                    cell.vertical_alignment = _VALIGN[asset.vertical_align]
        return count

    def apply(self, values: Mapping[str, object]) -> int:
        """Inject a resolved map; keys without a token in the document are ignored.

        ``image:`` and ``qrcode:`` tokens take only an ``ImageAsset`` or the
        QR error marker.  Their source key shares the bare token's name, so a
        raw file path or payload left under it is never injected as text.
        """
        present = set(self.placeholders())
        count = 0
        for key, value in values.items():
            token = strip_token(key)
            if token not in present:
                continue
            if isinstance(value, ImageAsset):
                count += self.set_image(token, value)
            elif is_text_value(value):
                if _is_image_token(token) and value != QR_ERROR_MARKER:
                    continue
                count += self.set_value(token, str(value))
        return count

    def save(self, path: str | Path) -> Path:
        self._document.save(str(path))
        return Path(path)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _picture_size(asset: ImageAsset) -> tuple[Emu, Emu]:
        width, height = asset.width, asset.height
        if asset.preserve_aspect:
            info = DocxImage.from_file(asset.source_path)
            scale = min(width / info.px_width, height / info.px_height)
            width = max(1, round(info.px_width * scale))
            height = max(1, round(info.px_height * scale))
        return Emu(width * EMU_PER_PIXEL), Emu(height * EMU_PER_PIXEL)
