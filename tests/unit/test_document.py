"""Unit tests for the python-docx TemplateDocument handle.

Templates are built in memory with python-docx; tokens are deliberately
split across runs the way Word stores typed text.
"""

from pathlib import Path

import pytest
from docx import Document
from docx.enum.table import WD_CELL_VERTICAL_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Emu
from PIL import Image

from app.errors import TemplateLoadFailed
from engine.document import EMU_PER_PIXEL, TemplateDocument
from models.resolution import HAlign, ImageAsset, VAlign


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _paragraph(doc, *runs: str):
    paragraph = doc.add_paragraph()
    for text in runs:
        paragraph.add_run(text)
    return paragraph


def _write_png(path: Path, size: tuple[int, int] = (40, 20)) -> Path:
    Image.new("RGB", size, (10, 120, 200)).save(path, format="PNG")
    return path


def _drawings(paragraph) -> int:
    return sum(len(run._r.xpath("./w:drawing")) for run in paragraph.runs)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def test_placeholders_across_runs_in_order() -> None:
    doc = Document()
    _paragraph(doc, "Dear ${user:", "name}, see ${da", "te:issue_date:Y-m-d}")
    _paragraph(doc, "${company} ${user:name}")

    handle = TemplateDocument(doc)

    assert handle.placeholders() == ["user:name", "date:issue_date:Y-m-d", "company"]


def test_placeholders_in_tables_headers_and_footers() -> None:
    doc = Document()
    table = doc.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "${cell_a}"
    nested = table.cell(0, 1).add_table(rows=1, cols=1)
    nested.cell(0, 0).text = "${nested}"

    section = doc.sections[0]
    section.header.is_linked_to_previous = False
    section.header.add_paragraph("${site:name}")
    section.footer.is_linked_to_previous = False
    section.footer.add_paragraph("Page ${footer_note}")

    tokens = TemplateDocument(doc).placeholders()

    assert set(tokens) == {"cell_a", "nested", "site:name", "footer_note"}


def test_linked_headers_are_not_created() -> None:
    doc = Document()
    _paragraph(doc, "${company}")
    TemplateDocument(doc).placeholders()
    assert doc.sections[0].header.is_linked_to_previous is True


# ---------------------------------------------------------------------------
# Text injection
# ---------------------------------------------------------------------------


def test_set_value_splices_runs_and_keeps_first_run_format() -> None:
    doc = Document()
    paragraph = _paragraph(doc, "Dear ${user:", "name}", "!")
    paragraph.runs[0].bold = True

    count = TemplateDocument(doc).set_value("user:name", "Siti")

    assert count == 1
    assert paragraph.text == "Dear Siti!"
    assert paragraph.runs[0].text == "Dear Siti"
    assert paragraph.runs[0].bold is True
    assert paragraph.runs[1].text == ""


def test_set_value_token_spanning_three_runs() -> None:
    doc = Document()
    paragraph = _paragraph(doc, "A${mo", "ney:to", "tal}B")

    assert TemplateDocument(doc).set_value("${money:total}", "Rp 10,00") == 1
    assert paragraph.text == "ARp 10,00B"


def test_set_value_every_occurrence() -> None:
    doc = Document()
    first = _paragraph(doc, "${a} and ${a}")
    second = _paragraph(doc, "again ${", "a}")

    assert TemplateDocument(doc).set_value("a", "X") == 3
    assert first.text == "X and X"
    assert second.text == "again X"


def test_set_value_counts_merged_cell_once() -> None:
    doc = Document()
    table = doc.add_table(rows=1, cols=2)
    merged = table.cell(0, 0).merge(table.cell(0, 1))
    merged.text = "${title}"

    assert TemplateDocument(doc).set_value("title", "Invoice") == 1
    assert table.cell(0, 0).text == "Invoice"


def test_set_value_in_header() -> None:
    doc = Document()
    header = doc.sections[0].header
    header.is_linked_to_previous = False
    paragraph = header.add_paragraph("${site:name}")

    assert TemplateDocument(doc).set_value("site:name", "Acme") == 1
    assert paragraph.text == "Acme"


# ---------------------------------------------------------------------------
# Image injection
# ---------------------------------------------------------------------------


def test_set_image_inline_picture_with_aspect_fit(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png", (40, 20))
    doc = Document()
    paragraph = _paragraph(doc, "Logo: ${image:logo} end")
    asset = ImageAsset(source_path=str(logo), width=100, height=100, horizontal_align=HAlign.CENTER)

    count = TemplateDocument(doc).set_image("image:logo", asset)

    assert count == 1
    assert paragraph.text == "Logo:  end"
    assert _drawings(paragraph) == 1
    assert [run.text for run in paragraph.runs] == ["Logo: ", "", " end"]
    shape = doc.inline_shapes[0]
    assert shape.width == Emu(100 * EMU_PER_PIXEL)
    assert shape.height == Emu(50 * EMU_PER_PIXEL)
    assert paragraph.alignment == WD_ALIGN_PARAGRAPH.CENTER


def test_set_image_exact_size_without_aspect(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png", (40, 20))
    doc = Document()
    _paragraph(doc, "${image:", "logo:60:30}")
    asset = ImageAsset(source_path=str(logo), width=60, height=30, preserve_aspect=False)

    assert TemplateDocument(doc).set_image("image:logo:60:30", asset) == 1
    shape = doc.inline_shapes[0]
    assert (shape.width, shape.height) == (Emu(60 * EMU_PER_PIXEL), Emu(30 * EMU_PER_PIXEL))


def test_set_image_cell_vertical_alignment(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png")
    doc = Document()
    table = doc.add_table(rows=1, cols=1)
    table.cell(0, 0).text = "${image:logo}"
    asset = ImageAsset(
        source_path=str(logo),
        width=50,
        height=50,
        horizontal_align=HAlign.RIGHT,
        vertical_align=VAlign.MIDDLE,
    )

    assert TemplateDocument(doc).set_image("image:logo", asset) == 1
    cell = table.cell(0, 0)
    assert cell.vertical_alignment == WD_CELL_VERTICAL_ALIGNMENT.CENTER
    assert cell.paragraphs[0].alignment == WD_ALIGN_PARAGRAPH.RIGHT


def test_set_image_keeps_template_alignment_when_unset(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "qr.png", (100, 100))
    doc = Document()
    paragraph = _paragraph(doc, "${qrcode:p}")
    paragraph.alignment = WD_ALIGN_PARAGRAPH.RIGHT

    TemplateDocument(doc).set_image("qrcode:p", ImageAsset(source_path=str(logo), width=100, height=100))

    assert paragraph.alignment == WD_ALIGN_PARAGRAPH.RIGHT


def test_set_image_unreadable_file_leaves_token(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.png"
    bogus.write_text("definitely not an image")
    doc = Document()
    paragraph = _paragraph(doc, "${image:logo}")

    count = TemplateDocument(doc).set_image("image:logo", ImageAsset(source_path=str(bogus), width=10, height=10))

    assert count == 0
    assert paragraph.text == "${image:logo}"


# ---------------------------------------------------------------------------
# apply / open / save
# ---------------------------------------------------------------------------


def test_apply_dispatches_by_value_type(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png")
    doc = Document()
    text_p = _paragraph(doc, "${company} owes ${money:total}")
    image_p = _paragraph(doc, "${image:logo}")
    literal_p = _paragraph(doc, "${foobar:x} ${flag}")

    count = TemplateDocument(doc).apply(
        {
            "company": "PT Maju",
            "money:total": "Rp 5.000,00",
            "image:logo": ImageAsset(source_path=str(logo), width=20, height=20),
            "not_in_document": "ignored",
            "flag": True,
        }
    )

    assert count == 3
    assert text_p.text == "PT Maju owes Rp 5.000,00"
    assert _drawings(image_p) == 1
    assert literal_p.text == "${foobar:x} ${flag}"


def test_apply_never_injects_raw_image_sources() -> None:
    doc = Document()
    image_p = _paragraph(doc, "${image:logo}")
    qr_p = _paragraph(doc, "${qrcode:p}")
    failed_p = _paragraph(doc, "${qrcode:q}")

    count = TemplateDocument(doc).apply(
        {"image:logo": "/srv/missing.png", "qrcode:p": "https://example.com", "qrcode:q": "[QR Code Error]"}
    )

    assert count == 1
    assert image_p.text == "${image:logo}"
    assert qr_p.text == "${qrcode:p}"
    assert failed_p.text == "[QR Code Error]"


def test_open_save_roundtrip(tmp_path: Path) -> None:
    source = tmp_path / "template.docx"
    doc = Document()
    _paragraph(doc, "Hello ${name}")
    doc.save(source)

    handle = TemplateDocument.open(source)
    handle.set_value("name", "World")
    output = handle.save(tmp_path / "out.docx")

    assert TemplateDocument.open(output).text() == "Hello World"


def test_open_rejects_non_docx(tmp_path: Path) -> None:
    bad = tmp_path / "bad.docx"
    bad.write_bytes(b"not a zip archive")

    with pytest.raises(TemplateLoadFailed) as exc_info:
        TemplateDocument.open(bad)
    assert exc_info.value.code == "template_load_failed"

    with pytest.raises(TemplateLoadFailed):
        TemplateDocument.open(tmp_path / "missing.docx")
