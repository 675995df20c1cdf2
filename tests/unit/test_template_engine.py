"""Unit tests for TemplateEngine.process.

Covers:
  1. The document decides which tokens are resolved; unsupported stay out.
  2. Caller map is copied and ``${key}`` keys are normalized.
  3. Kind order and threading: bare and sized image/qrcode tokens coexist.
  4. QR cache reuse across process() calls (same path, unchanged mtime).
  5. Idempotency on the engine's own output.
  6. Per-field failures degrade without raising.
"""

from datetime import datetime
from pathlib import Path

from docx import Document
from PIL import Image

from app.config import DocGenSettings
from cache.asset_cache import AssetCache
from engine.document import TemplateDocument
from engine.template import TemplateEngine, normalize_data_map
from models.placeholder import PlaceholderKind
from models.resolution import ImageAsset, ResolverEnv, SiteInfo, UserInfo


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _TokenDocument:
    """Minimal stand-in exposing only placeholders()."""

    def __init__(self, *tokens: str) -> None:
        self._tokens = list(tokens)

    def placeholders(self) -> list[str]:
        return self._tokens


class _EchoResolver:
    kind = PlaceholderKind.DATE

    def __init__(self) -> None:
        self.calls: list[str] = []

    def resolve(self, descriptor, data_map, env):
        self.calls.append(descriptor.raw_token)
        return f"echo:{descriptor.raw_token}"


def _engine(tmp_path: Path) -> TemplateEngine:
    env = ResolverEnv(
        user=UserInfo(display_name="Siti Rahma", email="siti@example.com"),
        site=SiteInfo(name="Acme Docs"),
        clock=lambda: datetime(2024, 6, 1, 9, 30),
        settings=DocGenSettings(cache_dir=tmp_path / "qrcache"),
    )
    return TemplateEngine(env)


def _write_png(path: Path) -> Path:
    Image.new("RGB", (30, 30), (0, 0, 0)).save(path, format="PNG")
    return path


# ---------------------------------------------------------------------------
# Token selection and normalization
# ---------------------------------------------------------------------------


def test_only_document_tokens_are_resolved(tmp_path: Path) -> None:
    engine = _engine(tmp_path)
    values = engine.process(_TokenDocument("user:name", "foobar:x", "company"), {"company": "PT Maju"})

    assert values["user:name"] == "Siti Rahma"
    assert values["company"] == "PT Maju"
    assert "foobar:x" not in values
    assert "site:name" not in values


def test_caller_map_is_copied_and_normalized(tmp_path: Path) -> None:
    data = {"${company}": "PT Maju", "total": 1500}
    values = _engine(tmp_path).process(_TokenDocument("company", "terbilang:total"), data)

    assert values["company"] == "PT Maju"
    assert values["terbilang:total"] == "seribu lima ratus"
    assert data == {"${company}": "PT Maju", "total": 1500}
    assert normalize_data_map({"${a}": 1, "b": 2}) == {"a": 1, "b": 2}


def test_caller_supplied_token_value_wins(tmp_path: Path) -> None:
    values = _engine(tmp_path).process(
        _TokenDocument("money:total"),
        {"total": 10, "money:total": "precomputed"},
    )
    assert values["money:total"] == "precomputed"


# ---------------------------------------------------------------------------
# Images and QR codes
# ---------------------------------------------------------------------------


def test_bare_and_sized_image_tokens_coexist(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png")
    values = _engine(tmp_path).process(
        _TokenDocument("image:logo", "image:logo:50:40"),
        {"image:logo": str(logo)},
    )

    bare = values["image:logo"]
    sized = values["image:logo:50:40"]
    assert isinstance(bare, ImageAsset) and isinstance(sized, ImageAsset)
    assert (bare.width, bare.height) == (100, 100)
    assert (sized.width, sized.height) == (50, 40)
    assert bare.source_path == sized.source_path


def test_missing_image_is_left_out(tmp_path: Path) -> None:
    values = _engine(tmp_path).process(
        _TokenDocument("image:logo:50:50:center:middle"),
        {"image:logo": str(tmp_path / "missing.png")},
    )
    assert "image:logo:50:50:center:middle" not in values


def test_qrcode_reuses_cached_file(tmp_path: Path) -> None:
    engine = _engine(tmp_path)
    document = _TokenDocument("qrcode:payload:100:M")
    data = {"qrcode:payload": "https://example.com"}

    first = engine.process(document, data)["qrcode:payload:100:M"]
    path = Path(first.source_path)
    mtime = path.stat().st_mtime_ns
    second = engine.process(document, data)["qrcode:payload:100:M"]

    assert second.source_path == first.source_path
    assert path.stat().st_mtime_ns == mtime
    assert path.parent == tmp_path / "qrcache"


def test_qrcode_shared_cache_between_engines(tmp_path: Path) -> None:
    document = _TokenDocument("qrcode:payload")
    data = {"qrcode:payload": "INV-2024-001"}

    first = _engine(tmp_path).process(document, data)["qrcode:payload"]
    second = _engine(tmp_path).process(document, data)["qrcode:payload"]

    assert first.source_path == second.source_path
    assert first.payload == "INV-2024-001"


def test_bare_and_sized_qrcode_tokens_encode_same_payload(tmp_path: Path) -> None:
    values = _engine(tmp_path).process(
        _TokenDocument("qrcode:p", "qrcode:p:200:H"),
        {"qrcode:p": "hello"},
    )
    assert values["qrcode:p"].payload == "hello"
    assert values["qrcode:p:200:H"].payload == "hello"
    assert values["qrcode:p:200:H"].width == 200


# ---------------------------------------------------------------------------
# Idempotency and degradation
# ---------------------------------------------------------------------------


def test_process_is_idempotent(tmp_path: Path) -> None:
    logo = _write_png(tmp_path / "logo.png")
    engine = _engine(tmp_path)
    document = _TokenDocument(
        "date:issue_date:Y-m-d",
        "image:logo:20:20",
        "qrcode:p",
        "money:total",
        "user:email",
    )
    data = {"issue_date": "2024-03-05", "image:logo": str(logo), "qrcode:p": "x", "total": 99}

    once = engine.process(document, data)
    twice = engine.process(document, once)

    assert twice == once
    assert once["date:issue_date:Y-m-d"] == "2024-03-05"
    assert once["money:total"] == "Rp 99,00"


def test_bad_date_resolves_to_empty(tmp_path: Path) -> None:
    values = _engine(tmp_path).process(
        _TokenDocument("date:issue_date:Y-m-d"),
        {"issue_date": "not-a-date"},
    )
    assert values["date:issue_date:Y-m-d"] == ""


def test_custom_registry_and_order(tmp_path: Path) -> None:
    echo = _EchoResolver()
    engine = TemplateEngine(ResolverEnv(), registry={PlaceholderKind.DATE: echo})

    values = engine.process(_TokenDocument("date:a", "user:name", "date:b", "date:a"), {})

    assert echo.calls == ["date:a", "date:b"]
    assert values == {"date:a": "echo:date:a", "date:b": "echo:date:b"}


def test_explicit_cache_is_used(tmp_path: Path) -> None:
    cache_dir = tmp_path / "explicit"
    cache_dir.mkdir()
    engine = TemplateEngine(ResolverEnv(), cache=AssetCache(cache_dir))

    values = engine.process(_TokenDocument("qrcode:p"), {"qrcode:p": "hello"})

    assert Path(values["qrcode:p"].source_path).parent == cache_dir


def test_process_real_document(tmp_path: Path) -> None:
    doc = Document()
    paragraph = doc.add_paragraph()
    paragraph.add_run("Kepada ${gelar:nama:Dr.:S.H.}, total ${money:")
    paragraph.add_run("total} (${terbilang:total} rupiah) ${foobar:x}")
    handle = TemplateDocument(doc)

    values = _engine(tmp_path).process(handle, {"nama": "Budi", "total": 2500000})
    handle.apply(values)

    assert paragraph.text == (
        "Kepada Dr. Budi, S.H., total Rp 2.500.000,00 (dua juta lima ratus ribu rupiah) ${foobar:x}"
    )
