"""StampingEngine: overlay rendering onto a base PDF held in the blob store."""
from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from core.common.errors import ArtifactMissing, UnsupportedImageFormat
from stamping.logic.pdf_stamper import StampingEngine, load_signature_image
from stamping.models.annotation import SignatureField, TextField


def _text(page: int, text: str, x: float = 72, y: float = 200) -> TextField:
    return TextField(page_number=page, x=x, y=y, width=200, height=20, text_content=text, recipient_id=1)


def _sig(page: int, key: str) -> SignatureField:
    return SignatureField(page_number=page, x=300, y=600, width=120, height=40, image_key=key, recipient_id=1)


def _pages_text(pdf: bytes) -> list[str]:
    return [p.extract_text() or "" for p in PdfReader(BytesIO(pdf)).pages]


@pytest.fixture
def engine(blobs) -> StampingEngine:
    return StampingEngine(blobs)


@pytest.fixture
def base_key(blobs, make_pdf) -> str:
    return blobs.write_bytes("originals/base.pdf", make_pdf(3))


def test_text_is_drawn_on_its_page_only(engine, base_key) -> None:
    out = engine.render(base_key, [_text(2, "Signed by Alice")], [])
    texts = _pages_text(out)
    assert len(texts) == 3
    assert "Signed by Alice" in texts[1]
    assert "Signed by Alice" not in texts[0]
    assert "Signed by Alice" not in texts[2]


def test_out_of_range_pages_are_skipped(engine, base_key, blobs) -> None:
    out = engine.render(base_key, [_text(0, "zero"), _text(9, "nine")], [_sig(4, "signatures/none.png")])
    assert _pages_text(out) == _pages_text(blobs.read_bytes(base_key))


@pytest.mark.parametrize("fixture_name", ["png_bytes", "jpeg_bytes"])
def test_png_and_jpeg_signatures_are_embedded(engine, base_key, blobs, request, fixture_name) -> None:
    key = blobs.write_bytes("signatures/sig.img", request.getfixturevalue(fixture_name))
    out = engine.render(base_key, [], [_sig(1, key)])
    page = PdfReader(BytesIO(out)).pages[0]
    assert "/XObject" in page["/Resources"]


def test_unsupported_image_aborts_without_output(engine, base_key, blobs) -> None:
    key = blobs.write_bytes("signatures/sig.gif", b"GIF89a not really an image")
    with pytest.raises(UnsupportedImageFormat):
        engine.stamp(base_key, [_text(1, "Hello")], [_sig(1, key)])
    signed_dir = blobs.root / "signed"
    assert not signed_dir.exists() or not any(signed_dir.iterdir())


def test_missing_base_raises(engine) -> None:
    with pytest.raises(ArtifactMissing):
        engine.render("originals/missing.pdf", [_text(1, "x")], [])


def test_missing_signature_image_raises(engine, base_key) -> None:
    with pytest.raises(ArtifactMissing):
        engine.render(base_key, [], [_sig(1, "signatures/missing.png")])


def test_stamp_writes_new_blob_and_keeps_base(engine, base_key, blobs, png_bytes) -> None:
    before = blobs.read_bytes(base_key)
    sig_key = blobs.write_bytes("signatures/sig.png", png_bytes)
    key = engine.stamp(base_key, [_text(1, "Approved")], [_sig(1, sig_key)], name_prefix="signed-1")
    assert key != base_key
    assert key.startswith("signed/signed-1-") and key.endswith(".pdf")
    assert blobs.read_bytes(base_key) == before
    assert "Approved" in _pages_text(blobs.read_bytes(key))[0]


def test_same_input_renders_same_text(engine, base_key) -> None:
    fields = [_text(1, "one"), _text(1, "two", y=300)]
    assert _pages_text(engine.render(base_key, fields, [])) == _pages_text(engine.render(base_key, fields, []))


def test_load_signature_image_rejects_garbage() -> None:
    with pytest.raises(UnsupportedImageFormat):
        load_signature_image(b"\x00\x01\x02")


def test_load_signature_image_falls_back_to_jpeg(jpeg_bytes) -> None:
    assert load_signature_image(jpeg_bytes).mode == "RGB"
