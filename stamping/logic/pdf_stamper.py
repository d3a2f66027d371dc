from __future__ import annotations

import logging
from collections import defaultdict
from io import BytesIO
from typing import Dict, Iterable, List, Sequence, Tuple

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.common.errors import ArtifactMissing, UnsupportedImageFormat
from core.contracts.blob_store import IBlobStore
from stamping.logic.coordinate_mapper import to_pdf_space
from stamping.models.annotation import SignatureField, TextField

logger = logging.getLogger(__name__)

TEXT_FONT = "Helvetica"
# Embedding order for signature images: first choice, then fallback.
IMAGE_FORMATS: Tuple[str, ...] = ("PNG", "JPEG")


def load_signature_image(data: bytes, *, source: str = "") -> Image.Image:
    """
    Decode a signature image, trying PNG first and JPEG second.

    Raises:
        UnsupportedImageFormat: if the bytes are neither
    """
    for fmt in IMAGE_FORMATS:
        try:
            img = Image.open(BytesIO(data), formats=[fmt])
            img.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            continue
        return img.convert("RGBA") if fmt == "PNG" else img.convert("RGB")
    raise UnsupportedImageFormat(f"signature image is neither PNG nor JPEG: {source}")


class StampingEngine:
    """
    Burns final text fields and signature images into a copy of a base PDF.

    The base blob is only read. All rendering happens in memory; a new blob is
    written only after every annotation rendered successfully, so a failing
    annotation never leaves partial output behind.
    """

    def __init__(self, blob_store: IBlobStore, *, output_area: str = "signed") -> None:
        self._blobs = blob_store
        self._output_area = output_area

    # ------------------------------------------------------------------ #
    #  Public API                                                        #
    # ------------------------------------------------------------------ #
    def stamp(
        self,
        base_key: str,
        text_fields: Sequence[TextField],
        signatures: Sequence[SignatureField],
        *,
        name_prefix: str = "signed",
    ) -> str:
        """Render and persist; returns the key of the new artifact."""
        pdf = self.render(base_key, text_fields, signatures)
        return self.persist(pdf, name_prefix=name_prefix)

    def persist(self, pdf: bytes, *, name_prefix: str = "signed") -> str:
        key = self._blobs.new_key(self._output_area, prefix=name_prefix, suffix=".pdf")
        self._blobs.write_bytes(key, pdf)
        logger.info("Stamped PDF written: %s (%d bytes)", key, len(pdf))
        return key

    def render(
        self,
        base_key: str,
        text_fields: Sequence[TextField],
        signatures: Sequence[SignatureField],
    ) -> bytes:
        """Return the bytes of the base PDF with all in-range annotations drawn."""
        base = self._blobs.read_bytes(base_key)
        try:
            reader = PdfReader(BytesIO(base))
            page_count = len(reader.pages)
        except PdfReadError as ex:
            raise ArtifactMissing(f"base artifact is not a readable PDF: {base_key}: {ex}") from ex

        texts_by_page = self._in_range(text_fields, page_count)
        sigs_by_page = self._in_range(signatures, page_count)
        skipped = len(text_fields) + len(signatures) - sum(
            len(v) for v in (*texts_by_page.values(), *sigs_by_page.values())
        )
        if skipped:
            logger.debug("Skipping %d annotation(s) outside pages 1..%d of %s", skipped, page_count, base_key)

        # Decode every image before touching any page: one bad image aborts the whole run.
        images: Dict[str, Image.Image] = {}
        for page_sigs in sigs_by_page.values():
            for sig in page_sigs:
                if sig.image_key not in images:
                    images[sig.image_key] = load_signature_image(
                        self._blobs.read_bytes(sig.image_key), source=sig.image_key
                    )

        writer = PdfWriter()
        for index, page in enumerate(reader.pages, start=1):
            target = writer.add_page(page)
            page_texts = texts_by_page.get(index, [])
            page_sigs = sigs_by_page.get(index, [])
            if page_texts or page_sigs:
                overlay = self._make_overlay(target, page_texts, page_sigs, images)
                target.merge_page(PdfReader(BytesIO(overlay)).pages[0])

        out = BytesIO()
        writer.write(out)
        return out.getvalue()

    # ------------------------------------------------------------------ #
    #  Helpers                                                           #
    # ------------------------------------------------------------------ #
    @staticmethod
    def _in_range(items: Iterable, page_count: int) -> Dict[int, List]:
        """Group annotations by 1-based page, dropping stale page references."""
        grouped: Dict[int, List] = defaultdict(list)
        for item in items:
            if 0 < item.page_number <= page_count:
                grouped[item.page_number].append(item)
        return grouped

    @staticmethod
    def _make_overlay(
        page,
        texts: Sequence[TextField],
        signatures: Sequence[SignatureField],
        images: Dict[str, Image.Image],
    ) -> bytes:
        """
        Create a one-page overlay the size of *page* holding:
          • every text field (Helvetica, black, stored font size)
          • every signature image scaled to its stored box
        """
        box = page.mediabox
        left, bottom = float(box.left), float(box.bottom)
        page_w, page_h = float(box.width), float(box.height)

        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h), invariant=1)

        for field in texts:
            x, y = to_pdf_space(page_h, field.x, field.y, field.width, field.height)
            c.setFillColorRGB(0, 0, 0)
            c.setFont(TEXT_FONT, field.font_size)
            c.drawString(left + x, bottom + y, field.text_content)

        for sig in signatures:
            x, y = to_pdf_space(page_h, sig.x, sig.y, sig.width, sig.height)
            img = images[sig.image_key]
            c.drawImage(
                ImageReader(img),
                left + x,
                bottom + y,
                width=sig.width,
                height=sig.height,
                mask="auto" if img.mode == "RGBA" else None,
            )

        c.save()
        return buf.getvalue()
