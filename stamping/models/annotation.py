from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.common.errors import InvalidAnnotation
from stamping.logic.coordinate_mapper import coerce_number, coerce_page_number

DEFAULT_FONT_SIZE = 12.0


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    """First present key wins; accepts both the stored column names and short aliases."""
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True, slots=True)
class TextField:
    """
    Text placed by a recipient.

    Geometry is in editor space (points, origin top-left, 1-based page numbers).
    """
    page_number: int
    x: float
    y: float
    width: float
    height: float
    text_content: str
    font_size: float = DEFAULT_FONT_SIZE
    recipient_id: Optional[int] = None
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, recipient_id: Optional[int] = None) -> "TextField":
        """Build a field from a transport payload; raises InvalidAnnotation on bad values."""
        text = _pick(data, "text_content", "text")
        if text is None:
            raise InvalidAnnotation("text field without text_content")
        font_size = _pick(data, "font_size")
        return cls(
            page_number=coerce_page_number(_pick(data, "page_number", "page")),
            x=coerce_number(_pick(data, "x_coordinate", "x"), field="x"),
            y=coerce_number(_pick(data, "y_coordinate", "y"), field="y"),
            width=coerce_number(_pick(data, "width"), field="width"),
            height=coerce_number(_pick(data, "height"), field="height"),
            text_content=str(text),
            font_size=DEFAULT_FONT_SIZE if font_size is None else coerce_number(font_size, field="font_size"),
            recipient_id=recipient_id,
        )


@dataclass(frozen=True, slots=True)
class SignatureField:
    """Signature image placed by a recipient; ``image_key`` points into the blob store."""
    page_number: int
    x: float
    y: float
    width: float
    height: float
    image_key: str
    recipient_id: Optional[int] = None
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, recipient_id: Optional[int] = None) -> "SignatureField":
        key = _pick(data, "signature_image_path", "image_key")
        if not isinstance(key, str) or not key.strip():
            raise InvalidAnnotation("signature without image reference")
        return cls(
            page_number=coerce_page_number(_pick(data, "page_number", "page")),
            x=coerce_number(_pick(data, "x_coordinate", "x"), field="x"),
            y=coerce_number(_pick(data, "y_coordinate", "y"), field="y"),
            width=coerce_number(_pick(data, "width"), field="width"),
            height=coerce_number(_pick(data, "height"), field="height"),
            image_key=key.strip(),
            recipient_id=recipient_id,
        )


@dataclass(frozen=True, slots=True)
class AnnotationSet:
    """Text fields and signatures of one kind (draft or final)."""
    text_fields: tuple[TextField, ...] = ()
    signatures: tuple[SignatureField, ...] = ()

    def __len__(self) -> int:
        return len(self.text_fields) + len(self.signatures)
