"""Coordinate mapping and annotation payload coercion."""
from __future__ import annotations

import math
from decimal import Decimal

import pytest

from core.common.errors import InvalidAnnotation
from stamping.logic.coordinate_mapper import coerce_number, coerce_page_number, from_pdf_space, to_pdf_space
from stamping.models.annotation import SignatureField, TextField


def test_top_left_box_maps_to_bottom_left_origin() -> None:
    assert to_pdf_space(792, 100, 50, 200, 30) == (100.0, 712.0)


def test_numeric_strings_are_coerced() -> None:
    assert to_pdf_space("792", "100", "50.5", "200", "30") == (100.0, 711.5)
    assert to_pdf_space(Decimal("842"), 0, 0, 10, 10) == (0.0, 832.0)


@pytest.mark.parametrize("page_height", [792, 841.89, 612])
@pytest.mark.parametrize("box", [(0, 0, 10, 10), (72.5, 100.25, 150, 40), (300, 700, 12, 60)])
def test_mapping_is_its_own_inverse(page_height, box) -> None:
    x, y, w, h = box
    px, py = to_pdf_space(page_height, x, y, w, h)
    bx, by = from_pdf_space(page_height, px, py, w, h)
    assert bx == pytest.approx(x)
    assert by == pytest.approx(y)


@pytest.mark.parametrize("bad", [None, True, "abc", "", float("nan"), math.inf, [1], object()])
def test_non_numeric_values_are_rejected(bad) -> None:
    with pytest.raises(InvalidAnnotation):
        coerce_number(bad, field="x")


def test_non_numeric_geometry_fails_mapping() -> None:
    with pytest.raises(InvalidAnnotation):
        to_pdf_space(792, "left", 0, 10, 10)


def test_page_number_must_be_integral() -> None:
    assert coerce_page_number("2") == 2
    assert coerce_page_number(3.0) == 3
    with pytest.raises(InvalidAnnotation):
        coerce_page_number(2.5)


def test_text_field_from_payload_accepts_column_names_and_aliases() -> None:
    a = TextField.from_payload(
        {"page_number": "1", "x_coordinate": "10", "y_coordinate": 20, "width": 100, "height": "15",
         "text_content": "Approved", "font_size": "14"},
        recipient_id=7,
    )
    b = TextField.from_payload({"page": 1, "x": 10, "y": 20, "width": 100, "height": 15, "text": "Approved",
                                "font_size": 14}, recipient_id=7)
    assert a == b
    assert a.font_size == 14.0 and a.recipient_id == 7


def test_text_field_defaults_font_size() -> None:
    f = TextField.from_payload({"page": 1, "x": 0, "y": 0, "width": 1, "height": 1, "text": "x"})
    assert f.font_size == 12.0


def test_text_field_without_text_is_invalid() -> None:
    with pytest.raises(InvalidAnnotation):
        TextField.from_payload({"page": 1, "x": 0, "y": 0, "width": 1, "height": 1})


def test_signature_without_image_is_invalid() -> None:
    with pytest.raises(InvalidAnnotation):
        SignatureField.from_payload({"page": 1, "x": 0, "y": 0, "width": 1, "height": 1, "image_key": "  "})
