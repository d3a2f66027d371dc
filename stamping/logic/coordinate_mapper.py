"""
Coordinate mapping between the editor's page space and PDF user space.

The editor places fields with the origin at the *top-left* of a page, y growing
downwards. PDF user space has its origin at the *bottom-left*, y growing
upwards. For a page of height ``H`` a box ``(x, y, width, height)`` therefore
starts at ``(x, H - y - height)``. The mapping is its own inverse.
"""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Tuple

from core.common.errors import InvalidAnnotation


def coerce_number(value: Any, *, field: str = "value") -> float:
    """
    Coerce a stored coordinate/size to ``float``.

    Numeric strings (``"12.5"``) and ``Decimal`` values are accepted; booleans,
    ``None``, non-numeric strings and non-finite numbers are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAnnotation(f"{field} is not numeric: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidAnnotation(f"{field} is not numeric: {value!r}") from None
    else:
        raise InvalidAnnotation(f"{field} is not numeric: {value!r}")
    if not math.isfinite(number):
        raise InvalidAnnotation(f"{field} is not finite: {value!r}")
    return number


def coerce_page_number(value: Any) -> int:
    """Coerce a page number; it must be integral (``"2"`` and ``2.0`` are fine)."""
    number = coerce_number(value, field="page_number")
    if not number.is_integer():
        raise InvalidAnnotation(f"page_number is not an integer: {value!r}")
    return int(number)


def to_pdf_space(page_height: Any, x: Any, y: Any, width: Any, height: Any) -> Tuple[float, float]:
    """Return the bottom-left origin ``(x, H - y - height)`` of a top-left placed box."""
    h_page = coerce_number(page_height, field="page_height")
    nx = coerce_number(x, field="x")
    ny = coerce_number(y, field="y")
    coerce_number(width, field="width")
    nh = coerce_number(height, field="height")
    return nx, h_page - ny - nh


def from_pdf_space(page_height: Any, x: Any, y: Any, width: Any, height: Any) -> Tuple[float, float]:
    """Inverse of :func:`to_pdf_space` (the reflection is an involution)."""
    return to_pdf_space(page_height, x, y, width, height)
