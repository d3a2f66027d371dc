from __future__ import annotations
from typing import NewType

DocumentId = NewType("DocumentId", int)
UserId = NewType("UserId", int)
