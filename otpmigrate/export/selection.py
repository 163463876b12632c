"""Selection preconditions shared by all exporters."""

from __future__ import annotations

from typing import Sequence

from ..errors import EmptySelection
from ..models import Account


def require_selection(selection: Sequence[Account]) -> None:
    if not selection:
        raise EmptySelection()
