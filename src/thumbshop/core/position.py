from __future__ import annotations

import re
from typing import Optional

from thumbshop.core.models import Dimensions, Point

ANCHOR_CODES = ("c", "tl", "t", "tr", "l", "r", "bl", "b", "br")

ANCHOR_NAMES = {
    "center": "c",
    "centre": "c",
    "top-left": "tl",
    "top": "t",
    "top-right": "tr",
    "left": "l",
    "right": "r",
    "bottom-left": "bl",
    "bottom": "b",
    "bottom-right": "br",
}

_OFFSET_RE = re.compile(r"^\s*(-?\d+)\s*x\s*(-?\d+)\s*$")


def normalize_anchor(anchor: Optional[str]) -> str:
    """Map long anchor names and '1' to their short codes; other strings pass through lower-cased."""
    if anchor is None:
        return "c"
    a = str(anchor).strip().lower()
    if a in ("", "1"):
        return "c"
    return ANCHOR_NAMES.get(a, a)


def parse_offset(anchor: str) -> Optional[tuple[int, int]]:
    """Return (x, y) for a literal 'XxY' anchor, else None."""
    m = _OFFSET_RE.match(anchor)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def _axis(code: str, container: int, inner: int) -> int:
    if code == "near":
        return 0
    if code == "far":
        return container - inner
    return int((container - inner) / 2)  # truncates toward zero


_NAMED = {
    # code: (x placement, y placement)
    "c": ("mid", "mid"),
    "tl": ("near", "near"),
    "t": ("mid", "near"),
    "tr": ("far", "near"),
    "l": ("near", "mid"),
    "r": ("far", "mid"),
    "bl": ("near", "far"),
    "b": ("mid", "far"),
    "br": ("far", "far"),
}


def resolve_position(anchor: Optional[str], container: Dimensions, inner: Dimensions) -> Point:
    """
    Top-left point that places `inner` within `container` according to `anchor`.

    Named anchors put each axis flush to an edge or centered. A literal "XxY"
    offset is used as given unless the inner box would run past the container
    edge, in which case it is pulled back to the edge. Unknown anchors center.
    Negative results (inner larger than container) clamp to 0.
    """
    code = normalize_anchor(anchor)
    offset = parse_offset(code)
    if offset is not None:
        coords = []
        for value, c, i in ((offset[0], container.width, inner.width), (offset[1], container.height, inner.height)):
            if i + value > c:
                value = c - i
            coords.append(value)
        x, y = coords
    else:
        px, py = _NAMED.get(code, _NAMED["c"])
        x = _axis(px, container.width, inner.width)
        y = _axis(py, container.height, inner.height)

    return Point(x=max(0, x), y=max(0, y))
