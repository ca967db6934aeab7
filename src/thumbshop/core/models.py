from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def pixels(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    """An origin plus a size, used for both crop and paste placement."""
    origin: Point
    size: Dimensions

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower), the form Pillow's crop() expects."""
        return (
            self.origin.x,
            self.origin.y,
            self.origin.x + self.size.width,
            self.origin.y + self.size.height,
        )


@dataclass(frozen=True)
class Fill:
    """
    Background fill.

    color:
        Hex string without the leading '#', 3 or 6 digits.
    opacity:
        Percent, 0 (fully transparent) .. 100 (opaque).
    """
    color: str = "ffffff"
    opacity: int = 100

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        c = self.color
        if len(c) == 3:
            c = "".join(ch * 2 for ch in c)
        r, g, b = (int(c[i : i + 2], 16) for i in (0, 2, 4))
        return (r, g, b, int(round(255 * self.opacity / 100.0)))


@dataclass(frozen=True)
class ThumbOptions:
    """
    Normalized thumbnail options. None means "not supplied".

    sw, sh, sx, sy:
        Source crop size/offset. Values < 1 are fractions of the source,
        values >= 1 are pixels.
    w, h:
        Target box. wl/hl, wp/hp, ws/hs override them for landscape,
        portrait and square sources.
    scale:
        Uniform multiplier applied to the target box.
    aoe:
        Allow output enlargement beyond the source resolution.
    zc, far:
        Zoom-crop / fit-all-remaining anchor code, or None when off.
    bg:
        Background fill.
    q, qmax:
        Output quality and the ceiling for the undersized-input boost.
    f:
        Output format override (file extension, e.g. "png").
    fltr:
        Post filters, e.g. ("usm",).
    """
    sw: Optional[float] = None
    sh: Optional[float] = None
    sx: Optional[float] = None
    sy: Optional[float] = None
    w: Optional[float] = None
    h: Optional[float] = None
    wl: Optional[float] = None
    hl: Optional[float] = None
    wp: Optional[float] = None
    hp: Optional[float] = None
    ws: Optional[float] = None
    hs: Optional[float] = None
    scale: Optional[float] = None
    aoe: bool = False
    zc: Optional[str] = None
    far: Optional[str] = None
    bg: Optional[Fill] = None
    q: Optional[int] = None
    qmax: Optional[int] = None
    f: Optional[str] = None
    fltr: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        """Supplied options only, in declaration order."""
        out: dict[str, Any] = {}
        for fd in fields(self):
            value = getattr(self, fd.name)
            if value is None or value is False or value == ():
                continue
            if isinstance(value, Fill):
                value = f"{value.color}/{value.opacity}"
            out[fd.name] = value
        return out


@dataclass(frozen=True)
class TargetDims:
    """Requested output size before aspect fitting. Values may be fractional."""
    width: float
    height: float
    both_specified: bool

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class Prescale:
    """Reduced decode: decode to `box`, then cut `crop` out of it."""
    box: Dimensions
    crop: Rect
    ratio: float


@dataclass(frozen=True)
class BackgroundPlan:
    canvas: Dimensions
    fill: Fill
    paste_at: Point


@dataclass(frozen=True)
class GeometryPlan:
    """
    Everything the orchestrator needs to replay against a backend.

    fitted is the box computed from the options; resize_box is that box when a
    resize is actually performed, else None and the image keeps its effective
    source size (working).
    requested holds the scaled request before any enlargement cap; it is only
    set when a scale factor was supplied without aoe.
    zoom_cropping is True whenever zc applied, even if zoom_crop is None
    because the aspect ratios already matched.
    """
    source: Dimensions
    effective_source: Dimensions
    output: Dimensions
    working: Dimensions
    fitted: Dimensions
    scaled: bool
    source_crop: Optional[Rect] = None
    resize_box: Optional[Dimensions] = None
    zoom_crop: Optional[Rect] = None
    far_box: Optional[Dimensions] = None
    far_point: Optional[Point] = None
    zoom_cropping: bool = False
    prescale: Optional[Prescale] = None
    background: Optional[BackgroundPlan] = None
    requested: Optional[Tuple[float, float]] = None
    scale: Optional[float] = None
