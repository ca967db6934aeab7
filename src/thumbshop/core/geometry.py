"""
Option-to-geometry resolution.

Each resolver is a pure function over ThumbOptions and Dimensions. Nothing in
here touches pixels or raises on odd input: out-of-range values are clamped.
plan_geometry() chains the resolvers into a single immutable GeometryPlan.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from thumbshop.core.models import (
    BackgroundPlan,
    Dimensions,
    Fill,
    GeometryPlan,
    Point,
    Prescale,
    Rect,
    TargetDims,
    ThumbOptions,
)
from thumbshop.core.position import resolve_position

PRESCALE_THRESHOLD = 0.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def pixel_length(value: float) -> int:
    """round_half_up() for a resolved image dimension, never below one pixel."""
    return max(1, round_half_up(value))


def orientation(aspect_ratio: float) -> str:
    """Classify an aspect ratio, rounded to 2 decimals, as landscape/portrait/square."""
    aspect = math.floor(aspect_ratio * 100 + 0.5) / 100
    if aspect > 1:
        return "landscape"
    if aspect < 1:
        return "portrait"
    return "square"


# ---------- source crop ----------

def _crop_size(value: Optional[float], full: int) -> int:
    if value is None or value > full:
        return full
    if value < 1:
        return max(1, round_half_up(full * value))
    return int(value)


def _crop_start(value: Optional[float], full: int, size: int) -> int:
    if value is None:
        return int((full - size) / 2)
    if value == 0:
        return 0
    start = round_half_up(full * value) if value < 1 else int(value)
    if start + size > full:
        start = full - size
    return start


def resolve_source_crop(options: ThumbOptions, source: Dimensions) -> Optional[Rect]:
    """Crop applied to the source before any scaling, or None when nothing would be cut."""
    if options.sw is None and options.sh is None:
        return None

    width = _crop_size(options.sw, source.width)
    height = _crop_size(options.sh, source.height)
    if width == source.width and height == source.height:
        return None

    x = _crop_start(options.sx, source.width, width)
    y = _crop_start(options.sy, source.height, height)
    return Rect(origin=Point(x, y), size=Dimensions(width, height))


# ---------- target dimensions + scale ----------

_OVERRIDES = {
    "landscape": ("wl", "hl"),
    "portrait": ("wp", "hp"),
    "square": ("ws", "hs"),
}


def resolve_target_dims(options: ThumbOptions, source: Dimensions) -> TargetDims:
    """
    Requested width/height for an (effective) source.

    Orientation-specific overrides win over plain w/h. A missing dimension is
    derived from the source aspect ratio; with neither, the source size is used.
    """
    width = options.w
    height = options.h

    wkey, hkey = _OVERRIDES[orientation(source.aspect_ratio)]
    if getattr(options, wkey) is not None:
        width = getattr(options, wkey)
    if getattr(options, hkey) is not None:
        height = getattr(options, hkey)

    both = True
    if width is None:
        if height is None:
            width, height = float(source.width), float(source.height)
        else:
            width = height * source.aspect_ratio
        both = False
    if height is None:
        height = width / source.aspect_ratio
        both = False

    return TargetDims(width=float(width), height=float(height), both_specified=both)


def apply_scale(
    options: ThumbOptions, target: TargetDims, source: Dimensions
) -> Tuple[TargetDims, Optional[float], Optional[Tuple[float, float]]]:
    """
    Multiply the target box by options.scale.

    Without aoe the factor is capped so the box never grows past the source,
    and collapses to 1 when the box is already at least source-sized on an
    axis. Returns (target, effective scale, uncapped request or None).
    """
    if options.scale is None:
        return target, None, None

    scale = options.scale
    requested = None
    if not options.aoe:
        h_scale = source.height / target.height
        w_scale = source.width / target.width
        requested = (target.width * scale, target.height * scale)
        scale = min(h_scale, w_scale, scale) if (h_scale > 1 and w_scale > 1) else 1.0

    scaled = TargetDims(
        width=target.width * scale,
        height=target.height * scale,
        both_specified=target.both_specified,
    )
    return scaled, scale, requested


# ---------- crop mode ----------

@dataclass(frozen=True)
class CropModeResult:
    """
    fitted:
        Box the image is resized to before any zoom crop (may exceed the
        source when it is not actually resized).
    scaled:
        True when a resize will be performed.
    working:
        Actual image size before the zoom crop.
    image:
        Image size after the zoom crop, before any background canvas.
    """
    fitted: Dimensions
    scaled: bool
    working: Dimensions
    image: Dimensions
    zoom_crop: Optional[Rect] = None
    far_box: Optional[Dimensions] = None
    far_point: Optional[Point] = None
    zoom_cropping: bool = False


def _is_scaled(fitted: Dimensions, source: Dimensions, aoe: bool) -> bool:
    return (fitted.width < source.width and fitted.height < source.height) or aoe


def _fit(options: ThumbOptions, target: TargetDims, source: Dimensions) -> CropModeResult:
    new_ar = target.aspect_ratio
    orig_ar = source.aspect_ratio
    width, height = target.width, target.height
    req_w, req_h = width, height

    if new_ar < orig_ar:
        if source.width < req_w and not options.aoe:
            width = req_w = float(source.width)
            req_h = width / new_ar
        height = width / orig_ar
    elif new_ar > orig_ar:
        if source.height < req_h and not options.aoe:
            height = req_h = float(source.height)
            req_w = height * new_ar
        width = height * orig_ar

    fitted = Dimensions(pixel_length(width), pixel_length(height))
    scaled = _is_scaled(fitted, source, options.aoe)
    image = fitted if scaled else source

    far_box = far_point = None
    if options.far is not None and target.both_specified:
        box = Dimensions(pixel_length(req_w), pixel_length(req_h))
        if box.width > fitted.width or box.height > fitted.height:
            far_box = box
            far_point = resolve_position(options.far, box, image)

    return CropModeResult(
        fitted=fitted,
        scaled=scaled,
        working=image,
        image=image,
        far_box=far_box,
        far_point=far_point,
    )


def _zoom_crop(options: ThumbOptions, target: TargetDims, source: Dimensions) -> CropModeResult:
    orig_ar = source.aspect_ratio
    width, height = target.width, target.height
    new_ar = width / height

    if not options.aoe:
        if width > source.width:
            height = source.width / new_ar
            width = float(source.width)
        if height > source.height:
            width = source.height * new_ar
            height = float(source.height)

    if height * orig_ar > width:  # horizontal crop
        work_w = pixel_length(height * orig_ar)
        width = pixel_length(width)
        work_h = height = pixel_length(height)
    elif width / orig_ar > height:  # vertical crop
        work_h = pixel_length(width / orig_ar)
        height = pixel_length(height)
        work_w = width = pixel_length(width)
    else:
        work_w = width = pixel_length(width)
        work_h = height = pixel_length(height)

    fitted = Dimensions(work_w, work_h)
    scaled = _is_scaled(fitted, source, options.aoe)
    working = fitted if scaled else source
    crop_size = Dimensions(min(width, working.width), min(height, working.height))
    zoom_crop = None
    if crop_size != working:
        start = resolve_position(options.zc, working, crop_size)
        zoom_crop = Rect(origin=start, size=crop_size)

    return CropModeResult(
        fitted=fitted,
        scaled=scaled,
        working=working,
        image=crop_size,
        zoom_cropping=True,
        zoom_crop=zoom_crop,
    )


def resolve_crop_mode(options: ThumbOptions, target: TargetDims, source: Dimensions) -> CropModeResult:
    """
    Zoom-crop when zc is set and both dimensions were given, otherwise an
    aspect-preserving fit (optionally padded out by far).
    """
    if options.zc is None or not target.both_specified:
        return _fit(options, target, source)
    return _zoom_crop(options, target, source)


# ---------- decode hint ----------

def advise_prescale(
    source: Dimensions, source_crop: Optional[Rect], effective: Dimensions, working: Dimensions
) -> Optional[Prescale]:
    """
    Reduced decode box for a lazily decoded, source-cropped image.

    Only worth it when the output is at most half the (cropped) source
    resolution; the crop rectangle is rescaled into the reduced image.
    """
    if source_crop is None:
        return None
    ratio = max(working.width / effective.width, working.height / effective.height)
    if ratio > PRESCALE_THRESHOLD:
        return None

    box = Dimensions(pixel_length(source.width * ratio), pixel_length(source.height * ratio))
    x = min(round_half_up(source_crop.origin.x * ratio), box.width - 1)
    y = min(round_half_up(source_crop.origin.y * ratio), box.height - 1)
    w = max(1, min(round_half_up(source_crop.size.width * ratio), box.width - x))
    h = max(1, min(round_half_up(source_crop.size.height * ratio), box.height - y))
    return Prescale(box=box, crop=Rect(origin=Point(x, y), size=Dimensions(w, h)), ratio=ratio)


# ---------- background ----------

def plan_background(
    options: ThumbOptions, mode: CropModeResult, *, opaque_output: bool
) -> Optional[BackgroundPlan]:
    """
    Canvas for a requested background (formats with transparency only) or for
    fit-all-remaining padding. White unless bg says otherwise.
    """
    wants_bg = options.bg is not None and not opaque_output
    if not wants_bg and mode.far_box is None:
        return None

    fill = options.bg if options.bg is not None else Fill()
    if mode.zoom_crop is not None:
        canvas = mode.zoom_crop.size
    elif mode.far_box is not None:
        canvas = mode.far_box
    else:
        canvas = mode.image
    paste_at = mode.far_point if mode.far_point is not None else Point(0, 0)
    return BackgroundPlan(canvas=canvas, fill=fill, paste_at=paste_at)


# ---------- everything ----------

def plan_geometry(
    options: ThumbOptions,
    source: Dimensions,
    *,
    lazy_decode: bool = False,
    opaque_output: bool = False,
) -> GeometryPlan:
    """
    Resolve options against a source size into a GeometryPlan.

    lazy_decode:
        The backend has only probed the image and can decode it reduced, so a
        source crop may be taken from a prescaled decode.
    opaque_output:
        The output format has no alpha channel; a bg option alone then does
        not create a canvas.
    """
    source_crop = resolve_source_crop(options, source)
    effective = source_crop.size if source_crop is not None else source

    target = resolve_target_dims(options, effective)
    target, scale, requested = apply_scale(options, target, effective)
    mode = resolve_crop_mode(options, target, effective)

    prescale = None
    if lazy_decode:
        prescale = advise_prescale(source, source_crop, effective, mode.working)

    background = plan_background(options, mode, opaque_output=opaque_output)
    output = background.canvas if background is not None else mode.image

    return GeometryPlan(
        source=source,
        effective_source=effective,
        output=output,
        working=mode.working,
        fitted=mode.fitted,
        scaled=mode.scaled,
        source_crop=source_crop,
        resize_box=mode.fitted if mode.scaled else None,
        zoom_crop=mode.zoom_crop,
        far_box=mode.far_box,
        far_point=mode.far_point,
        zoom_cropping=mode.zoom_cropping,
        prescale=prescale,
        background=background,
        requested=requested,
        scale=scale,
    )
