from __future__ import annotations

from typing import Any, List, Mapping, Optional

from thumbshop.core.geometry import round_half_up
from thumbshop.core.models import Dimensions, GeometryPlan, Point, Rect


def format_options(options: Mapping[str, Any]) -> str:
    """ {"w": 200, "zc": "c"} -> "w=200, zc=c" """
    return ", ".join(f"{k}={v}" for k, v in options.items())


def megapixels(dims: Dimensions) -> str:
    return f"({dims.pixels / 1e6:.2f} MP)"


def modified_options(raw: Mapping[str, Any], plan: GeometryPlan, quality: int) -> dict[str, Any]:
    """Options the caller supplied whose effective value ended up different."""
    final = {
        "w": plan.output.width,
        "h": plan.output.height,
        "scale": plan.scale,
        "q": quality,
    }
    changed: dict[str, Any] = {}
    for key, value in final.items():
        if key not in raw or value is None:
            continue
        try:
            same = float(raw[key]) == float(value)
        except (TypeError, ValueError):
            same = False
        if not same:
            changed[key] = value
    return changed


def describe_plan(
    plan: GeometryPlan,
    *,
    raw_options: Mapping[str, Any],
    quality: int,
    decoder_size: Optional[Dimensions] = None,
) -> List[str]:
    """Human-readable lines describing each resolved stage of a plan."""
    lines: List[str] = [f"Input options: {format_options(raw_options)}"]

    changed = modified_options(raw_options, plan, quality)
    if changed:
        lines.append(f"Modified options: {format_options(changed)}")

    src = plan.source
    lines.append(f"Original - w: {src.width} | h: {src.height} {megapixels(src)}")

    if decoder_size is not None:
        lines.append(f"JPEG prescale - w: {decoder_size.width} | h: {decoder_size.height} {megapixels(decoder_size)}")

    if plan.source_crop is not None:
        sc = plan.source_crop
        lines.append(
            f"Source area - start: ({sc.origin.x}, {sc.origin.y}) | box: {sc.size.width} x {sc.size.height}"
        )

    if plan.requested is not None:
        rw, rh = plan.requested
        lines.append(f"Requested - w: {round_half_up(rw)} | h: {round_half_up(rh)}")

    if plan.requested is None or not plan.scaled:
        note = "" if plan.scaled else " [Not scaled: same size or insufficient input resolution]"
        lines.append(f"New - w: {plan.fitted.width} | h: {plan.fitted.height}{note}")

    if plan.far_box is not None and plan.far_point is not None:
        lines.append(
            f"FAR - start: ({plan.far_point.x},{plan.far_point.y}) | box: {plan.far_box.width} x {plan.far_box.height}"
        )

    if plan.zoom_cropping:
        # nothing is cut when the working box already has the requested shape
        zc = plan.zoom_crop or Rect(origin=Point(0, 0), size=plan.working)
        lines.append(f"ZC - start: ({zc.origin.x},{zc.origin.y}) | box: {zc.size.width} x {zc.size.height}")

    if plan.background is not None:
        fill = plan.background.fill
        lines.append(f"Background color: {fill.color} | opacity: {fill.opacity}")

    return lines


def format_trace_text(messages: List[str]) -> str:
    lines: List[str] = []
    lines.append("Thumbshop Debug Trace")
    lines.append("-" * 21)
    lines.extend(messages)
    return "\n".join(lines)
