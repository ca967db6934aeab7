from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from thumbshop.core.geometry import round_half_up
from thumbshop.core.models import GeometryPlan, ThumbOptions

DEFAULT_QUALITY = 80

# Formats with no alpha channel; a bg option is ignored for these unless
# fit-all-remaining padding needs a canvas anyway.
OPAQUE_FORMATS = {"jpg", "jpeg", "jpe", "jfif"}


def resolve_format(options: ThumbOptions, output_path: Union[str, Path]) -> str:
    """Output format: the f option, else the output file extension (lower-case, no dot)."""
    if options.f:
        return options.f
    return Path(output_path).suffix.lower().lstrip(".")


def is_opaque_format(fmt: str) -> bool:
    return fmt.lower() in OPAQUE_FORMATS


def resolve_quality(
    options: ThumbOptions,
    plan: GeometryPlan,
    *,
    output_format: str,
    default: int = DEFAULT_QUALITY,
) -> int:
    """
    Encoder quality.

    When an undersized JPEG source is not resized, q is raised towards qmax
    in proportion to how far the source falls short of the request:
    sizeRatio = source pixels / requested pixels; above 0.5 the boost is
    round((qmax - q) * (1 - sizeRatio) * 2), otherwise q becomes qmax.
    """
    q: Optional[int] = options.q
    if (
        q is not None
        and options.qmax is not None
        and not options.aoe
        and not plan.scaled
        and is_opaque_format(output_format)
    ):
        if plan.requested is not None:
            requested = plan.requested[0] * plan.requested[1]
        else:
            requested = plan.fitted.pixels
        ratio = plan.effective_source.pixels / requested
        if ratio > 0.5:
            q += round_half_up((options.qmax - q) * (1 - ratio) * 2)
        else:
            q = options.qmax
        q = min(100, max(0, q))
    return q if q else default
