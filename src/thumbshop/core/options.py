"""
Turn caller-supplied key/value pairs (a query string or a mapping) into ThumbOptions.

Malformed values are dropped and logged rather than coerced, so a typo in one
option never silently turns into a zero.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl

from thumbshop.core.geometry import round_half_up
from thumbshop.core.models import Fill, ThumbOptions
from thumbshop.core.position import normalize_anchor

LOGGER = logging.getLogger(__name__)

SIZE_KEYS = ("sw", "sh", "w", "h", "wl", "hl", "wp", "hp", "ws", "hs", "scale")
OFFSET_KEYS = ("sx", "sy")
ANCHOR_KEYS = ("zc", "far")
QUALITY_KEYS = ("q", "qmax")

_OFF = {"", "0", "false", "off", "no", "none"}
_ON = {"1", "true", "on", "yes"}
_BG_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})(?:/(\d+(?:\.\d+)?))?$")

RawOptions = Union[str, Mapping[str, Any], None]


def _to_float(key: str, value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        LOGGER.warning("option_not_numeric", extra={"option": key, "value": value})
        return None
    if math.isnan(number) or math.isinf(number):
        LOGGER.warning("option_not_finite", extra={"option": key, "value": value})
        return None
    return number


def _size(key: str, value: Any) -> Optional[float]:
    number = _to_float(key, value)
    if number is None or number <= 0:
        return None
    return number


def _offset(key: str, value: Any) -> Optional[float]:
    number = _to_float(key, value)
    if number is None:
        return None
    if number < 0:
        LOGGER.warning("option_negative", extra={"option": key, "value": value})
        return None
    return number


def _quality(key: str, value: Any) -> Optional[int]:
    number = _to_float(key, value)
    if number is None:
        return None
    return min(100, max(0, round_half_up(number)))


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _OFF


def _anchor(value: Any) -> Optional[str]:
    if value is None or value is False:
        return None
    if value is True:
        return "c"
    text = str(value).strip().lower()
    if text in _OFF:
        return None
    if text in _ON:
        return "c"
    return normalize_anchor(text)


def parse_background(value: Any) -> Optional[Fill]:
    """Parse "RRGGBB/opacity" (opacity in percent, default 100)."""
    if isinstance(value, Fill):
        return value
    m = _BG_RE.match(str(value).strip())
    if not m:
        LOGGER.warning("option_bad_background", extra={"option": "bg", "value": value})
        return None
    opacity = 100 if m.group(2) is None else min(100, round_half_up(float(m.group(2))))
    return Fill(color=m.group(1).lower(), opacity=opacity)


def _filters(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        value = [value]
    return tuple(str(v) for v in value if str(v))


def _pairs(raw: RawOptions) -> Iterable[Tuple[str, Any]]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return parse_qsl(raw.lstrip("?"), keep_blank_values=True)
    return list(raw.items())


def parse_options(raw: RawOptions) -> ThumbOptions:
    """
    Normalize raw options into a ThumbOptions.

    Zero or negative sizes are absent. sx/sy keep an explicit 0 (flush to the
    top/left edge). Repeated `fltr` / `fltr[]` keys accumulate.
    """
    if isinstance(raw, ThumbOptions):
        return raw

    values: dict[str, Any] = {}
    filters: list[str] = []
    for key, value in _pairs(raw):
        key = key.strip()
        if value is None:
            continue
        if key in ("fltr", "fltr[]"):
            filters.extend(_filters(value))
        elif key in SIZE_KEYS:
            values[key] = _size(key, value)
        elif key in OFFSET_KEYS:
            values[key] = _offset(key, value)
        elif key in QUALITY_KEYS:
            values[key] = _quality(key, value)
        elif key in ANCHOR_KEYS:
            values[key] = _anchor(value)
        elif key == "aoe":
            values[key] = _flag(value)
        elif key == "bg":
            values[key] = parse_background(value)
        elif key == "f":
            fmt = str(value).strip().lower().lstrip(".")
            values[key] = fmt or None
        else:
            LOGGER.debug("option_ignored", extra={"option": key})

    if filters:
        values["fltr"] = tuple(filters)
    return ThumbOptions(**values)


def options_to_dict(raw: Any) -> dict[str, Any]:
    """Caller options as a plain dict, untouched, for diagnostics."""
    if raw is None:
        return {}
    if isinstance(raw, ThumbOptions):
        return raw.as_dict()
    out: dict[str, Any] = {}
    for key, value in _pairs(raw):
        if key in out and key in ("fltr", "fltr[]"):
            prev = out[key] if isinstance(out[key], list) else [out[key]]
            out[key] = prev + [value]
        else:
            out[key] = value
    return out
