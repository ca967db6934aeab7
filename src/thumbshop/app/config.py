from __future__ import annotations

import functools
import os
import resource
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_MEMORY_LIMIT = "128M"
ENV_ASSET_PATHS = "THUMBSHOP_ASSET_PATHS"
ENV_MEMORY_LIMIT = "THUMBSHOP_MEMORY_LIMIT"


def parse_memory_limit(value: str) -> Optional[float]:
    """
    "128M" / "1G" / "512K" / "64" (megabytes) -> megabytes.
    "-1" means unlimited and returns None.
    """
    text = str(value).strip().upper()
    if not text:
        return None
    magnitude = text[-1]
    number = text[:-1] if magnitude in "KMG" else text
    mb = float(number)
    if mb < 0:
        return None
    if magnitude == "G":
        mb *= 1024
    elif magnitude == "K":
        mb /= 1024
    return mb


def _rlimit_megabytes() -> Optional[float]:
    soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    if soft == resource.RLIM_INFINITY or soft <= 0:
        return None
    return soft / (1024 * 1024)


@functools.lru_cache(maxsize=None)
def memory_budget_pixels(limit: Optional[str] = None) -> Optional[int]:
    """
    Largest source (in pixels) a non-scaling backend may decode.

    20% of the memory limit after 18MB of interpreter overhead, at 5 bytes
    per pixel. Computed once per distinct limit.
    """
    if limit is not None:
        mb = parse_memory_limit(limit)
        if mb is None:
            return None
    else:
        mb = _rlimit_megabytes()
        if mb is None:
            mb = parse_memory_limit(DEFAULT_MEMORY_LIMIT)
    return max(0, int((mb - 18) * 209715))


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Process-wide settings, built once and handed to every Processor.

    asset_paths:
        Directories searched by find_file().
    max_pixels:
        Decode budget for backends without scaled decode; None disables the check.
    default_quality:
        Encoder quality when the q option is absent.
    """
    asset_paths: Tuple[Path, ...] = (Path("."),)
    max_pixels: Optional[int] = None
    default_quality: int = 80

    @staticmethod
    def default() -> "RuntimeConfig":
        raw_paths = os.environ.get(ENV_ASSET_PATHS, "")
        paths = tuple(Path(p) for p in raw_paths.split(os.pathsep) if p) or (Path("."),)
        limit = os.environ.get(ENV_MEMORY_LIMIT) or None
        return RuntimeConfig(asset_paths=paths, max_pixels=memory_budget_pixels(limit))

    def find_file(self, name: str) -> Optional[Path]:
        """First readable match for `name` under the asset paths, resolved."""
        for base in self.asset_paths:
            candidate = base / name.lstrip("/")
            if candidate.is_file() and os.access(candidate, os.R_OK):
                return candidate.resolve()
        return None
