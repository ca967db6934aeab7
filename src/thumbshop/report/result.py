from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from thumbshop.app.errors import ProcessingError
from thumbshop.core.models import GeometryPlan


@dataclass(frozen=True)
class ProcessResult:
    """
    Outcome of one process_image() call.

    width/height are the dimensions of the written image; error is set only
    when success is False.
    """
    success: bool
    width: Optional[int] = None
    height: Optional[int] = None
    error: Optional[ProcessingError] = None
    plan: Optional[GeometryPlan] = None

    def __bool__(self) -> bool:
        return self.success
