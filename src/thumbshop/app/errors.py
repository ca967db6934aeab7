from __future__ import annotations

from typing import Any, Mapping, Optional


class ThumbshopError(Exception):
    """Base class for everything raised while processing a single image."""


class InputUnreadable(ThumbshopError):
    """Input path is missing or cannot be read."""

    def __init__(self, path: str, *, exists: bool):
        self.path = path
        self.exists = exists
        super().__init__(f"File not {'readable' if exists else 'found'}: {path}")


class MemoryBudgetExceeded(ThumbshopError):
    """Source pixel count is above what the backend may decode."""

    def __init__(self, path: str, pixels: int, budget: int):
        self.path = path
        self.pixels = pixels
        self.budget = budget
        super().__init__(f"{path} may exceed available memory ({pixels} px > {budget} px)")


class BackendError(ThumbshopError):
    """Decode/crop/resize/composite/encode failure inside an image backend."""


class ProcessingError(ThumbshopError):
    """
    What a failed process_image() call reports back.

    Carries the input path and the caller's original options so the failure
    can be reproduced.
    """

    def __init__(self, message: str, input_path: str, options: Optional[Mapping[str, Any]] = None):
        self.message = message
        self.input_path = input_path
        self.options = dict(options or {})
        super().__init__(message)
