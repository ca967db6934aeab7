from __future__ import annotations

import importlib
import logging

from thumbshop.backends.base import ImageBackend
from thumbshop.backends.pillow_backend import PillowBackend

LOGGER = logging.getLogger(__name__)

BACKEND_CHOICES = ("auto", "pillow", "opencv")


def select_backend(preferred: str = "auto") -> ImageBackend:
    """
    Instantiate a backend by name.

    "opencv" needs opencv-python; when it cannot be imported Pillow is used
    instead. "auto" always means Pillow, which can decode JPEGs reduced.
    """
    if preferred not in BACKEND_CHOICES:
        raise ValueError(f"Unknown backend {preferred!r}; expected one of {', '.join(BACKEND_CHOICES)}")

    if preferred == "opencv":
        try:
            module = importlib.import_module("thumbshop.backends.opencv_backend")
        except ImportError as e:
            LOGGER.warning("backend_unavailable", extra={"backend": "opencv", "error": str(e)})
        else:
            return module.OpenCVBackend()

    return PillowBackend()
