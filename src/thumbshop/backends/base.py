from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from thumbshop.core.models import Dimensions, Fill, Point, Rect


class ImageBackend(ABC):
    """
    Codec library seam. Concrete backends wrap their library's exceptions in
    BackendError; the image objects they pass around are opaque to callers.

    supports_scaled_decode:
        decode_scaled() can produce a reduced image directly from the codec,
        so the processor may probe first and defer decoding.
    has_decode_memory_limit:
        Full decodes must be checked against RuntimeConfig.max_pixels.
    """

    name: str = "base"
    supports_scaled_decode: bool = False
    has_decode_memory_limit: bool = False

    @abstractmethod
    def probe(self, path: str) -> Dimensions:
        """Dimensions from the file header, without decoding pixels."""

    @abstractmethod
    def decode(self, path: str) -> Any:
        ...

    def decode_scaled(self, path: str, box: Dimensions) -> Any:
        """Decode with a size hint. The hint is advisory; the default ignores it."""
        return self.decode(path)

    @abstractmethod
    def size(self, image: Any) -> Dimensions:
        ...

    @abstractmethod
    def crop(self, image: Any, rect: Rect) -> Any:
        ...

    @abstractmethod
    def resize(self, image: Any, box: Dimensions) -> Any:
        """Reduce (or, with aoe, enlarge) to exactly `box`."""

    @abstractmethod
    def sharpen(self, image: Any) -> Any:
        ...

    @abstractmethod
    def composite(self, image: Any, canvas: Dimensions, at: Point, fill: Fill) -> Any:
        """New `canvas`-sized image filled with `fill`, with `image` drawn over it at `at`."""

    @abstractmethod
    def encode(self, image: Any, path: str, *, quality: int, fmt: str) -> None:
        ...
