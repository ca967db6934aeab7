from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np
from PIL import Image

from thumbshop.app.errors import BackendError
from thumbshop.backends.base import ImageBackend
from thumbshop.core.models import Dimensions, Fill, Point, Rect

_SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)

_JPEG_EXTS = {"jpg", "jpeg", "jpe", "jfif"}


@contextmanager
def _wrapped(action: str, path: str = "") -> Iterator[None]:
    try:
        yield
    except (cv2.error, OSError, ValueError) as e:
        where = f" ({path})" if path else ""
        raise BackendError(f"{action} failed{where}: {e}") from e


def _to_uint8(arr: np.ndarray) -> np.ndarray:
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.uint16:
        return (arr // 257).astype(np.uint8)
    return np.clip(arr, 0, 255).astype(np.uint8)


def _to_bgra(arr: np.ndarray) -> np.ndarray:
    if arr.shape[2] == 4:
        return arr
    return cv2.cvtColor(arr, cv2.COLOR_BGR2BGRA)


class OpenCVBackend(ImageBackend):
    """
    OpenCV codec on numpy BGR(A) arrays.

    Always decodes at full resolution, so sources are checked against the
    memory budget before decoding. Headers are probed with Pillow, which
    reads only the header.
    """

    name = "opencv"
    supports_scaled_decode = False
    has_decode_memory_limit = True

    def probe(self, path: str) -> Dimensions:
        with _wrapped("probe", path):
            with Image.open(path) as img:
                return Dimensions(*img.size)

    def decode(self, path: str) -> np.ndarray:
        with _wrapped("decode", path):
            data = np.fromfile(path, dtype=np.uint8)
            arr = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise BackendError(f"decode failed ({path}): unsupported or corrupt image")

        arr = _to_uint8(arr)
        if arr.ndim == 2:
            arr = cv2.cvtColor(arr, cv2.COLOR_GRAY2BGR)
        return arr

    def size(self, image: np.ndarray) -> Dimensions:
        h, w = image.shape[:2]
        return Dimensions(width=w, height=h)

    def crop(self, image: np.ndarray, rect: Rect) -> np.ndarray:
        left, top, right, bottom = rect.box
        return image[top:bottom, left:right].copy()

    def resize(self, image: np.ndarray, box: Dimensions) -> np.ndarray:
        h, w = image.shape[:2]
        # INTER_AREA averages source pixels, which is what we want when reducing
        shrinking = box.width <= w and box.height <= h
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LANCZOS4
        with _wrapped("resize"):
            return cv2.resize(image, box.as_tuple(), interpolation=interpolation)

    def sharpen(self, image: np.ndarray) -> np.ndarray:
        with _wrapped("sharpen"):
            out = image.copy()
            out[:, :, :3] = cv2.filter2D(image[:, :, :3], -1, _SHARPEN_KERNEL)
            return out

    def composite(self, image: np.ndarray, canvas: Dimensions, at: Point, fill: Fill) -> np.ndarray:
        r, g, b, a = fill.rgba
        out = np.empty((canvas.height, canvas.width, 4), dtype=np.uint8)
        out[:] = (b, g, r, a)

        src = _to_bgra(image)
        sh, sw = src.shape[:2]
        x0, y0 = at.x, at.y
        x1 = min(canvas.width, x0 + sw)
        y1 = min(canvas.height, y0 + sh)
        if x0 >= x1 or y0 >= y1:
            return out

        # "over" operator on the overlapping region
        top = src[: y1 - y0, : x1 - x0].astype(np.float32) / 255.0
        bottom = out[y0:y1, x0:x1].astype(np.float32) / 255.0
        a_top = top[:, :, 3:4]
        a_bottom = bottom[:, :, 3:4] * (1.0 - a_top)
        a_out = a_top + a_bottom
        color = (top[:, :, :3] * a_top + bottom[:, :, :3] * a_bottom) / np.where(a_out == 0, 1.0, a_out)

        region = np.concatenate([color, a_out], axis=2)
        out[y0:y1, x0:x1] = np.clip(region * 255.0 + 0.5, 0, 255).astype(np.uint8)
        return out

    def encode(self, image: np.ndarray, path: str, *, quality: int, fmt: str) -> None:
        fmt = fmt.lower()
        params: list[int] = []
        if fmt in _JPEG_EXTS:
            if image.shape[2] == 4:
                image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
            params = [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
        elif fmt == "webp":
            params = [cv2.IMWRITE_WEBP_QUALITY, max(1, int(quality))]

        with _wrapped("encode", path):
            ok, buf = cv2.imencode("." + fmt, image, params)
            if not ok:
                raise BackendError(f"encode failed ({path}): OpenCV could not write .{fmt}")
            Path(path).write_bytes(buf.tobytes())
