from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from PIL import Image, ImageFilter

from thumbshop.app.errors import BackendError
from thumbshop.backends.base import ImageBackend
from thumbshop.core.models import Dimensions, Fill, Point, Rect

# Reduce by an integer factor first, then finish with Lanczos.
REDUCING_GAP = 3.0


@contextmanager
def _wrapped(action: str, path: str = "") -> Iterator[None]:
    try:
        yield
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        where = f" ({path})" if path else ""
        raise BackendError(f"{action} failed{where}: {e}") from e


def _normalize_mode(img: Image.Image) -> Image.Image:
    """RGBA when the image carries transparency, RGB otherwise."""
    if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
        return img.convert("RGBA") if img.mode != "RGBA" else img
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


class PillowBackend(ImageBackend):
    """
    Pillow codec. JPEG sources can be decoded reduced via Image.draft(), so
    the processor probes them first and decodes lazily.
    """

    name = "pillow"
    supports_scaled_decode = True
    has_decode_memory_limit = False

    def probe(self, path: str) -> Dimensions:
        with _wrapped("probe", path):
            with Image.open(path) as img:
                return Dimensions(*img.size)

    def decode(self, path: str) -> Image.Image:
        with _wrapped("decode", path):
            img = Image.open(path)
            img.load()
            return _normalize_mode(img)

    def decode_scaled(self, path: str, box: Dimensions) -> Image.Image:
        with _wrapped("decode", path):
            img = Image.open(path)
            # draft() only acts on JPEG; the result is never smaller than box
            img.draft(img.mode, box.as_tuple())
            img.load()
            return _normalize_mode(img)

    def size(self, image: Image.Image) -> Dimensions:
        return Dimensions(*image.size)

    def crop(self, image: Image.Image, rect: Rect) -> Image.Image:
        with _wrapped("crop"):
            return image.crop(rect.box)

    def resize(self, image: Image.Image, box: Dimensions) -> Image.Image:
        with _wrapped("resize"):
            return image.resize(box.as_tuple(), resample=Image.Resampling.LANCZOS, reducing_gap=REDUCING_GAP)

    def sharpen(self, image: Image.Image) -> Image.Image:
        with _wrapped("sharpen"):
            return image.filter(ImageFilter.SHARPEN)

    def composite(self, image: Image.Image, canvas: Dimensions, at: Point, fill: Fill) -> Image.Image:
        with _wrapped("composite"):
            out = Image.new("RGBA", canvas.as_tuple(), fill.rgba)
            out.alpha_composite(image.convert("RGBA"), dest=(at.x, at.y))
            return out

    def encode(self, image: Image.Image, path: str, *, quality: int, fmt: str) -> None:
        # registered_extensions() also lists formats Pillow can only read
        pil_format = Image.registered_extensions().get("." + fmt.lower())
        if pil_format is None or pil_format not in Image.SAVE:
            raise BackendError(f"Unsupported output format: {fmt}")

        with _wrapped("encode", path):
            if pil_format == "JPEG":
                if image.mode != "RGB":
                    image = image.convert("RGB")
                image.save(path, format=pil_format, quality=quality, optimize=True)
            elif pil_format == "WEBP":
                image.save(path, format=pil_format, quality=quality)
            else:
                image.save(path, format=pil_format)
