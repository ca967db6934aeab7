import tempfile
import unittest
from pathlib import Path
from unittest import skipIf

import numpy as np
from PIL import Image

from tests._test_path import SRC  # noqa: F401

from thumbshop.app.config import RuntimeConfig
from thumbshop.app.errors import BackendError
from thumbshop.app.processor import Processor
from thumbshop.backends.registry import select_backend
from thumbshop.core.models import Dimensions, Fill, Point, Rect


def _can_import_cv2() -> bool:
    try:
        import cv2  # noqa: F401
        return True
    except Exception:
        return False


@skipIf(not _can_import_cv2(), "opencv-python not available")
class TestOpenCVBackend(unittest.TestCase):
    def setUp(self):
        from thumbshop.backends.opencv_backend import OpenCVBackend

        self.backend = OpenCVBackend()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.src = self.tmp / "in.png"
        Image.new("RGB", (40, 20), (255, 0, 0)).save(self.src)

    def tearDown(self):
        self._tmp.cleanup()

    def test_capabilities(self):
        self.assertFalse(self.backend.supports_scaled_decode)
        self.assertTrue(self.backend.has_decode_memory_limit)
        self.assertEqual(select_backend("opencv").name, "opencv")

    def test_probe_and_decode(self):
        self.assertEqual(self.backend.probe(str(self.src)), Dimensions(40, 20))
        arr = self.backend.decode(str(self.src))
        self.assertEqual(arr.shape, (20, 40, 3))
        self.assertEqual(tuple(arr[0, 0]), (0, 0, 255))  # BGR

    def test_grayscale_decoded_as_bgr(self):
        gray = self.tmp / "gray.png"
        Image.new("L", (8, 4), 128).save(gray)
        self.assertEqual(self.backend.decode(str(gray)).shape, (4, 8, 3))

    def test_decode_garbage(self):
        bad = self.tmp / "bad.png"
        bad.write_bytes(b"nope")
        with self.assertRaises(BackendError):
            self.backend.decode(str(bad))

    def test_crop_resize_sharpen(self):
        arr = self.backend.decode(str(self.src))
        cropped = self.backend.crop(arr, Rect(Point(10, 5), Dimensions(20, 10)))
        self.assertEqual(self.backend.size(cropped), Dimensions(20, 10))
        resized = self.backend.resize(cropped, Dimensions(10, 5))
        self.assertEqual(resized.shape, (5, 10, 3))
        self.assertEqual(self.backend.sharpen(resized).shape, (5, 10, 3))

    def test_composite(self):
        img = np.zeros((2, 4, 3), dtype=np.uint8)
        out = self.backend.composite(img, Dimensions(4, 4), Point(0, 1), Fill("ffffff", 100))
        self.assertEqual(out.shape, (4, 4, 4))
        self.assertEqual(tuple(out[0, 0]), (255, 255, 255, 255))
        self.assertEqual(tuple(out[1, 0]), (0, 0, 0, 255))
        self.assertEqual(tuple(out[3, 0]), (255, 255, 255, 255))

    def test_composite_transparent_pixels_show_fill(self):
        img = np.zeros((2, 2, 4), dtype=np.uint8)
        out = self.backend.composite(img, Dimensions(2, 2), Point(0, 0), Fill("00ff00", 100))
        self.assertEqual(tuple(out[0, 0]), (0, 255, 0, 255))

    def test_encode_jpeg_drops_alpha(self):
        img = np.full((5, 6, 4), 200, dtype=np.uint8)
        out = self.tmp / "out.jpg"
        self.backend.encode(img, str(out), quality=90, fmt="jpg")
        with Image.open(out) as im:
            self.assertEqual(im.size, (6, 5))
            self.assertEqual(im.mode, "RGB")

    def test_encode_unknown_format(self):
        img = np.zeros((2, 2, 3), dtype=np.uint8)
        with self.assertRaises(BackendError):
            self.backend.encode(img, str(self.tmp / "out.xyz"), quality=80, fmt="xyz")

    def test_processor_far(self):
        proc = Processor(self.backend, RuntimeConfig(max_pixels=None))
        out = self.tmp / "out.png"
        result = proc.process_image(self.src, out, "w=20&h=20&far=t")
        self.assertTrue(result.success)
        with Image.open(out) as im:
            rgba = im.convert("RGBA")
            self.assertEqual(im.size, (20, 20))
            self.assertEqual(rgba.getpixel((10, 5)), (255, 0, 0, 255))
            self.assertEqual(rgba.getpixel((10, 15)), (255, 255, 255, 255))

    def test_processor_memory_budget(self):
        proc = Processor(self.backend, RuntimeConfig(max_pixels=100))
        result = proc.process_image(self.src, self.tmp / "out.png", "w=10")
        self.assertFalse(result.success)
        self.assertIn("memory", result.error.message)


class TestSelectBackend(unittest.TestCase):
    def test_auto_is_pillow(self):
        self.assertEqual(select_backend().name, "pillow")
        self.assertEqual(select_backend("pillow").name, "pillow")

    def test_unknown_name(self):
        with self.assertRaises(ValueError):
            select_backend("gd")
