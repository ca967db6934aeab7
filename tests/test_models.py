import unittest
from dataclasses import FrozenInstanceError, replace

from tests._test_path import SRC  # noqa: F401  (ensures src on path)

from thumbshop.core.models import Dimensions, Fill, Point, Rect, ThumbOptions


class TestDimensions(unittest.TestCase):
    def test_aspect_and_pixels(self):
        d = Dimensions(1000, 500)
        self.assertAlmostEqual(d.aspect_ratio, 2.0)
        self.assertEqual(d.pixels, 500_000)
        self.assertEqual(d.as_tuple(), (1000, 500))

    def test_frozen(self):
        d = Dimensions(10, 10)
        with self.assertRaises(FrozenInstanceError):
            d.width = 20  # type: ignore[misc]


class TestRect(unittest.TestCase):
    def test_box_is_left_upper_right_lower(self):
        r = Rect(origin=Point(100, 0), size=Dimensions(200, 200))
        self.assertEqual(r.box, (100, 0, 300, 200))


class TestFill(unittest.TestCase):
    def test_defaults_to_opaque_white(self):
        self.assertEqual(Fill().rgba, (255, 255, 255, 255))

    def test_short_hex_and_opacity(self):
        self.assertEqual(Fill("f00", 0).rgba, (255, 0, 0, 0))
        self.assertEqual(Fill("0080ff", 50).rgba, (0, 128, 255, 128))


class TestThumbOptions(unittest.TestCase):
    def test_defaults_are_unset(self):
        o = ThumbOptions()
        self.assertIsNone(o.w)
        self.assertIsNone(o.zc)
        self.assertFalse(o.aoe)
        self.assertEqual(o.fltr, ())
        self.assertEqual(o.as_dict(), {})

    def test_replace_leaves_original_unchanged(self):
        o = ThumbOptions(w=200)
        o2 = replace(o, h=100, zc="c")
        self.assertEqual(o2.as_dict(), {"w": 200, "h": 100, "zc": "c"})
        self.assertIsNone(o.h)

    def test_as_dict_renders_background(self):
        o = ThumbOptions(bg=Fill("000000", 40), fltr=("usm",))
        self.assertEqual(o.as_dict(), {"bg": "000000/40", "fltr": ("usm",)})

    def test_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            ThumbOptions().w = 5  # type: ignore[misc]
