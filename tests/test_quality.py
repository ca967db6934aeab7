import unittest

from tests._test_path import SRC  # noqa: F401

from thumbshop.core.geometry import plan_geometry
from thumbshop.core.models import Dimensions
from thumbshop.core.options import parse_options
from thumbshop.core.quality import is_opaque_format, resolve_format, resolve_quality


def quality(query: str, w: int, h: int, fmt: str = "jpg", default: int = 80) -> int:
    opts = parse_options(query)
    plan = plan_geometry(opts, Dimensions(w, h))
    return resolve_quality(opts, plan, output_format=fmt, default=default)


class TestResolveQuality(unittest.TestCase):
    def test_default_when_absent_or_zero(self):
        self.assertEqual(quality("w=50", 100, 50), 80)
        self.assertEqual(quality("w=50&q=0", 100, 50), 80)
        self.assertEqual(quality("w=50", 100, 50, default=65), 65)

    def test_q_used_as_given_when_resized(self):
        self.assertEqual(quality("w=50&q=70&qmax=90", 100, 50), 70)

    def test_far_undersized_source_gets_qmax(self):
        # 5000 px of source for a 20000 px request
        self.assertEqual(quality("w=200&h=100&q=70&qmax=90", 100, 50), 90)

    def test_slightly_undersized_source_boosted_proportionally(self):
        # ratio 11250 / 20000 = 0.5625 -> 70 + round(20 * 0.4375 * 2)
        self.assertEqual(quality("w=200&q=70&qmax=90", 150, 75), 88)

    def test_requested_scale_used_for_ratio(self):
        # the uncapped 200x100 request counts, not the capped 100x50 box
        self.assertEqual(quality("w=100&h=50&scale=2&q=70&qmax=90", 100, 50), 90)

    def test_no_boost_without_jpeg_or_with_aoe(self):
        self.assertEqual(quality("w=200&h=100&q=70&qmax=90", 100, 50, fmt="png"), 70)
        self.assertEqual(quality("w=200&h=100&q=70&qmax=90&aoe=1", 100, 50), 70)
        self.assertEqual(quality("w=200&h=100&qmax=90", 100, 50), 80)


class TestFormat(unittest.TestCase):
    def test_extension_and_override(self):
        self.assertEqual(resolve_format(parse_options(""), "out/thumb.JPG"), "jpg")
        self.assertEqual(resolve_format(parse_options("f=png"), "thumb.jpg"), "png")

    def test_opaque(self):
        self.assertTrue(is_opaque_format("jpeg"))
        self.assertTrue(is_opaque_format("JPG"))
        self.assertFalse(is_opaque_format("png"))
        self.assertFalse(is_opaque_format("webp"))
