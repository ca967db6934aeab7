import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from PIL import Image

from tests._test_path import SRC  # noqa: F401

from thumbshop.app.config import ENV_ASSET_PATHS
from thumbshop.cli import main


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        Image.new("RGB", (200, 100), (10, 120, 200)).save(self.tmp / "photo.png")

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_saves_thumbnail(self):
        dst = self.tmp / "thumb.png"
        code, out, _ = self._run("-i", str(self.tmp / "photo.png"), "-o", str(dst), "--options", "w=50")

        self.assertEqual(code, 0)
        self.assertIn(f"Saved: {dst} (50x25)", out)
        with Image.open(dst) as im:
            self.assertEqual(im.size, (50, 25))

    def test_input_found_in_asset_paths(self):
        dst = self.tmp / "thumb.jpg"
        with patch.dict(os.environ, {ENV_ASSET_PATHS: str(self.tmp)}):
            code, out, _ = self._run("-i", "photo.png", "-o", str(dst), "--options", "w=40&h=40&zc=c")

        self.assertEqual(code, 0)
        self.assertIn("(40x40)", out)

    def test_debug_prints_trace(self):
        dst = self.tmp / "thumb.png"
        code, _, err = self._run(
            "-i", str(self.tmp / "photo.png"), "-o", str(dst), "--options", "w=50", "--debug"
        )

        self.assertEqual(code, 0)
        self.assertIn("Thumbshop Debug Trace", err)
        self.assertIn("Using pillow", err)

    def test_missing_input(self):
        code, out, err = self._run("-i", str(self.tmp / "nope.jpg"), "-o", str(self.tmp / "x.jpg"))

        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("ERROR:", err)
