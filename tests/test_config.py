import os
import tempfile
import unittest
from dataclasses import FrozenInstanceError
from pathlib import Path
from unittest.mock import patch

from tests._test_path import SRC  # noqa: F401

from thumbshop.app.config import (
    ENV_ASSET_PATHS,
    ENV_MEMORY_LIMIT,
    RuntimeConfig,
    memory_budget_pixels,
    parse_memory_limit,
)


class TestMemoryLimit(unittest.TestCase):
    def test_parse_memory_limit(self):
        self.assertEqual(parse_memory_limit("128M"), 128)
        self.assertEqual(parse_memory_limit("1G"), 1024)
        self.assertEqual(parse_memory_limit("512k"), 0.5)
        self.assertEqual(parse_memory_limit("64"), 64)
        self.assertIsNone(parse_memory_limit("-1"))
        self.assertIsNone(parse_memory_limit(""))

    def test_budget_formula(self):
        self.assertEqual(memory_budget_pixels("128M"), (128 - 18) * 209715)
        self.assertIsNone(memory_budget_pixels("-1"))

    def test_budget_is_cached(self):
        self.assertIs(memory_budget_pixels("300M"), memory_budget_pixels("300M"))

    def test_budget_from_process_limit(self):
        self.assertIsInstance(memory_budget_pixels(None), int)


class TestRuntimeConfig(unittest.TestCase):
    def test_default_reads_environment(self):
        with tempfile.TemporaryDirectory() as d:
            env = {ENV_ASSET_PATHS: d, ENV_MEMORY_LIMIT: "256M"}
            with patch.dict(os.environ, env):
                cfg = RuntimeConfig.default()
        self.assertEqual(cfg.asset_paths, (Path(d),))
        self.assertEqual(cfg.max_pixels, (256 - 18) * 209715)
        self.assertEqual(cfg.default_quality, 80)

    def test_frozen(self):
        cfg = RuntimeConfig()
        with self.assertRaises(FrozenInstanceError):
            cfg.max_pixels = 1  # type: ignore[misc]

    def test_find_file(self):
        with tempfile.TemporaryDirectory() as a, tempfile.TemporaryDirectory() as b:
            (Path(b) / "logo.png").write_bytes(b"x")
            cfg = RuntimeConfig(asset_paths=(Path(a), Path(b)))
            self.assertEqual(cfg.find_file("/logo.png"), (Path(b) / "logo.png").resolve())
            self.assertIsNone(cfg.find_file("missing.png"))
