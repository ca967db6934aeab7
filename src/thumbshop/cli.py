#!/usr/bin/env python3
"""
thumbshop command line

Resize/crop one image according to phpThumb-style options:

Usage:
  thumbshop --input in.jpg --output out.jpg --options "w=200&h=200&zc=c"
  thumbshop -i in.png -o out.png --options "w=300&h=200&far=c&bg=000000/50"
  thumbshop -i in.jpg -o out.jpg --options "sw=0.5&sh=0.5&w=100" --debug

Input paths that do not exist as given are looked up in THUMBSHOP_ASSET_PATHS.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from thumbshop.app.config import RuntimeConfig
from thumbshop.app.processor import Processor
from thumbshop.backends.registry import BACKEND_CHOICES, select_backend
from thumbshop.report.trace import format_trace_text


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a thumbnail from an image using query-string style options.")
    p.add_argument("--input", "-i", required=True, help="Path to input image")
    p.add_argument("--output", "-o", required=True, help="Path to output image; the extension picks the format")
    p.add_argument("--options", default="", help='Options as a query string, e.g. "w=200&h=100&zc=c"')
    p.add_argument("--backend", choices=BACKEND_CHOICES, default="auto", help="Image library (default: auto)")
    p.add_argument("--debug", action="store_true", help="Print the processing trace")
    p.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    return p


def _resolve_input(path: str, config: RuntimeConfig) -> str:
    if Path(path).exists():
        return path
    found = config.find_file(path)
    return str(found) if found is not None else path


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    config = RuntimeConfig.default()
    processor = Processor(select_backend(args.backend), config, debug=args.debug)
    result = processor.process_image(_resolve_input(args.input, config), args.output, args.options)

    if args.debug:
        print(format_trace_text(processor.debug_messages), file=sys.stderr)

    if not result.success:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return 2

    print(f"Saved: {args.output} ({result.width}x{result.height})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
