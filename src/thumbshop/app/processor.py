from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from thumbshop.app.config import RuntimeConfig
from thumbshop.app.errors import BackendError, InputUnreadable, MemoryBudgetExceeded, ProcessingError
from thumbshop.backends.base import ImageBackend
from thumbshop.backends.registry import select_backend
from thumbshop.core.geometry import plan_geometry
from thumbshop.core.models import Dimensions, GeometryPlan, ThumbOptions
from thumbshop.core.options import RawOptions, options_to_dict, parse_options
from thumbshop.core.quality import is_opaque_format, resolve_format, resolve_quality
from thumbshop.report.result import ProcessResult
from thumbshop.report.trace import describe_plan, format_options

LOGGER = logging.getLogger(__name__)

VERSION = "1.0.0"

_JPEG_SUFFIXES = {".jpg", ".jpeg", ".jpe", ".jfif"}

PathLike = Union[str, Path]


class Processor:
    """
    Resolves options into a GeometryPlan and replays it against a backend.

    One Processor can be reused for many images; nothing from one call leaks
    into the next apart from debug_messages (see reset_debug()). width and
    height mirror the last successful result.
    """

    def __init__(
        self,
        backend: Optional[ImageBackend] = None,
        config: Optional[RuntimeConfig] = None,
        *,
        debug: bool = False,
    ):
        self.backend = backend if backend is not None else select_backend()
        self.config = config if config is not None else RuntimeConfig.default()
        self.debug = debug
        self.debug_messages: List[str] = [f"thumbshop v{VERSION}", f"Using {self.backend.name}"]
        self.width: Optional[int] = None
        self.height: Optional[int] = None

    def reset_debug(self) -> None:
        """Drop image-specific messages, keeping the version and backend lines."""
        del self.debug_messages[2:]

    # ---------- public ----------

    def process_image(self, input_path: PathLike, output_path: PathLike, options: RawOptions = None) -> ProcessResult:
        """
        Read input_path, process it according to options, write output_path.

        The output format comes from the f option or output_path's extension.
        Failures never raise: they come back as a ProcessResult with
        success=False and an error carrying the input path and options.
        """
        started = time.perf_counter()
        input_path = str(input_path)
        output_path = str(output_path)
        self.width = self.height = None
        raw = options_to_dict(options)

        try:
            self._check_readable(input_path)
        except InputUnreadable as e:
            self.debug_messages.append(f"{e}  *** Skipping ***")
            LOGGER.warning("input_unreadable", extra={"input": input_path, "exists": e.exists})
            return self._failure(str(e), input_path, raw)

        opts = parse_options(options)
        fmt = resolve_format(opts, output_path)

        try:
            plan, quality, decoder_size = self._run(input_path, output_path, opts, fmt)
        except MemoryBudgetExceeded as e:
            self.debug_messages.append(f"{self.backend.name}: {input_path} may exceed available memory  ** Skipping **")
            LOGGER.warning(
                "memory_budget_exceeded",
                extra={"input": input_path, "pixels": e.pixels, "budget": e.budget},
            )
            return self._failure(str(e), input_path, raw)
        except BackendError as e:
            self.debug_messages.append(f"*** Error *** {e}")
            self.debug_messages.append(f"Input file: {input_path}")
            self.debug_messages.append(f"Input options: {format_options(raw)}")
            LOGGER.error("process_failed", extra={"input": input_path, "options": raw, "error": str(e)})
            return self._failure(str(e), input_path, raw)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            self.debug_messages.append(f"*** Error *** {message}")
            self.debug_messages.append(f"Input file: {input_path}")
            self.debug_messages.append(f"Input options: {format_options(raw)}")
            LOGGER.exception("process_crashed", extra={"input": input_path, "options": raw})
            return self._failure(message, input_path, raw)

        self.width, self.height = plan.output.width, plan.output.height

        if self.debug:
            self.debug_messages.extend(
                describe_plan(plan, raw_options=raw, quality=quality, decoder_size=decoder_size)
            )
            self.debug_messages.append(f"Wrote {output_path}")
            elapsed_ms = (time.perf_counter() - started) * 1e3
            self.debug_messages.append(f"Execution time: {round(elapsed_ms)} ms")

        LOGGER.debug(
            "image_processed",
            extra={"input": input_path, "output": output_path, "width": self.width, "height": self.height},
        )
        return ProcessResult(success=True, width=self.width, height=self.height, plan=plan)

    # ---------- internals ----------

    @staticmethod
    def _check_readable(path: str) -> None:
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise InputUnreadable(path, exists=os.path.exists(path))

    @staticmethod
    def _failure(message: str, input_path: str, raw: dict[str, Any]) -> ProcessResult:
        return ProcessResult(success=False, error=ProcessingError(message, input_path, raw))

    def _run(
        self, input_path: str, output_path: str, opts: ThumbOptions, fmt: str
    ) -> Tuple[GeometryPlan, int, Optional[Dimensions]]:
        backend = self.backend
        lazy = backend.supports_scaled_decode and Path(input_path).suffix.lower() in _JPEG_SUFFIXES

        source = backend.probe(input_path)
        budget = self.config.max_pixels
        if backend.has_decode_memory_limit and budget and source.pixels > budget:
            raise MemoryBudgetExceeded(input_path, source.pixels, budget)

        plan = plan_geometry(opts, source, lazy_decode=lazy, opaque_output=is_opaque_format(fmt))

        image: Any = None if lazy else backend.decode(input_path)
        decoder_size: Optional[Dimensions] = None

        # source crop, possibly from a reduced decode
        if plan.source_crop is not None:
            crop = plan.source_crop
            if image is None:
                if plan.prescale is not None:
                    image = backend.decode_scaled(input_path, plan.prescale.box)
                    decoder_size = backend.size(image)
                    if decoder_size != plan.prescale.box:
                        image = backend.resize(image, plan.prescale.box)
                    crop = plan.prescale.crop
                else:
                    image = backend.decode(input_path)
            image = backend.crop(image, crop)

        # resize
        if plan.resize_box is not None:
            if image is None:
                image = backend.decode_scaled(input_path, plan.resize_box)
                decoder_size = backend.size(image)
            image = backend.resize(image, plan.resize_box)
        elif image is None:
            image = backend.decode(input_path)

        if plan.zoom_crop is not None:
            image = backend.crop(image, plan.zoom_crop)

        for fltr in opts.fltr:
            if fltr.split("|", 1)[0] == "usm":
                image = backend.sharpen(image)

        if plan.background is not None:
            bg = plan.background
            image = backend.composite(image, bg.canvas, bg.paste_at, bg.fill)

        quality = resolve_quality(opts, plan, output_format=fmt, default=self.config.default_quality)
        backend.encode(image, output_path, quality=quality, fmt=fmt)
        return plan, quality, decoder_size
