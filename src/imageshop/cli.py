#!/usr/bin/env python3
"""
Headless image processor: upload an image, apply adjustments, download the result.

Usage:
  imageshop --input photo.jpg --format png
  imageshop -i photo.png --brightness 1.2 --contrast 0.8 --rotation 90 --out-dir exports/
  imageshop -i photo.jpg --base-url http://images.local:3002 --timeout 30

Writes processed.<format> into the output directory.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from imageshop.app.config import ServiceConfig
from imageshop.app.controller import WorkflowController
from imageshop.app.downloads import DownloadSaver
from imageshop.app.logging_setup import configure_logging
from imageshop.app.notifications import LoggingNotifier
from imageshop.core.errors import ImageShopError
from imageshop.core.models import Adjustment, OutputFormat
from imageshop.service.client import ImageServiceClient


class _FailureTracker(LoggingNotifier):
    """Logs like LoggingNotifier and remembers the last error for the exit code."""

    def __init__(self):
        super().__init__(logging.getLogger("imageshop.cli"))
        self.last_error: Optional[str] = None

    def error(self, message: str) -> None:
        self.last_error = message
        super().error(message)


async def process_image(
    input_path: str,
    adjustment: Adjustment,
    fmt: OutputFormat,
    config: ServiceConfig,
    notifier: Optional[LoggingNotifier] = None,
) -> Optional[Path]:
    """Run upload -> apply -> export once; returns the saved path or None on a remote failure."""
    async with ImageServiceClient(config.base_url, timeout=config.timeout) as client:
        controller = WorkflowController(client, DownloadSaver(config.download_dir), notifier=notifier)
        controller.set_adjustment(adjustment)
        if await controller.upload(input_path) is None:
            return None
        if await controller.apply_edits() is None:
            return None
        return await controller.export(fmt)


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Adjust an image through the processing service and download it.")
    p.add_argument("--input", "-i", required=True, help="Path to input image (png/jpeg)")
    p.add_argument("--format", "-f", default="png", choices=["png", "jpeg", "jpg"], help="Export format (default: png)")
    p.add_argument("--brightness", type=float, default=1.0, help="Brightness multiplier 0–2 (default: 1.0)")
    p.add_argument("--contrast", type=float, default=1.0, help="Contrast multiplier 0–2 (default: 1.0)")
    p.add_argument("--rotation", type=int, default=0, help="Rotation in degrees 0–360 (default: 0)")
    p.add_argument("--out-dir", "-o", default=None, help="Directory for processed.<format> (default: ~/Downloads, else current dir)")
    p.add_argument("--base-url", default=None, help="Processing service URL (default: $IMAGESHOP_BASE_URL or http://localhost:3002)")
    p.add_argument("--timeout", type=float, default=None, help="Seconds per request; 0 waits forever")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = ServiceConfig.from_env().with_overrides(
            base_url=args.base_url, timeout=args.timeout, download_dir=args.out_dir,
        )
        fmt = OutputFormat.parse(args.format)
        adjustment = Adjustment(args.brightness, args.contrast, args.rotation)
        notifier = _FailureTracker()
        saved = asyncio.run(process_image(args.input, adjustment, fmt, config, notifier))
    except (ImageShopError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if saved is None:
        print(f"ERROR: {notifier.last_error or 'processing failed'}", file=sys.stderr)
        return 2

    print(f"Saved: {saved}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
