from __future__ import annotations

import io
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from imageshop.core.errors import ValidationError

# Opaque locator handed out by the processing service.
Reference = str

BRIGHTNESS_RANGE = (0.0, 2.0)
CONTRAST_RANGE = (0.0, 2.0)
ROTATION_RANGE = (0, 360)

# Output format the service is asked for when rendering the preview.
PREVIEW_FORMAT = "jpeg"


def _clamp(value, lo, hi):
    return max(lo, min(hi, value))


class Phase(Enum):
    """Operational mode of a workflow session."""

    IDLE = "idle"
    UPLOADING = "uploading"
    READY = "ready"
    PROCESSING = "processing"
    PROCESSED = "processed"
    EXPORTING = "exporting"

    @property
    def is_busy(self) -> bool:
        return self in _TRANSIENT


_TRANSIENT = frozenset({Phase.UPLOADING, Phase.PROCESSING, Phase.EXPORTING})


class OutputFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat"]) -> "OutputFormat":
        if isinstance(value, OutputFormat):
            return value
        key = str(value).strip().lower()
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(f"Unsupported export format: {value!r} (expected png or jpeg)") from None

    @property
    def filename(self) -> str:
        return f"processed.{self.value}"


@dataclass(frozen=True)
class Adjustment:
    """
    User-tunable parameters sent with each transform request.

    brightness:
        Multiplier in [0, 2]. 1.0 leaves the image unchanged.
    contrast:
        Multiplier in [0, 2]. 1.0 leaves the image unchanged.
    rotation_degrees:
        Whole degrees in [0, 360]. 0 and 360 are passed through as given.
    """
    brightness: float = 1.0
    contrast: float = 1.0
    rotation_degrees: int = 0

    def clamped(self) -> "Adjustment":
        """Bounded copy; raises ValidationError for NaN, infinite or non-numeric values."""
        for name in ("brightness", "contrast", "rotation_degrees"):
            value = getattr(self, name)
            try:
                finite = math.isfinite(value)
            except TypeError:
                finite = False
            if not finite:
                raise ValidationError(f"{name} must be a finite number, got {value!r}")
        return Adjustment(
            brightness=float(_clamp(float(self.brightness), *BRIGHTNESS_RANGE)),
            contrast=float(_clamp(float(self.contrast), *CONTRAST_RANGE)),
            rotation_degrees=int(_clamp(int(round(self.rotation_degrees)), *ROTATION_RANGE)),
        )


_MIME_BY_PIL_FORMAT = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}


@dataclass(frozen=True)
class SourceImage:
    """A locally chosen file, ready to be posted to the service."""
    filename: str
    data: bytes
    mime: str

    @staticmethod
    def from_bytes(filename: str, data: bytes) -> "SourceImage":
        """Sniff the container with Pillow; only PNG and JPEG are accepted."""
        if not data:
            raise ValidationError(f"{filename} is empty.")
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(f"{filename} is not a readable image: {e}") from e

        mime = _MIME_BY_PIL_FORMAT.get(fmt or "")
        if mime is None:
            raise ValidationError(f"{filename} is {fmt or 'unknown'}; only PNG and JPEG can be uploaded.")
        return SourceImage(filename=filename, data=data, mime=mime)

    @staticmethod
    def from_path(path: Union[str, Path]) -> "SourceImage":
        p = Path(path)
        try:
            data = p.read_bytes()
        except OSError as e:
            raise ValidationError(f"Could not read {p}: {e}") from e
        return SourceImage.from_bytes(p.name, data)


@dataclass(frozen=True)
class TransformRequest:
    reference: Reference
    brightness: float
    contrast: float
    rotation_degrees: int
    output_format: str = PREVIEW_FORMAT

    @staticmethod
    def build(reference: Reference, adjustment: Adjustment) -> "TransformRequest":
        return TransformRequest(
            reference=reference,
            brightness=adjustment.brightness,
            contrast=adjustment.contrast,
            rotation_degrees=adjustment.rotation_degrees,
        )

    def to_payload(self) -> dict:
        return {
            "filePath": self.reference,
            "brightness": self.brightness,
            "contrast": self.contrast,
            "rotation": self.rotation_degrees,
            "format": self.output_format,
        }


@dataclass(frozen=True)
class ExportRequest:
    reference: Reference
    output_format: OutputFormat

    def to_payload(self) -> dict:
        return {"filePath": self.reference, "format": self.output_format.value}
