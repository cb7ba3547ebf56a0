"""
Receipt Image Intake

Checks an uploaded photo before it is sent to OCR:
1. The bytes must decode as an image (Pillow)
2. The format must be one we accept (JPEG, PNG, WebP by default)
3. The file must not exceed the upload size limit

Anything failing these is REJECTED. Quality problems (low resolution,
bad lighting) are only warnings: OCR may still read the receipt and the
user reviews every item anyway.

DESIGN DECISION: We use simple histogram heuristics rather than an ML
quality model because:
1. Lower latency
2. More predictable behavior
3. Good enough to tell the user "take it again in better light"
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from receipt_ledger.config import AppSettings, get_settings
from receipt_ledger.models.receipt import ReceiptImage

# Pillow format name -> (mime type, file extensions)
_FORMATS = {
    "JPEG": ("image/jpeg", ("jpg", "jpeg")),
    "PNG": ("image/png", ("png",)),
    "WEBP": ("image/webp", ("webp",)),
}


class ImageRejectedError(Exception):
    """The upload cannot be used as a receipt image."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


@dataclass
class LoadedImage:
    """A decoded receipt image plus any quality warnings for the user."""
    image: ReceiptImage
    warnings: list[str] = field(default_factory=list)


class ReceiptImageLoader:
    """Validates raw upload bytes and wraps them in a ReceiptImage."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _quality_warnings(self, img: Image.Image) -> list[str]:
        warnings = []
        width, height = img.size

        min_dimension = min(width, height)
        if min_dimension < self._settings.min_image_dimension:
            warnings.append(
                f"Image resolution is low (smallest side {min_dimension}px), "
                "text may be hard to read"
            )

        # Very extreme ratios usually mean a bad crop
        if max(width, height) / min_dimension > 5:
            warnings.append("Unusual aspect ratio - image may be cropped incorrectly")

        gray = img if img.mode == "L" else img.convert("L")
        histogram = gray.histogram()
        total_pixels = sum(histogram)

        if sum(histogram[:50]) / total_pixels > 0.7:
            warnings.append("Image is very dark - please take photo in better lighting")
        if sum(histogram[200:]) / total_pixels > 0.9:
            warnings.append("Image is overexposed - please reduce lighting or angle")

        return warnings

    def load(self, content: bytes, filename: str) -> LoadedImage:
        """
        Decode and check an uploaded receipt photo.

        Raises:
            ImageRejectedError: If the upload is empty, too large, not an
                image, or an unsupported format
        """
        if not content:
            raise ImageRejectedError(filename, "The file is empty")

        if len(content) > self._settings.max_upload_size_bytes:
            raise ImageRejectedError(
                filename,
                f"The file is larger than {self._settings.max_upload_size_mb} MB",
            )

        try:
            img = Image.open(BytesIO(content))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ImageRejectedError(filename, "The file is not a readable image") from e

        known = _FORMATS.get(img.format or "")
        allowed = set(self._settings.supported_formats_list)
        if known is None or not allowed.intersection(known[1]):
            raise ImageRejectedError(
                filename,
                f"Unsupported image format {img.format}. "
                f"Allowed: {', '.join(self._settings.supported_formats_list)}",
            )

        width, height = img.size
        image = ReceiptImage(
            filename=filename,
            mime_type=known[0],
            size_bytes=len(content),
            width=width,
            height=height,
            content=content,
        )
        return LoadedImage(image=image, warnings=self._quality_warnings(img))
