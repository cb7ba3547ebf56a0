"""Image intake package."""

from receipt_ledger.services.image.loader import (
    ImageRejectedError,
    LoadedImage,
    ReceiptImageLoader,
)

__all__ = [
    "ImageRejectedError",
    "LoadedImage",
    "ReceiptImageLoader",
]
