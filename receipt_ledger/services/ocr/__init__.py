"""OCR services package."""

from receipt_ledger.services.ocr.interface import ExtractionError, TextExtractorInterface
from receipt_ledger.services.ocr.mindee_service import MindeeTextExtractor

__all__ = [
    "ExtractionError",
    "MindeeTextExtractor",
    "TextExtractorInterface",
]
