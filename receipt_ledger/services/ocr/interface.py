"""
Text extraction port.

The workflow only needs the raw text printed on a receipt; which OCR
engine produces it is an adapter detail.
"""

from abc import ABC, abstractmethod

from receipt_ledger.models.receipt import ReceiptImage


class ExtractionError(Exception):
    """Text could not be extracted from a receipt image."""
    pass


class TextExtractorInterface(ABC):
    """Abstract OCR backend."""

    @abstractmethod
    async def extract_text(self, image: ReceiptImage) -> str:
        """
        Read the text of a receipt image, one printed line per text line.

        Raises:
            ExtractionError: If the engine fails or finds no text
        """
        pass
