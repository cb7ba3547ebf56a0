"""
OCR Service using Mindee

DESIGN DECISION: We use Mindee because:
1. Specialized for financial documents (receipts, invoices)
2. Returns the full page text with word positions, so we can run our own
   line parser on it
3. Hosted, no OCR model to maintain

We only take the raw OCR text from Mindee. Mindee's own receipt fields
(total, line items) are not used: German till receipts put deposit lines,
VAT classes and loyalty text where the generic model gets confused, and
the parser in receipt_ledger.parsing handles those explicitly.

The Mindee SDK is blocking, so calls run in a worker thread.
"""

import asyncio
from typing import Optional

import structlog
from mindee import Client
from mindee.error import MindeeHTTPError
from mindee.product import ReceiptV5
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from receipt_ledger.config import get_settings
from receipt_ledger.models.receipt import ReceiptImage
from receipt_ledger.services.ocr.interface import ExtractionError, TextExtractorInterface

logger = structlog.get_logger(__name__)

# Errors worth another attempt: HTTP failures and network trouble
TRANSIENT_ERRORS = (MindeeHTTPError, OSError)


class MindeeTextExtractor(TextExtractorInterface):
    """
    Text extraction backed by the Mindee receipt API.

    IMPORTANT BOUNDARIES:
    1. This service ONLY extracts text - parsing happens elsewhere
    2. Transient failures are retried a bounded number of times here;
       whatever is left surfaces as ExtractionError
    3. An image with no readable text is an ExtractionError, not ""
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        attempts: Optional[int] = None,
    ):
        self._client = client
        self._attempts = attempts

    def _get_client(self) -> Client:
        """Get or create Mindee client."""
        if self._client is None:
            self._client = Client(api_key=get_settings().mindee.api_key)
        return self._client

    def _get_attempts(self) -> int:
        if self._attempts is None:
            self._attempts = get_settings().app.external_call_attempts
        return self._attempts

    def _read_text(self, image: ReceiptImage) -> str:
        client = self._get_client()
        input_source = client.source_from_bytes(image.content, image.filename)
        result = client.parse(ReceiptV5, input_source, include_words=True)
        ocr = result.document.ocr
        return str(ocr) if ocr is not None else ""

    async def extract_text(self, image: ReceiptImage) -> str:
        """
        Extract the text of a receipt image using Mindee.

        Raises:
            ExtractionError: If extraction fails after retries or no text was found
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._get_attempts()),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    text = await asyncio.to_thread(self._read_text, image)
        except Exception as e:
            logger.warning(
                "mindee_extraction_failed",
                upload_id=str(image.upload_id),
                error=str(e),
            )
            raise ExtractionError(f"Failed to read the receipt: {e}") from e

        if not text.strip():
            raise ExtractionError(
                "No text found on the receipt. "
                "Please try again with a sharper, well-lit photo."
            )

        logger.debug(
            "mindee_extraction_completed",
            upload_id=str(image.upload_id),
            character_count=len(text),
        )
        return text
