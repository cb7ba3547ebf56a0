"""Services package."""

from receipt_ledger.services.image import (
    ImageRejectedError,
    LoadedImage,
    ReceiptImageLoader,
)
from receipt_ledger.services.ocr import (
    ExtractionError,
    MindeeTextExtractor,
    TextExtractorInterface,
)
from receipt_ledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryAuditStorage,
    InMemoryTransactionStore,
    StoreConnectionError,
    StoreError,
    StoreValidationError,
    TransactionStoreInterface,
)

__all__ = [
    # Image intake
    "ImageRejectedError",
    "LoadedImage",
    "ReceiptImageLoader",
    # OCR services
    "ExtractionError",
    "MindeeTextExtractor",
    "TextExtractorInterface",
    # Storage services
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStore",
    "InMemoryAuditStorage",
    "InMemoryTransactionStore",
    "StoreConnectionError",
    "StoreError",
    "StoreValidationError",
    "TransactionStoreInterface",
]
