"""
Error taxonomy for the document repository layer.

AppError and its subclasses carry a stable ``code`` so the HTTP layer can
turn them into structured JSON. StoreError covers failures reported by the
shipped document stores themselves; driver exceptions are never wrapped.
"""


class AppError(Exception):
    """Base application error with a human message and a machine code."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        return {"code": self.code, "message": self.message}


class ApiError(AppError):
    """
    Application error with an explicit HTTP status.

    Attributes:
        status_code: HTTP status used when the error reaches the API boundary
    """

    def __init__(self, message: str, code: str, status_code: int = 400):
        super().__init__(message, code)
        self.status_code = status_code


class DocumentNotFoundError(AppError):
    """Raised when a read requires a document and none matched."""

    def __init__(self):
        super().__init__("Document not found.", "application/document-not-found")


class StoreError(RuntimeError):
    """
    Raised by a document store when an operation cannot be applied.

    Not an AppError: these come from the storage contract, not from
    application rules, and are reported as-is by the HTTP layer.
    """

    def __init__(self, message: str, code: str = "store/error"):
        super().__init__(message)
        self.message = message
        self.code = code


class MissingDocumentError(StoreError):
    """Raised by a partial update addressed to a document that does not exist."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            f"No document to update: {collection}/{document_id}",
            "store/document-missing",
        )
        self.collection = collection
        self.document_id = document_id
