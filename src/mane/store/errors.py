"""Vector store errors."""


class StoreError(Exception):
    """Base exception for vector store operations."""


class InvalidDimensionError(StoreError):
    """Raised when a vector does not match its collection's fixed dimensionality."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Collection {collection!r} stores {expected}-dimensional vectors; got {actual}."
        )
        self.collection = collection
        self.expected = expected
        self.actual = actual
