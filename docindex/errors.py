"""
DocIndex — Error hierarchy

Per-file ingestion errors are recovered by the indexer; query-time
vocabulary and dimension errors are surfaced to the caller.
"""


class DocIndexError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(DocIndexError, ValueError):
    """Invalid or missing option. Programmer error, never recovered."""


# -------------------------------------------------
# Ingestion
# -------------------------------------------------

class UnsupportedFileType(DocIndexError):

    def __init__(self, path: str, extension: str):
        super().__init__(f"Unsupported file type '{extension}': {path}")
        self.path = path
        self.extension = extension


class EmptyContent(DocIndexError):

    def __init__(self, path: str):
        super().__init__(f"Empty file: {path}")
        self.path = path


class NoChunksGenerated(DocIndexError):

    def __init__(self, path: str):
        super().__init__(f"No chunks generated for: {path}")
        self.path = path


class FileReadFailed(DocIndexError):

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


# -------------------------------------------------
# Vectors
# -------------------------------------------------

class VocabularyNotLoaded(DocIndexError):

    def __init__(self, message: str = "No vocabulary found. Index some documents first."):
        super().__init__(message)


class DimensionMismatch(DocIndexError):

    def __init__(self, expected: int, actual: int, message: str = None):
        super().__init__(
            message or f"Vectors must have same dimensions ({expected} != {actual})"
        )
        self.expected = expected
        self.actual = actual


class EpochMismatch(DimensionMismatch):
    """Equal-length vectors built under different vocabulary epochs."""

    def __init__(self, expected_epoch: str, actual_epoch: str, dimensions: int):
        super().__init__(
            dimensions,
            dimensions,
            message=(
                f"Vector from vocabulary epoch {actual_epoch} cannot be "
                f"compared against epoch {expected_epoch}"
            )
        )
        self.expected_epoch = expected_epoch
        self.actual_epoch = actual_epoch


# -------------------------------------------------
# Storage
# -------------------------------------------------

class StorageError(DocIndexError):
    """Base class for store failures."""


class StorageWriteFailed(StorageError):
    pass


class StorageReadFailed(StorageError):
    pass
