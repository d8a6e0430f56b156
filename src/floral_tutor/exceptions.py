class TutorError(Exception):
    """Base exception for the floral tutor."""
    pass

class StorageError(TutorError):
    """Raised when the progress database rejects a read or write."""
    pass

class MalformedSnapshotError(TutorError):
    """Raised when an exported progress snapshot cannot be parsed."""
    pass

class CatalogError(TutorError):
    """Raised when a catalog file is missing required fields or has duplicate ids."""
    pass
