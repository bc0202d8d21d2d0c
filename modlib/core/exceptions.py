# modlib/core/exceptions.py
"""
Error kinds raised by the library services.

Services raise these; LibraryService turns them into result dicts with a
human-readable "error" string for the GUI layer.
"""


class ModLibraryError(Exception):
    """Base class for every failure raised by the mod library."""


class InvalidPath(ModLibraryError):
    """A required file or directory is missing or has the wrong type."""


class LibraryNotADirectory(InvalidPath):
    """The library root handed to the scanner is not a directory."""


class LibraryIOError(ModLibraryError):
    """A read, write, copy or delete failed at the OS level."""


class InvalidArchive(ModLibraryError):
    """The payload is not a readable ZIP archive."""


class PayloadTooLarge(ModLibraryError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"File too large ({size} > {limit} bytes)")
        self.size = size
        self.limit = limit


class HttpError(ModLibraryError):
    """The download failed: non-success status or transport error."""


class NotFound(ModLibraryError):
    """A preset or mod lookup missed."""


class RenameFailed(ModLibraryError):
    """A folder rename was refused (target collision or OS error)."""


class SerializationError(ModLibraryError):
    """A sidecar or preset document could not be serialized on write."""


class InvalidImage(ModLibraryError):
    """Thumbnail data could not be decoded as an image."""


class PresetApplyError(RenameFailed):
    """
    Raised when a preset apply stops partway. `report` holds the steps that
    were already executed, so the caller can show them or simply re-run the
    apply to converge.
    """

    def __init__(self, message: str, report):
        super().__init__(message)
        self.report = report
