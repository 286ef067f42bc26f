"""Custom exceptions for the File Organizer."""


class OrganizerError(Exception):
    """Base exception for file organizer errors."""
    pass


class FatalConfigError(OrganizerError):
    """Exception for invalid source or destination directories."""
    pass


class PathNotFoundError(FatalConfigError):
    """Exception for a directory that does not exist."""
    pass


class NotADirectoryPathError(FatalConfigError):
    """Exception for a path that exists but is not a directory."""
    pass


class ScanError(OrganizerError):
    """Exception for a single traversal entry failure."""
    pass


class MoveError(OrganizerError):
    """Exception for directory creation, collision or rename/copy failures."""
    pass


class CollisionExhaustedError(MoveError):
    """Exception raised when no free numbered name could be found."""
    pass


class ManifestWriteError(OrganizerError):
    """Exception for manifest serialization or persistence failures."""
    pass


class UndoFatalError(OrganizerError):
    """Exception for a missing or unparsable manifest."""
    pass


class UndoRecordError(OrganizerError):
    """Exception for a single manifest record that could not be reversed."""
    pass
