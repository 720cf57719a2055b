"""Custom Exceptions for the SubAlign application."""

class SubAlignError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(SubAlignError):
    """Exception raised for errors in configuration loading."""
    pass

class InputFileError(SubAlignError):
    """Exception raised when the transcript or audio file cannot be read."""
    pass

class RecordParseError(SubAlignError):
    """Exception raised for a single malformed line in the model's stream."""
    pass

class TransportError(SubAlignError):
    """Exception raised when the request to the model or its stream fails."""
    pass

class FormattingError(SubAlignError):
    """Exception raised for errors during subtitle formatting."""
    pass

class FileSystemError(SubAlignError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass

class GenerationError(SubAlignError):
    """Exception raised when a generation run fails as a whole."""
    pass
