"""
Error taxonomy for twget.

Every error stops processing of the current account; the CLI turns them
into a non-zero exit status. Nothing here is retried.
"""


class TwgetError(Exception):
    """Base class for all twget errors."""
    pass


class ConfigurationError(TwgetError):
    """Raised when run options contradict each other (e.g. two resume modes)."""
    pass


class InvalidIdentifier(TwgetError, ValueError):
    """Raised when a media identifier is not an unsigned 64-bit decimal."""
    pass


class DirectoryUnavailable(TwgetError):
    """Raised when an account's archive directory cannot be listed."""
    pass


class TransferError(TwgetError):
    """Raised when a remote media body cannot be fetched or written."""
    pass


class ContainerFormatError(TwgetError):
    """Raised when a video container cannot be parsed or rewritten."""
    pass


class AuthenticationError(TwgetError):
    """Raised when no usable session can be established."""
    pass
