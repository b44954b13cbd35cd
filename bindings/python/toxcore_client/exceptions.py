"""toxcore_client exceptions.

Boundary errors are never raised; they are logged and turned into invalid
return values. Only setup failures and allocation failures surface here.
"""


class ToxError(Exception):
    """Base exception for all toxcore_client errors."""


class ToxLibraryError(ToxError, OSError):
    """Raised when the libtoxcore shared library cannot be found or loaded."""


class ToxAbiError(ToxError, RuntimeError):
    """Raised when the loaded libtoxcore is not compatible with these bindings."""


class ToxMemoryError(ToxError, MemoryError):
    """Raised when the options or session resource cannot be allocated."""
