"""Uniform invocation of libtoxcore entry points that report errors through
a trailing ``TOX_ERR_*`` out-parameter.

libtoxcore's errors are mostly internal or preventable by the caller, so
they are logged rather than raised: the caller gets the function's return
value (``call``) or ``None`` (``call_variant``) and tests that for
validity. Every diagnostic about a failed boundary call comes from
``CoreCaller._invoke``.
"""
import dataclasses
import logging

from ._ffi import enum_value, error_name, ffi

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class BoundaryError:
    operation: str
    code: int
    name: str

    def __str__(self):
        return f"{self.operation} failed with {self.name} ({self.code})"


class CoreCaller:
    """Calls boundary functions and records the most recent failure."""

    def __init__(self):
        self.last_error = None

    def _invoke(self, name, func, err_type, args, benign):
        err = ffi.new(f"{err_type} *")
        value = func(*args, err)
        code = int(err[0])
        ok = enum_value(err_type, f"{err_type}_OK")
        if code == ok:
            return value, True
        record = BoundaryError(name, code, error_name(err_type, code))
        self.last_error = record
        if record.name in benign:
            logger.warning(
                "Warning: %s partially succeeded with code %s (%d)",
                name,
                record.name,
                code,
                extra={"operation": name, "code": code, "code_name": record.name},
            )
            return value, True
        logger.warning(
            "Error: %s failed with code %s (%d)",
            name,
            record.name,
            code,
            extra={"operation": name, "code": code, "code_name": record.name},
        )
        return value, False

    def call(self, name, func, err_type, *args, benign=()):
        """Invoke ``func(*args, &err)`` and return its value regardless of ``err``."""
        value, _ = self._invoke(name, func, err_type, args, benign)
        return value

    def call_variant(self, name, func, err_type, *args, benign=()):
        """Invoke ``func(*args, &err)``; return its value on success, else None."""
        value, ok = self._invoke(name, func, err_type, args, benign)
        if not ok:
            return None
        return value
