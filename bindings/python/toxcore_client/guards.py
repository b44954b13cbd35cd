"""Checks applied before a value is handed to libtoxcore.

libtoxcore enforces its own limits but reports them as one generic error
code, and cffi raises on integers that do not fit the C parameter. These
guards log which field failed, where, and against what limit, and let the
caller bail out without crossing the boundary.

``depth`` counts frames above the guard's caller; helpers that guard on
behalf of a public operation pass ``depth=2`` so the diagnostic names that
operation.
"""
import enum
import logging
import sys

logger = logging.getLogger(__name__)


class Clamp(enum.Enum):
    AT_MOST = "<="
    EXACTLY = "=="
    AT_LEAST = ">="


def _holds(size, required, kind):
    if kind is Clamp.AT_MOST:
        return size <= required
    if kind is Clamp.EXACTLY:
        return size == required
    if kind is Clamp.AT_LEAST:
        return size >= required
    raise ValueError(f"unknown clamp kind: {kind!r}")


def _site(depth):
    frame = sys._getframe(depth + 1)
    return f"{frame.f_code.co_name}:{frame.f_lineno}"


def clamp(size, required, kind, field, depth=1):
    """Return True if ``size`` satisfies ``kind`` against ``required``.

    On failure a warning naming the calling function, its line, the field
    and both sizes is logged.
    """
    if _holds(size, required, kind):
        return True
    site = _site(depth)
    logger.warning(
        "Error: %s failed a size check on %s: %d %s %d",
        site,
        field,
        size,
        kind.value,
        required,
        extra={"site": site, "field": field, "size": size, "required": required},
    )
    return False


def in_range(value, maximum, field, depth=1):
    """Return True if ``value`` is an integer in ``0..maximum``."""
    if isinstance(value, int) and 0 <= value <= maximum:
        return True
    site = _site(depth)
    logger.warning(
        "Error: %s got %s=%r outside 0..%d",
        site,
        field,
        value,
        maximum,
        extra={"site": site, "field": field, "value": value, "required": maximum},
    )
    return False


def one_of(enum_cls, value, field, depth=1):
    """Return True if ``value`` is a member of ``enum_cls``."""
    try:
        enum_cls(value)
    except ValueError:
        site = _site(depth)
        logger.warning(
            "Error: %s got %s=%r, not a %s",
            site,
            field,
            value,
            enum_cls.__name__,
            extra={"site": site, "field": field, "value": value},
        )
        return False
    return True
