"""Conversions between Python text/bytes and libtoxcore buffers."""
from ._ffi import ffi


def encode_text(value):
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def as_bytes(value):
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, memoryview):
        return value.tobytes()
    return bytes(value)


def as_u8_buffer(data):
    """Return ``(pointer, length)`` for passing ``data`` as ``const uint8_t *``.

    Empty data is passed as NULL with length 0.
    """
    if not data:
        return ffi.NULL, 0
    return ffi.from_buffer("uint8_t[]", data), len(data)


def copy_bytes(ptr, length):
    if ptr == ffi.NULL or not length:
        return b""
    return bytes(ffi.buffer(ptr, length))


def decode_text(ptr, length):
    return copy_bytes(ptr, length).decode("utf-8", errors="replace")


def sized_fill(ctype, size_query, fill):
    """Collapse a size query and a fill call into one step.

    ``size_query()`` returns the element count or None on failure, in which
    case nothing is allocated. Otherwise a ``ctype`` array of exactly that
    many elements is allocated and passed to ``fill(buf)``. Returns the
    filled array, or None if ``fill`` reports failure.
    """
    size = size_query()
    if size is None:
        return None
    buf = ffi.new(ctype, size)
    if not fill(buf):
        return None
    return buf


def buffer_bytes(buf):
    return bytes(ffi.buffer(buf))


def buffer_text(buf):
    return buffer_bytes(buf).decode("utf-8", errors="replace")
