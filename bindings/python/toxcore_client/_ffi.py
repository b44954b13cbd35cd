import ctypes.util
import logging
import os

from cffi import FFI

from .exceptions import ToxAbiError, ToxLibraryError

logger = logging.getLogger(__name__)

TOX_VERSION_MAJOR = 0
TOX_VERSION_MINOR = 2
TOX_VERSION_PATCH = 0

_CDEF_PREFIX = """
typedef unsigned char uint8_t;
typedef unsigned short uint16_t;
typedef unsigned int uint32_t;
typedef unsigned long long uint64_t;
typedef signed int int32_t;
"""


def _load_cdef():
    header_path = os.path.join(os.path.dirname(__file__), "tox_api.h")
    with open(header_path, "r", encoding="utf-8") as f:
        lines = []
        for line in f:
            stripped = line.strip()
            if stripped.startswith("#"):
                continue
            if 'extern "C"' in line:
                continue
            if stripped == "}":
                continue
            lines.append(line.rstrip("\n"))
    text = "\n".join(lines)
    text = text.replace("TOX_API ", "")
    return _CDEF_PREFIX + "\n" + text


ffi = FFI()
ffi.cdef(_load_cdef())

_lib = None


def _candidates():
    names = [
        "libtoxcore.so",
        "libtoxcore.so.2",
        "libtoxcore.dylib",
        "libtoxcore.dll",
        "toxcore.dll",
        "toxcore",
    ]
    found = ctypes.util.find_library("toxcore")
    if found:
        names.insert(0, found)
    return names


def _dlopen():
    env = os.getenv("TOXCORE_LIBRARY")
    if env:
        try:
            return ffi.dlopen(env)
        except OSError as exc:
            raise ToxLibraryError(f"Cannot load TOXCORE_LIBRARY={env!r}: {exc}") from exc
    for name in _candidates():
        try:
            lib = ffi.dlopen(name)
        except OSError:
            continue
        logger.debug("loaded toxcore from %s", name)
        return lib
    raise ToxLibraryError(
        "toxcore shared library not found; install c-toxcore or set TOXCORE_LIBRARY"
    )


def version(lib):
    return (
        int(lib.tox_version_major()),
        int(lib.tox_version_minor()),
        int(lib.tox_version_patch()),
    )


def check_abi(lib):
    if not lib.tox_version_is_compatible(TOX_VERSION_MAJOR, TOX_VERSION_MINOR, TOX_VERSION_PATCH):
        found = ".".join(str(part) for part in version(lib))
        raise ToxAbiError(
            f"toxcore abi mismatch: {found} is not compatible with "
            f"{TOX_VERSION_MAJOR}.{TOX_VERSION_MINOR}.{TOX_VERSION_PATCH}"
        )


def load_library():
    """Return the process-wide libtoxcore handle, loading it on first use."""
    global _lib
    if _lib is None:
        lib = _dlopen()
        check_abi(lib)
        _lib = lib
    return _lib


def error_name(err_type, code):
    """Symbolic name of ``code`` within the C enum ``err_type``."""
    return ffi.typeof(err_type).elements.get(code, str(code))


def enum_value(enum_type, name):
    return ffi.typeof(enum_type).relements[name]
