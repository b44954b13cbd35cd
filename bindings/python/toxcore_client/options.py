from ._ffi import ffi, load_library
from .calls import CoreCaller
from .constants import ProxyType, SavedataType
from .exceptions import ToxMemoryError
from .marshal import as_bytes, encode_text


class ToxOptions:
    """Owns one ``Tox_Options *``; freed exactly once.

    Construction either yields usable defaults or raises ToxMemoryError.
    """

    _FLAGS = ("ipv6_enabled", "udp_enabled", "local_discovery_enabled", "hole_punching_enabled")
    _PORTS = ("proxy_port", "start_port", "end_port", "tcp_port")

    def __init__(self, library=None):
        self._options = None
        self._lib = library or load_library()
        self._proxy_host = None
        self._savedata = None
        options = CoreCaller().call_variant(
            "tox_options_new", self._lib.tox_options_new, "TOX_ERR_OPTIONS_NEW"
        )
        if options is None or options == ffi.NULL:
            raise ToxMemoryError("tox_options_new could not allocate options")
        self._options = options

    @classmethod
    def from_mapping(cls, values, library=None):
        opts = cls(library=library)
        for key, value in (values or {}).items():
            if key not in cls._FLAGS + cls._PORTS + ("proxy_type", "proxy_host"):
                raise ValueError(f"unknown tox option: {key!r}")
            setattr(opts, key, value)
        return opts

    @property
    def pointer(self):
        if self._options is None:
            raise RuntimeError("Tox_Options already freed")
        return self._options

    def reset(self):
        """Restore every option to the library defaults."""
        self._lib.tox_options_default(self.pointer)
        self._proxy_host = None
        self._savedata = None

    def free(self):
        if self._options is not None:
            self._lib.tox_options_free(self._options)
            self._options = None
            self._proxy_host = None
            self._savedata = None

    def close(self):
        self.free()

    def __del__(self):
        try:
            self.free()
        except Exception:
            pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.free()

    def set_savedata(self, data):
        data = as_bytes(data)
        if not data:
            self._lib.tox_options_set_savedata_type(self.pointer, int(SavedataType.NONE))
            self._lib.tox_options_set_savedata_data(self.pointer, ffi.NULL, 0)
            self._savedata = None
            return
        # must outlive tox_new, which copies it
        self._savedata = ffi.from_buffer("uint8_t[]", data)
        self._lib.tox_options_set_savedata_type(self.pointer, int(SavedataType.TOX_SAVE))
        self._lib.tox_options_set_savedata_data(self.pointer, self._savedata, len(data))

    @property
    def proxy_type(self):
        return ProxyType(self._lib.tox_options_get_proxy_type(self.pointer))

    @proxy_type.setter
    def proxy_type(self, value):
        if isinstance(value, str):
            value = ProxyType[value.upper()]
        self._lib.tox_options_set_proxy_type(self.pointer, int(value))

    @property
    def proxy_host(self):
        host = self._lib.tox_options_get_proxy_host(self.pointer)
        if host == ffi.NULL:
            return None
        return ffi.string(host).decode("utf-8", errors="replace")

    @proxy_host.setter
    def proxy_host(self, value):
        if value is None:
            self._proxy_host = None
            self._lib.tox_options_set_proxy_host(self.pointer, ffi.NULL)
            return
        # the options struct keeps the pointer, not a copy
        self._proxy_host = ffi.new("char[]", encode_text(value))
        self._lib.tox_options_set_proxy_host(self.pointer, self._proxy_host)


def _flag(name):
    getter = f"tox_options_get_{name}"
    setter = f"tox_options_set_{name}"

    def fget(self):
        return bool(getattr(self._lib, getter)(self.pointer))

    def fset(self, value):
        getattr(self._lib, setter)(self.pointer, bool(value))

    return property(fget, fset)


def _port(name):
    getter = f"tox_options_get_{name}"
    setter = f"tox_options_set_{name}"

    def fget(self):
        return int(getattr(self._lib, getter)(self.pointer))

    def fset(self, value):
        value = int(value)
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"{name} out of range: {value}")
        getattr(self._lib, setter)(self.pointer, value)

    return property(fget, fset)


for _name in ToxOptions._FLAGS:
    setattr(ToxOptions, _name, _flag(_name))
for _name in ToxOptions._PORTS:
    setattr(ToxOptions, _name, _port(_name))
del _name
