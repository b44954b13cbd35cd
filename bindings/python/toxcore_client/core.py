"""ToxCore: one live libtoxcore instance behind a Python interface.

This is a thin wrapper; read toxcore's tox.h for the meaning of each call.
The conventions it adds:

* Boundary errors are logged, never raised. Calls that yield a number,
  text, bytes or an enum return None on failure; commands return False.
  Note that an empty string is a valid name, so test with ``is None``.
* Entry points that need a size query before filling a buffer are
  collapsed into a single method.
* Inputs that break a documented size limit or do not fit their C
  parameter are rejected before the call and logged with the field and
  limit involved.
* Callbacks arrive as typed events on ``ToxCore.events`` while
  ``iterate()`` runs.

A ToxCore is not locked. Commands and ``iterate()`` must come from one
thread at a time; funnel them through a single worker if the application
is multi-threaded.
"""
import enum
import functools
import logging

from ._ffi import ffi, load_library
from ._ffi import version as _version
from .calls import CoreCaller
from .constants import (
    TOX_ADDRESS_SIZE,
    TOX_FILE_ID_LENGTH,
    TOX_HASH_LENGTH,
    TOX_MAX_CUSTOM_PACKET_SIZE,
    TOX_MAX_FILENAME_LENGTH,
    TOX_MAX_FRIEND_REQUEST_LENGTH,
    TOX_MAX_HOSTNAME_LENGTH,
    TOX_MAX_MESSAGE_LENGTH,
    TOX_MAX_NAME_LENGTH,
    TOX_MAX_STATUS_MESSAGE_LENGTH,
    TOX_PUBLIC_KEY_SIZE,
    TOX_SECRET_KEY_SIZE,
    UINT16_MAX,
    UINT32_MAX,
    UINT64_MAX,
    ConferenceType,
    Connection,
    FileControl,
    MessageType,
    UserStatus,
)
from .events import EventBridge, register_callbacks
from .exceptions import ToxMemoryError
from .guards import Clamp, clamp, in_range, one_of
from .marshal import as_bytes, as_u8_buffer, buffer_bytes, buffer_text, encode_text, sized_fill
from .options import ToxOptions

logger = logging.getLogger(__name__)

_LOAD_BAD_FORMAT = "TOX_ERR_NEW_LOAD_BAD_FORMAT"


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LIVE = "live"
    DESTROYED = "destroyed"


def _live(failure=None):
    """Run the method only while the session is live, else return ``failure``."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if self._state is not SessionState.LIVE:
                logger.warning("%s called on a %s session", method.__name__, self._state.value)
                return failure
            return method(self, *args, **kwargs)
        return wrapper
    return decorator


def _as_enum(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return int(value)


def _ids(depth=1, **numbers):
    """True if every keyword is a friend/group/file/peer number cffi accepts."""
    for field, value in numbers.items():
        if not in_range(value, UINT32_MAX, field, depth=depth + 1):
            return False
    return True


class ToxCore:
    """Owns one ``Tox *`` from ``tox_new`` to ``tox_kill``.

    ``options`` defaults to a fresh ToxOptions owned by this session.
    ``savedata`` is a blob from ``get_savedata()``; empty or None starts a
    new profile.

    If the save data only partly loads (``TOX_ERR_NEW_LOAD_BAD_FORMAT``),
    the session is still live and ``load_warning`` is set. Any other
    failure leaves the session uninitialized with ``constructor_error``
    set, except an allocation failure, which raises ToxMemoryError.
    """

    def __init__(self, options=None, savedata=None, *, library=None):
        self._state = SessionState.UNINITIALIZED
        self._tox = ffi.NULL
        self._iterating = False
        self._kill_pending = False
        self._owns_options = False
        self._options = None
        self._lib = library or load_library()
        self._caller = CoreCaller()
        self.events = EventBridge()
        self.constructor_error = None
        self.load_warning = None

        if options is None:
            options = ToxOptions(library=self._lib)
            self._owns_options = True
        self._options = options

        savedata = as_bytes(savedata)
        if savedata:
            options.set_savedata(savedata)
        tox = self._caller.call(
            "tox_new",
            self._lib.tox_new,
            "TOX_ERR_NEW",
            options.pointer,
            benign=(_LOAD_BAD_FORMAT,),
        )
        error = self._caller.last_error
        if savedata:
            options.set_savedata(None)

        if error is not None and error.name != _LOAD_BAD_FORMAT:
            self._release_options()
            if error.name == "TOX_ERR_NEW_MALLOC":
                raise ToxMemoryError(str(error))
            self.constructor_error = error
            return
        if tox == ffi.NULL:
            self._release_options()
            self.constructor_error = error
            logger.warning("Error: tox_new returned no instance")
            return
        if error is not None:
            logger.warning("some save data may not have loaded: %s", error)
            self.load_warning = error

        self._tox = tox
        register_callbacks(self._lib, tox)
        self._state = SessionState.LIVE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self):
        return self._state

    @property
    def is_live(self):
        return self._state is SessionState.LIVE

    @property
    def last_error(self):
        """The most recent BoundaryError logged by this session, if any."""
        return self._caller.last_error

    def _release_options(self):
        if self._owns_options and self._options is not None:
            self._options.free()
        self._options = None

    def kill(self):
        """Destroy the instance. Irreversible; repeated calls are no-ops.

        Called from a listener during ``iterate()``, the kill happens once
        ``tox_iterate`` has returned.
        """
        if self._iterating:
            self._kill_pending = True
            return
        if self._state is SessionState.LIVE:
            self._lib.tox_kill(self._tox)
            self._tox = ffi.NULL
            self.events.clear()
        if self._state is not SessionState.DESTROYED:
            self._state = SessionState.DESTROYED
            self._release_options()

    def close(self):
        self.kill()

    def __del__(self):
        try:
            self.kill()
        except Exception:
            pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.kill()

    @_live()
    def get_savedata(self):
        def fill(buf):
            self._lib.tox_get_savedata(self._tox, buf)
            return True

        buf = sized_fill("uint8_t[]", lambda: self._lib.tox_get_savedata_size(self._tox), fill)
        return buffer_bytes(buf)

    # ------------------------------------------------------------------
    # Network and main loop
    # ------------------------------------------------------------------

    def _connect(self, name, func, host, port, public_key):
        host = encode_text(host)
        public_key = as_bytes(public_key)
        if (not clamp(len(host), TOX_MAX_HOSTNAME_LENGTH, Clamp.AT_MOST, "host", depth=2)
                or not in_range(port, UINT16_MAX, "port", depth=2)
                or not clamp(len(public_key), TOX_PUBLIC_KEY_SIZE, Clamp.EXACTLY, "public_key", depth=2)):
            return False
        key, _ = as_u8_buffer(public_key)
        return bool(self._caller.call(name, func, "TOX_ERR_BOOTSTRAP", self._tox, host, port, key))

    @_live(False)
    def bootstrap(self, host, port, public_key):
        return self._connect("tox_bootstrap", self._lib.tox_bootstrap, host, port, public_key)

    @_live(False)
    def add_tcp_relay(self, host, port, public_key):
        return self._connect("tox_add_tcp_relay", self._lib.tox_add_tcp_relay, host, port, public_key)

    @_live()
    def self_get_connection_status(self):
        """Prefer the SelfConnectionStatusChanged event over polling this."""
        return _as_enum(Connection, self._lib.tox_self_get_connection_status(self._tox))

    @_live()
    def iteration_interval(self):
        """Milliseconds to wait before the next ``iterate()``."""
        return int(self._lib.tox_iteration_interval(self._tox))

    @_live()
    def iterate(self):
        """Run one processing step, delivering any pending events.

        Returns the freshly queried iteration interval, or None if the
        session was killed during the step.
        """
        # held only while tox_iterate runs
        handle = ffi.new_handle(self)
        self._iterating = True
        try:
            self._lib.tox_iterate(self._tox, handle)
        finally:
            self._iterating = False
        if self._kill_pending:
            self._kill_pending = False
            self.kill()
            return None
        return self.iteration_interval()

    def run(self, stop_event):
        """Drive ``iterate()`` until ``stop_event`` is set or the session dies.

        Meant for the one thread that owns this session.
        """
        while self.is_live and not stop_event.is_set():
            interval = self.iterate()
            if interval is None:
                break
            stop_event.wait(interval / 1000.0)

    # ------------------------------------------------------------------
    # Self
    # ------------------------------------------------------------------

    def _fixed(self, func, size):
        buf = ffi.new("uint8_t[]", size)
        func(self._tox, buf)
        return buffer_bytes(buf)

    @_live()
    def self_get_address(self):
        return self._fixed(self._lib.tox_self_get_address, TOX_ADDRESS_SIZE)

    @_live()
    def self_get_nospam(self):
        return int(self._lib.tox_self_get_nospam(self._tox))

    @_live(False)
    def self_set_nospam(self, nospam):
        if not in_range(nospam, UINT32_MAX, "nospam"):
            return False
        self._lib.tox_self_set_nospam(self._tox, nospam)
        return True

    @_live()
    def self_get_public_key(self):
        return self._fixed(self._lib.tox_self_get_public_key, TOX_PUBLIC_KEY_SIZE)

    @_live()
    def self_get_secret_key(self):
        return self._fixed(self._lib.tox_self_get_secret_key, TOX_SECRET_KEY_SIZE)

    @_live()
    def self_get_dht_id(self):
        return self._fixed(self._lib.tox_self_get_dht_id, TOX_PUBLIC_KEY_SIZE)

    def _self_text(self, size_func, get_func):
        def fill(buf):
            get_func(self._tox, buf)
            return True

        return buffer_text(sized_fill("uint8_t[]", lambda: size_func(self._tox), fill))

    def _self_set_text(self, name, func, text, limit, field):
        data = encode_text(text)
        if data and not clamp(len(data), limit, Clamp.AT_MOST, field, depth=2):
            return False
        ptr, length = as_u8_buffer(data)
        return bool(self._caller.call(name, func, "TOX_ERR_SET_INFO", self._tox, ptr, length))

    @_live()
    def self_get_name(self):
        return self._self_text(self._lib.tox_self_get_name_size, self._lib.tox_self_get_name)

    @_live(False)
    def self_set_name(self, name):
        """Set the nickname, at most TOX_MAX_NAME_LENGTH bytes. Empty is allowed."""
        return self._self_set_text(
            "tox_self_set_name", self._lib.tox_self_set_name, name, TOX_MAX_NAME_LENGTH, "name"
        )

    @_live()
    def self_get_status_message(self):
        return self._self_text(
            self._lib.tox_self_get_status_message_size, self._lib.tox_self_get_status_message
        )

    @_live(False)
    def self_set_status_message(self, message):
        return self._self_set_text(
            "tox_self_set_status_message",
            self._lib.tox_self_set_status_message,
            message,
            TOX_MAX_STATUS_MESSAGE_LENGTH,
            "status_message",
        )

    @_live()
    def self_get_status(self):
        return _as_enum(UserStatus, self._lib.tox_self_get_status(self._tox))

    @_live(False)
    def self_set_status(self, status):
        if not one_of(UserStatus, status, "status"):
            return False
        self._lib.tox_self_set_status(self._tox, int(status))
        return True

    @_live()
    def self_get_udp_port(self):
        return self._caller.call_variant(
            "tox_self_get_udp_port", self._lib.tox_self_get_udp_port, "TOX_ERR_GET_PORT", self._tox
        )

    @_live()
    def self_get_tcp_port(self):
        return self._caller.call_variant(
            "tox_self_get_tcp_port", self._lib.tox_self_get_tcp_port, "TOX_ERR_GET_PORT", self._tox
        )

    @_live()
    def self_get_friend_list(self):
        def fill(buf):
            self._lib.tox_self_get_friend_list(self._tox, buf)
            return True

        buf = sized_fill(
            "uint32_t[]", lambda: self._lib.tox_self_get_friend_list_size(self._tox), fill
        )
        return list(buf)

    @_live(False)
    def self_set_typing(self, friend_number, typing):
        if not _ids(friend_number=friend_number):
            return False
        return bool(self._caller.call(
            "tox_self_set_typing",
            self._lib.tox_self_set_typing,
            "TOX_ERR_SET_TYPING",
            self._tox,
            friend_number,
            bool(typing),
        ))

    # ------------------------------------------------------------------
    # Friends
    # ------------------------------------------------------------------

    @_live()
    def friend_add(self, address, message):
        """Send a friend request; returns the new friend number or None.

        ``message`` is required and limited to TOX_MAX_FRIEND_REQUEST_LENGTH
        bytes.
        """
        if not clamp(len(message or ""), 1, Clamp.AT_LEAST, "message"):
            return None
        data = encode_text(message)
        address = as_bytes(address)
        if (not clamp(len(data), TOX_MAX_FRIEND_REQUEST_LENGTH, Clamp.AT_MOST, "message")
                or not clamp(len(address), TOX_ADDRESS_SIZE, Clamp.EXACTLY, "address")):
            return None
        addr, _ = as_u8_buffer(address)
        msg, length = as_u8_buffer(data)
        return self._caller.call_variant(
            "tox_friend_add", self._lib.tox_friend_add, "TOX_ERR_FRIEND_ADD",
            self._tox, addr, msg, length,
        )

    @_live()
    def friend_add_norequest(self, public_key):
        """Add a friend by public key without sending a request."""
        public_key = as_bytes(public_key)
        if not clamp(len(public_key), TOX_PUBLIC_KEY_SIZE, Clamp.EXACTLY, "public_key"):
            return None
        key, _ = as_u8_buffer(public_key)
        return self._caller.call_variant(
            "tox_friend_add_norequest", self._lib.tox_friend_add_norequest, "TOX_ERR_FRIEND_ADD",
            self._tox, key,
        )

    @_live(False)
    def friend_delete(self, friend_number):
        if not _ids(friend_number=friend_number):
            return False
        return bool(self._caller.call(
            "tox_friend_delete", self._lib.tox_friend_delete, "TOX_ERR_FRIEND_DELETE",
            self._tox, friend_number,
        ))

    @_live()
    def friend_by_public_key(self, public_key):
        public_key = as_bytes(public_key)
        if not clamp(len(public_key), TOX_PUBLIC_KEY_SIZE, Clamp.EXACTLY, "public_key"):
            return None
        key, _ = as_u8_buffer(public_key)
        return self._caller.call_variant(
            "tox_friend_by_public_key", self._lib.tox_friend_by_public_key,
            "TOX_ERR_FRIEND_BY_PUBLIC_KEY", self._tox, key,
        )

    @_live()
    def friend_get_public_key(self, friend_number):
        if not _ids(friend_number=friend_number):
            return None
        buf = ffi.new("uint8_t[]", TOX_PUBLIC_KEY_SIZE)
        ok = self._caller.call(
            "tox_friend_get_public_key", self._lib.tox_friend_get_public_key,
            "TOX_ERR_FRIEND_GET_PUBLIC_KEY", self._tox, friend_number, buf,
        )
        return buffer_bytes(buf) if ok else None

    @_live(False)
    def friend_exists(self, friend_number):
        if not _ids(friend_number=friend_number):
            return False
        return bool(self._lib.tox_friend_exists(self._tox, friend_number))

    @_live()
    def friend_get_last_online(self, friend_number):
        """Unix time the friend was last seen online, or None."""
        if not _ids(friend_number=friend_number):
            return None
        return self._caller.call_variant(
            "tox_friend_get_last_online", self._lib.tox_friend_get_last_online,
            "TOX_ERR_FRIEND_GET_LAST_ONLINE", self._tox, friend_number,
        )

    def _friend_text(self, size_name, size_func, get_name, get_func, friend_number):
        if not _ids(2, friend_number=friend_number):
            return None

        def size_query():
            return self._caller.call_variant(
                size_name, size_func, "TOX_ERR_FRIEND_QUERY", self._tox, friend_number
            )

        def fill(buf):
            return self._caller.call(
                get_name, get_func, "TOX_ERR_FRIEND_QUERY", self._tox, friend_number, buf
            )

        buf = sized_fill("uint8_t[]", size_query, fill)
        return None if buf is None else buffer_text(buf)

    @_live()
    def friend_get_name(self, friend_number):
        """The friend's nickname, or None. Prefer the FriendNameChanged event."""
        return self._friend_text(
            "tox_friend_get_name_size", self._lib.tox_friend_get_name_size,
            "tox_friend_get_name", self._lib.tox_friend_get_name,
            friend_number,
        )

    @_live()
    def friend_get_status_message(self, friend_number):
        return self._friend_text(
            "tox_friend_get_status_message_size", self._lib.tox_friend_get_status_message_size,
            "tox_friend_get_status_message", self._lib.tox_friend_get_status_message,
            friend_number,
        )

    @_live()
    def friend_get_status(self, friend_number):
        if not _ids(friend_number=friend_number):
            return None
        return _as_enum(UserStatus, self._caller.call_variant(
            "tox_friend_get_status", self._lib.tox_friend_get_status, "TOX_ERR_FRIEND_QUERY",
            self._tox, friend_number,
        ))

    @_live()
    def friend_get_connection_status(self, friend_number):
        if not _ids(friend_number=friend_number):
            return None
        return _as_enum(Connection, self._caller.call_variant(
            "tox_friend_get_connection_status", self._lib.tox_friend_get_connection_status,
            "TOX_ERR_FRIEND_QUERY", self._tox, friend_number,
        ))

    @_live()
    def friend_get_typing(self, friend_number):
        if not _ids(friend_number=friend_number):
            return None
        typing = self._caller.call_variant(
            "tox_friend_get_typing", self._lib.tox_friend_get_typing, "TOX_ERR_FRIEND_QUERY",
            self._tox, friend_number,
        )
        return None if typing is None else bool(typing)

    @_live()
    def friend_send_message(self, friend_number, message, message_type=MessageType.NORMAL):
        """Queue a message; returns its message id (see FriendReadReceipt) or None."""
        if (not _ids(friend_number=friend_number)
                or not one_of(MessageType, message_type, "message_type")):
            return None
        data = encode_text(message)
        if (not clamp(len(data), 1, Clamp.AT_LEAST, "message")
                or not clamp(len(data), TOX_MAX_MESSAGE_LENGTH, Clamp.AT_MOST, "message")):
            return None
        msg, length = as_u8_buffer(data)
        return self._caller.call_variant(
            "tox_friend_send_message", self._lib.tox_friend_send_message,
            "TOX_ERR_FRIEND_SEND_MESSAGE", self._tox, friend_number, int(message_type), msg, length,
        )

    @_live()
    def hash(self, data):
        data = as_bytes(data)
        out = ffi.new("uint8_t[]", TOX_HASH_LENGTH)
        ptr, length = as_u8_buffer(data)
        if not self._lib.tox_hash(out, ptr, length):
            logger.warning("Error: tox_hash failed")
            return None
        return buffer_bytes(out)

    # ------------------------------------------------------------------
    # File transfer
    # ------------------------------------------------------------------

    @_live(False)
    def file_control(self, friend_number, file_number, control):
        if (not _ids(friend_number=friend_number, file_number=file_number)
                or not one_of(FileControl, control, "control")):
            return False
        return bool(self._caller.call(
            "tox_file_control", self._lib.tox_file_control, "TOX_ERR_FILE_CONTROL",
            self._tox, friend_number, file_number, int(control),
        ))

    @_live(False)
    def file_seek(self, friend_number, file_number, position):
        """Seek an incoming transfer; only valid before it is resumed."""
        if (not _ids(friend_number=friend_number, file_number=file_number)
                or not in_range(position, UINT64_MAX, "position")):
            return False
        return bool(self._caller.call(
            "tox_file_seek", self._lib.tox_file_seek, "TOX_ERR_FILE_SEEK",
            self._tox, friend_number, file_number, position,
        ))

    @_live()
    def file_get_file_id(self, friend_number, file_number):
        if not _ids(friend_number=friend_number, file_number=file_number):
            return None
        buf = ffi.new("uint8_t[]", TOX_FILE_ID_LENGTH)
        ok = self._caller.call(
            "tox_file_get_file_id", self._lib.tox_file_get_file_id, "TOX_ERR_FILE_GET",
            self._tox, friend_number, file_number, buf,
        )
        return buffer_bytes(buf) if ok else None

    @_live()
    def file_send(self, friend_number, kind, file_size, file_id, filename):
        """Offer a file; returns the file number or None.

        An empty ``file_id`` lets the library pick one; otherwise it must be
        exactly TOX_FILE_ID_LENGTH bytes.
        """
        if (not _ids(friend_number=friend_number, kind=kind)
                or not in_range(file_size, UINT64_MAX, "file_size")):
            return None
        file_id = as_bytes(file_id)
        if file_id and not clamp(len(file_id), TOX_FILE_ID_LENGTH, Clamp.EXACTLY, "file_id"):
            return None
        name = encode_text(filename)
        if not clamp(len(name), TOX_MAX_FILENAME_LENGTH, Clamp.AT_MOST, "filename"):
            return None
        fid, _ = as_u8_buffer(file_id)
        name_ptr, name_length = as_u8_buffer(name)
        return self._caller.call_variant(
            "tox_file_send", self._lib.tox_file_send, "TOX_ERR_FILE_SEND",
            self._tox, friend_number, kind, file_size, fid, name_ptr, name_length,
        )

    @_live(False)
    def file_send_chunk(self, friend_number, file_number, position, data):
        if (not _ids(friend_number=friend_number, file_number=file_number)
                or not in_range(position, UINT64_MAX, "position")):
            return False
        ptr, length = as_u8_buffer(as_bytes(data))
        return bool(self._caller.call(
            "tox_file_send_chunk", self._lib.tox_file_send_chunk, "TOX_ERR_FILE_SEND_CHUNK",
            self._tox, friend_number, file_number, position, ptr, length,
        ))

    # ------------------------------------------------------------------
    # Group chats (conferences)
    # ------------------------------------------------------------------

    @_live()
    def group_new(self):
        return self._caller.call_variant(
            "tox_conference_new", self._lib.tox_conference_new, "TOX_ERR_CONFERENCE_NEW", self._tox
        )

    @_live(False)
    def group_delete(self, group_number):
        if not _ids(group_number=group_number):
            return False
        return bool(self._caller.call(
            "tox_conference_delete", self._lib.tox_conference_delete, "TOX_ERR_CONFERENCE_DELETE",
            self._tox, group_number,
        ))

    @_live(False)
    def group_invite(self, friend_number, group_number):
        if not _ids(friend_number=friend_number, group_number=group_number):
            return False
        return bool(self._caller.call(
            "tox_conference_invite", self._lib.tox_conference_invite, "TOX_ERR_CONFERENCE_INVITE",
            self._tox, friend_number, group_number,
        ))

    @_live()
    def group_join(self, friend_number, cookie):
        """Join with the cookie from a GroupInvite; returns the group number or None."""
        if not _ids(friend_number=friend_number):
            return None
        ptr, length = as_u8_buffer(as_bytes(cookie))
        return self._caller.call_variant(
            "tox_conference_join", self._lib.tox_conference_join, "TOX_ERR_CONFERENCE_JOIN",
            self._tox, friend_number, ptr, length,
        )

    def _group_send(self, group_number, text, message_type):
        if not _ids(2, group_number=group_number):
            return False
        data = encode_text(text)
        if not clamp(len(data), TOX_MAX_MESSAGE_LENGTH, Clamp.AT_MOST, "message", depth=2):
            return False
        ptr, length = as_u8_buffer(data)
        return bool(self._caller.call(
            "tox_conference_send_message", self._lib.tox_conference_send_message,
            "TOX_ERR_CONFERENCE_SEND_MESSAGE", self._tox, group_number, int(message_type), ptr, length,
        ))

    @_live(False)
    def group_send_message(self, group_number, message):
        return self._group_send(group_number, message, MessageType.NORMAL)

    @_live(False)
    def group_send_action(self, group_number, action):
        return self._group_send(group_number, action, MessageType.ACTION)

    @_live()
    def group_get_title(self, group_number):
        if not _ids(group_number=group_number):
            return None

        def size_query():
            return self._caller.call_variant(
                "tox_conference_get_title_size", self._lib.tox_conference_get_title_size,
                "TOX_ERR_CONFERENCE_TITLE", self._tox, group_number,
            )

        def fill(buf):
            return self._caller.call(
                "tox_conference_get_title", self._lib.tox_conference_get_title,
                "TOX_ERR_CONFERENCE_TITLE", self._tox, group_number, buf,
            )

        buf = sized_fill("uint8_t[]", size_query, fill)
        return None if buf is None else buffer_text(buf)

    @_live(False)
    def group_set_title(self, group_number, title):
        if not _ids(group_number=group_number):
            return False
        data = encode_text(title)
        if not clamp(len(data), TOX_MAX_NAME_LENGTH, Clamp.AT_MOST, "title"):
            return False
        ptr, length = as_u8_buffer(data)
        return bool(self._caller.call(
            "tox_conference_set_title", self._lib.tox_conference_set_title,
            "TOX_ERR_CONFERENCE_TITLE", self._tox, group_number, ptr, length,
        ))

    @_live()
    def group_peer_count(self, group_number):
        if not _ids(group_number=group_number):
            return None
        return self._caller.call_variant(
            "tox_conference_peer_count", self._lib.tox_conference_peer_count,
            "TOX_ERR_CONFERENCE_PEER_QUERY", self._tox, group_number,
        )

    def _group_peer_name(self, group_number, peer_number):
        def size_query():
            return self._caller.call_variant(
                "tox_conference_peer_get_name_size", self._lib.tox_conference_peer_get_name_size,
                "TOX_ERR_CONFERENCE_PEER_QUERY", self._tox, group_number, peer_number,
            )

        def fill(buf):
            return self._caller.call(
                "tox_conference_peer_get_name", self._lib.tox_conference_peer_get_name,
                "TOX_ERR_CONFERENCE_PEER_QUERY", self._tox, group_number, peer_number, buf,
            )

        buf = sized_fill("uint8_t[]", size_query, fill)
        return None if buf is None else buffer_text(buf)

    @_live()
    def group_get_names(self, group_number):
        """Names of every peer, indexed by peer number; None if any lookup fails."""
        if not _ids(group_number=group_number):
            return None
        count = self.group_peer_count(group_number)
        if count is None:
            return None
        names = []
        for peer_number in range(count):
            name = self._group_peer_name(group_number, peer_number)
            if name is None:
                return None
            names.append(name)
        return names

    @_live()
    def group_peer_get_public_key(self, group_number, peer_number):
        if not _ids(group_number=group_number, peer_number=peer_number):
            return None
        buf = ffi.new("uint8_t[]", TOX_PUBLIC_KEY_SIZE)
        ok = self._caller.call(
            "tox_conference_peer_get_public_key", self._lib.tox_conference_peer_get_public_key,
            "TOX_ERR_CONFERENCE_PEER_QUERY", self._tox, group_number, peer_number, buf,
        )
        return buffer_bytes(buf) if ok else None

    @_live()
    def group_peer_number_is_ours(self, group_number, peer_number):
        if not _ids(group_number=group_number, peer_number=peer_number):
            return None
        ours = self._caller.call_variant(
            "tox_conference_peer_number_is_ours", self._lib.tox_conference_peer_number_is_ours,
            "TOX_ERR_CONFERENCE_PEER_QUERY", self._tox, group_number, peer_number,
        )
        return None if ours is None else bool(ours)

    @_live()
    def group_get_type(self, group_number):
        if not _ids(group_number=group_number):
            return None
        return _as_enum(ConferenceType, self._caller.call_variant(
            "tox_conference_get_type", self._lib.tox_conference_get_type,
            "TOX_ERR_CONFERENCE_GET_TYPE", self._tox, group_number,
        ))

    @_live()
    def group_list(self):
        def fill(buf):
            self._lib.tox_conference_get_chatlist(self._tox, buf)
            return True

        buf = sized_fill(
            "uint32_t[]", lambda: self._lib.tox_conference_get_chatlist_size(self._tox), fill
        )
        return list(buf)

    # ------------------------------------------------------------------
    # Custom packets
    # ------------------------------------------------------------------

    def _send_packet(self, name, func, friend_number, data):
        if not _ids(2, friend_number=friend_number):
            return False
        data = as_bytes(data)
        if not clamp(len(data), TOX_MAX_CUSTOM_PACKET_SIZE, Clamp.AT_MOST, "packet", depth=2):
            return False
        ptr, length = as_u8_buffer(data)
        return bool(self._caller.call(
            name, func, "TOX_ERR_FRIEND_CUSTOM_PACKET", self._tox, friend_number, ptr, length
        ))

    @_live(False)
    def friend_send_lossy_packet(self, friend_number, data):
        """Unreliable packet; the first byte must be in 200..254."""
        return self._send_packet(
            "tox_friend_send_lossy_packet", self._lib.tox_friend_send_lossy_packet,
            friend_number, data,
        )

    @_live(False)
    def friend_send_lossless_packet(self, friend_number, data):
        """Reliable packet; the first byte must be in 160..191."""
        return self._send_packet(
            "tox_friend_send_lossless_packet", self._lib.tox_friend_send_lossless_packet,
            friend_number, data,
        )


def version(library=None):
    """``(major, minor, patch)`` of the loaded libtoxcore."""
    return _version(library or load_library())


def is_compatible(major, minor, patch, library=None):
    lib = library or load_library()
    return bool(lib.tox_version_is_compatible(major, minor, patch))
