"""Typed events raised by libtoxcore callbacks.

libtoxcore takes one C function pointer per event category and only calls
them from inside ``tox_iterate``. Each category gets one trampoline,
created once per process. The owning ToxCore travels through
``tox_iterate``'s ``user_data`` as a cffi handle; the trampoline recovers
it, decodes the buffers and hands a frozen event record to that session's
EventBridge, which calls the listeners synchronously and in order.
"""
import dataclasses
import logging

from ._ffi import ffi
from .constants import (
    TOX_PUBLIC_KEY_SIZE,
    ConferenceType,
    Connection,
    FileControl,
    FileKind,
    MessageType,
    UserStatus,
)
from .marshal import copy_bytes, decode_text

logger = logging.getLogger(__name__)


def _enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return int(value)


@dataclasses.dataclass(frozen=True)
class SelfConnectionStatusChanged:
    connection: Connection


@dataclasses.dataclass(frozen=True)
class FriendNameChanged:
    friend_number: int
    name: str


@dataclasses.dataclass(frozen=True)
class FriendStatusMessageChanged:
    friend_number: int
    message: str


@dataclasses.dataclass(frozen=True)
class FriendStatusChanged:
    friend_number: int
    status: UserStatus


@dataclasses.dataclass(frozen=True)
class FriendConnectionStatusChanged:
    friend_number: int
    connection: Connection


@dataclasses.dataclass(frozen=True)
class FriendTypingChanged:
    friend_number: int
    typing: bool


@dataclasses.dataclass(frozen=True)
class FriendReadReceipt:
    friend_number: int
    message_id: int


@dataclasses.dataclass(frozen=True)
class FriendRequest:
    public_key: bytes
    message: str


@dataclasses.dataclass(frozen=True)
class FriendMessage:
    friend_number: int
    message_type: MessageType
    message: str


@dataclasses.dataclass(frozen=True)
class FileControlReceived:
    friend_number: int
    file_number: int
    control: FileControl


@dataclasses.dataclass(frozen=True)
class FileChunkRequested:
    friend_number: int
    file_number: int
    position: int
    length: int


@dataclasses.dataclass(frozen=True)
class FileReceiveRequested:
    friend_number: int
    file_number: int
    kind: FileKind
    file_size: int
    filename: str


@dataclasses.dataclass(frozen=True)
class FileChunkReceived:
    friend_number: int
    file_number: int
    position: int
    data: bytes


@dataclasses.dataclass(frozen=True)
class GroupInvite:
    friend_number: int
    group_type: ConferenceType
    cookie: bytes


@dataclasses.dataclass(frozen=True)
class GroupConnected:
    group_number: int


@dataclasses.dataclass(frozen=True)
class GroupMessage:
    group_number: int
    peer_number: int
    message: str


@dataclasses.dataclass(frozen=True)
class GroupAction:
    group_number: int
    peer_number: int
    action: str


@dataclasses.dataclass(frozen=True)
class GroupTitleChanged:
    group_number: int
    peer_number: int
    title: str


@dataclasses.dataclass(frozen=True)
class GroupPeerNameChanged:
    group_number: int
    peer_number: int
    name: str


@dataclasses.dataclass(frozen=True)
class GroupPeerListChanged:
    group_number: int


@dataclasses.dataclass(frozen=True)
class FriendLossyPacket:
    friend_number: int
    data: bytes


@dataclasses.dataclass(frozen=True)
class FriendLosslessPacket:
    friend_number: int
    data: bytes


EVENT_TYPES = (
    SelfConnectionStatusChanged,
    FriendNameChanged,
    FriendStatusMessageChanged,
    FriendStatusChanged,
    FriendConnectionStatusChanged,
    FriendTypingChanged,
    FriendReadReceipt,
    FriendRequest,
    FriendMessage,
    FileControlReceived,
    FileChunkRequested,
    FileReceiveRequested,
    FileChunkReceived,
    GroupInvite,
    GroupConnected,
    GroupMessage,
    GroupAction,
    GroupTitleChanged,
    GroupPeerNameChanged,
    GroupPeerListChanged,
    FriendLossyPacket,
    FriendLosslessPacket,
)


class EventBridge:
    """Per-session listener registry for the fixed set of event types."""

    def __init__(self):
        self._listeners = {event_type: [] for event_type in EVENT_TYPES}

    def _slot(self, event_type):
        try:
            return self._listeners[event_type]
        except KeyError:
            raise TypeError(f"not a toxcore event type: {event_type!r}") from None

    def connect(self, event_type, listener=None):
        """Register ``listener`` for ``event_type``.

        Without ``listener`` this returns a decorator.
        """
        slot = self._slot(event_type)
        if listener is None:
            def decorator(func):
                slot.append(func)
                return func
            return decorator
        slot.append(listener)
        return listener

    def disconnect(self, event_type, listener):
        slot = self._slot(event_type)
        if listener in slot:
            slot.remove(listener)

    def listeners(self, event_type):
        return tuple(self._slot(event_type))

    def clear(self):
        for slot in self._listeners.values():
            slot.clear()

    def emit(self, event):
        """Deliver ``event`` to every listener of its type, in registration order.

        A listener that raises is logged and skipped; the rest still run.
        """
        for listener in tuple(self._slot(type(event))):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "listener %r failed handling %s", listener, type(event).__name__
                )


def _emit(user_data, event):
    if user_data == ffi.NULL:
        logger.warning("dropping %s: callback fired without a session", type(event).__name__)
        return
    ffi.from_handle(user_data).events.emit(event)


def _self_connection_status(tox, connection_status, user_data):
    _emit(user_data, SelfConnectionStatusChanged(_enum(Connection, connection_status)))


def _friend_name(tox, friend_number, name, length, user_data):
    _emit(user_data, FriendNameChanged(friend_number, decode_text(name, length)))


def _friend_status_message(tox, friend_number, message, length, user_data):
    _emit(user_data, FriendStatusMessageChanged(friend_number, decode_text(message, length)))


def _friend_status(tox, friend_number, status, user_data):
    _emit(user_data, FriendStatusChanged(friend_number, _enum(UserStatus, status)))


def _friend_connection_status(tox, friend_number, connection_status, user_data):
    _emit(user_data, FriendConnectionStatusChanged(friend_number, _enum(Connection, connection_status)))


def _friend_typing(tox, friend_number, typing, user_data):
    _emit(user_data, FriendTypingChanged(friend_number, bool(typing)))


def _friend_read_receipt(tox, friend_number, message_id, user_data):
    _emit(user_data, FriendReadReceipt(friend_number, message_id))


def _friend_request(tox, public_key, message, length, user_data):
    _emit(
        user_data,
        FriendRequest(copy_bytes(public_key, TOX_PUBLIC_KEY_SIZE), decode_text(message, length)),
    )


def _friend_message(tox, friend_number, message_type, message, length, user_data):
    _emit(
        user_data,
        FriendMessage(friend_number, _enum(MessageType, message_type), decode_text(message, length)),
    )


def _file_recv_control(tox, friend_number, file_number, control, user_data):
    _emit(user_data, FileControlReceived(friend_number, file_number, _enum(FileControl, control)))


def _file_chunk_request(tox, friend_number, file_number, position, length, user_data):
    _emit(user_data, FileChunkRequested(friend_number, file_number, position, length))


def _file_recv(tox, friend_number, file_number, kind, file_size, filename, filename_length, user_data):
    _emit(
        user_data,
        FileReceiveRequested(
            friend_number,
            file_number,
            _enum(FileKind, kind),
            file_size,
            decode_text(filename, filename_length),
        ),
    )


def _file_recv_chunk(tox, friend_number, file_number, position, data, length, user_data):
    _emit(user_data, FileChunkReceived(friend_number, file_number, position, copy_bytes(data, length)))


def _conference_invite(tox, friend_number, conference_type, cookie, length, user_data):
    _emit(
        user_data,
        GroupInvite(friend_number, _enum(ConferenceType, conference_type), copy_bytes(cookie, length)),
    )


def _conference_connected(tox, conference_number, user_data):
    _emit(user_data, GroupConnected(conference_number))


def _conference_message(tox, conference_number, peer_number, message_type, message, length, user_data):
    text = decode_text(message, length)
    if message_type == MessageType.ACTION:
        _emit(user_data, GroupAction(conference_number, peer_number, text))
    else:
        _emit(user_data, GroupMessage(conference_number, peer_number, text))


def _conference_title(tox, conference_number, peer_number, title, length, user_data):
    _emit(user_data, GroupTitleChanged(conference_number, peer_number, decode_text(title, length)))


def _conference_peer_name(tox, conference_number, peer_number, name, length, user_data):
    _emit(user_data, GroupPeerNameChanged(conference_number, peer_number, decode_text(name, length)))


def _conference_peer_list_changed(tox, conference_number, user_data):
    _emit(user_data, GroupPeerListChanged(conference_number))


def _friend_lossy_packet(tox, friend_number, data, length, user_data):
    _emit(user_data, FriendLossyPacket(friend_number, copy_bytes(data, length)))


def _friend_lossless_packet(tox, friend_number, data, length, user_data):
    _emit(user_data, FriendLosslessPacket(friend_number, copy_bytes(data, length)))


_HANDLERS = {
    "self_connection_status": _self_connection_status,
    "friend_name": _friend_name,
    "friend_status_message": _friend_status_message,
    "friend_status": _friend_status,
    "friend_connection_status": _friend_connection_status,
    "friend_typing": _friend_typing,
    "friend_read_receipt": _friend_read_receipt,
    "friend_request": _friend_request,
    "friend_message": _friend_message,
    "file_recv_control": _file_recv_control,
    "file_chunk_request": _file_chunk_request,
    "file_recv": _file_recv,
    "file_recv_chunk": _file_recv_chunk,
    "conference_invite": _conference_invite,
    "conference_connected": _conference_connected,
    "conference_message": _conference_message,
    "conference_title": _conference_title,
    "conference_peer_name": _conference_peer_name,
    "conference_peer_list_changed": _conference_peer_list_changed,
    "friend_lossy_packet": _friend_lossy_packet,
    "friend_lossless_packet": _friend_lossless_packet,
}

# cffi callbacks must stay referenced for as long as C may call them
_trampolines = {}


def _on_callback_error(exc_type, exc_value, tb):
    logger.error("exception in toxcore callback", exc_info=(exc_type, exc_value, tb))


def trampolines():
    """Return ``{category: cffi callback}``, building them on first use."""
    if not _trampolines:
        for name, handler in _HANDLERS.items():
            _trampolines[name] = ffi.callback(f"tox_{name}_cb *", handler, onerror=_on_callback_error)
    return _trampolines


def register_callbacks(lib, tox):
    """Install every trampoline on ``tox``; done once per session."""
    for name, callback in trampolines().items():
        getattr(lib, f"tox_callback_{name}")(tox, callback)
