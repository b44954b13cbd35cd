"""
Shared pytest fixtures: an in-memory libtoxcore stand-in.

FakeToxLib exposes the same entry points the bindings call on the real
shared library and works on the same cffi ``ffi`` objects (error
out-parameters, caller buffers, callback function pointers), so the
bindings run unmodified against it.
"""
from __future__ import annotations

import hashlib

import pytest

from toxcore_client._ffi import enum_value, ffi
from toxcore_client.constants import SIZE_MAX, UINT32_MAX

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SELF_PUBLIC_KEY = bytes(range(32))
SELF_SECRET_KEY = bytes(range(32, 64))
FRIEND_KEY = bytes([0xAB] * 32)
OTHER_KEY = bytes([0xCD] * 32)
BOOTSTRAP_KEY = bytes.fromhex(
    "F404ABAA1C99A9D37D61AB54898F56793E1DEF8BD46B1038B9D822E8460FAB67"
)
SAVE_MAGIC = b"fake-tox-save:"

_OPTION_DEFAULTS = {
    "ipv6_enabled": True,
    "udp_enabled": True,
    "local_discovery_enabled": True,
    "hole_punching_enabled": True,
    "proxy_type": 0,
    "proxy_host": ffi.NULL,
    "proxy_port": 0,
    "start_port": 0,
    "end_port": 0,
    "tcp_port": 0,
    "savedata_type": 0,
}


def err_code(err_type, suffix):
    return enum_value(err_type, f"{err_type}_{suffix}")


def u8(data):
    """``(pointer, length)`` for handing ``data`` to a callback."""
    data = bytes(data)
    return ffi.new("uint8_t[]", list(data)), len(data)


def read(ptr, length):
    if ptr == ffi.NULL or not length:
        return b""
    return bytes(ffi.buffer(ptr, length))


def write(buf, data):
    if data:
        ffi.memmove(buf, data, len(data))


class FakeFriend:
    def __init__(self, public_key, name=b"", status_message=b""):
        self.public_key = public_key
        self.name = name
        self.status_message = status_message
        self.status = 0
        self.connection = 0
        self.typing = False
        self.last_online = 1700000000


class FakeConference:
    def __init__(self, title=b""):
        self.title = title
        # (name, public key, ours)
        self.peers = [(b"me", SELF_PUBLIC_KEY, True)]


class FakeToxLib:
    """Just enough libtoxcore for the bindings; records every entry point called."""

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.new_error = None
        self.options = {}
        self._option_refs = {}
        self.tox = None
        self.killed = 0
        self.callbacks = {}
        self.pending = []
        self.interval = 50
        self.loaded_savedata = b""
        self.name = b""
        self.status_message = b""
        self.status = 0
        self.nospam = 0x12345678
        self.connection = 0
        self.friends = {}
        self.conferences = {}
        self.sent_messages = []
        self.sent_packets = []
        self.sent_chunks = []
        self.bootstrapped = []
        self.next_message_id = 1

    # -- helpers -----------------------------------------------------------

    def _enter(self, name, err=None, err_type=None, default="OK"):
        self.calls.append(name)
        code = self.fail.get(name)
        if err is not None:
            err[0] = code if code is not None else err_code(err_type, default)
        return code

    def count(self, name):
        return self.calls.count(name)

    def queue(self, category, *args):
        """Schedule a callback to fire on the next ``tox_iterate``."""
        self.pending.append((category, args))

    @staticmethod
    def _free_number(table):
        number = 0
        while number in table:
            number += 1
        return number

    def _options_of(self, options):
        return self.options[int(ffi.cast("uintptr_t", options))]

    def __getattr__(self, name):
        if name.startswith("tox_options_get_"):
            key = name[len("tox_options_get_"):]
            return lambda options: self._options_of(options)[key]
        if name.startswith("tox_options_set_"):
            key = name[len("tox_options_set_"):]

            def setter(options, value):
                self._options_of(options)[key] = value
            return setter
        if name.startswith("tox_callback_"):
            category = name[len("tox_callback_"):]

            def register(tox, callback):
                self.calls.append(name)
                self.callbacks[category] = callback
            return register
        raise AttributeError(name)

    # -- version -----------------------------------------------------------

    def tox_version_major(self):
        return 0

    def tox_version_minor(self):
        return 2

    def tox_version_patch(self):
        return 18

    def tox_version_is_compatible(self, major, minor, patch):
        return major == 0 and minor == 2 and patch <= 18

    # -- options -----------------------------------------------------------

    def tox_options_new(self, err):
        if self._enter("tox_options_new", err, "TOX_ERR_OPTIONS_NEW") is not None:
            return ffi.NULL
        ref = ffi.new("char[]", 1)
        key = int(ffi.cast("uintptr_t", ref))
        self._option_refs[key] = ref
        self.options[key] = dict(_OPTION_DEFAULTS, savedata_data=b"")
        return ffi.cast("Tox_Options *", ref)

    def tox_options_default(self, options):
        self._options_of(options).update(_OPTION_DEFAULTS, savedata_data=b"")

    def tox_options_free(self, options):
        self.calls.append("tox_options_free")
        key = int(ffi.cast("uintptr_t", options))
        del self.options[key]
        del self._option_refs[key]

    def tox_options_set_savedata_data(self, options, data, length):
        self._options_of(options)["savedata_data"] = read(data, length)

    # -- lifecycle ---------------------------------------------------------

    def tox_new(self, options, err):
        self.calls.append("tox_new")
        opts = self._options_of(options)
        code = "OK"
        if opts["savedata_type"] == 1:
            blob = opts["savedata_data"]
            if blob.startswith(SAVE_MAGIC):
                self.loaded_savedata = blob
                self.name = blob[len(SAVE_MAGIC):]
            else:
                code = "LOAD_BAD_FORMAT"
        if self.new_error is not None:
            code = self.new_error
        err[0] = err_code("TOX_ERR_NEW", code)
        if code not in ("OK", "LOAD_BAD_FORMAT"):
            return ffi.NULL
        self.tox = ffi.cast("Tox *", 0x70C)
        return self.tox

    def tox_kill(self, tox):
        self.calls.append("tox_kill")
        self.killed += 1

    def tox_get_savedata_size(self, tox):
        self.calls.append("tox_get_savedata_size")
        return len(SAVE_MAGIC + self.name)

    def tox_get_savedata(self, tox, buf):
        self.calls.append("tox_get_savedata")
        write(buf, SAVE_MAGIC + self.name)

    # -- network -----------------------------------------------------------

    def tox_bootstrap(self, tox, host, port, public_key, err):
        if self._enter("tox_bootstrap", err, "TOX_ERR_BOOTSTRAP") is not None:
            return False
        self.bootstrapped.append(("udp", host, port, read(public_key, 32)))
        return True

    def tox_add_tcp_relay(self, tox, host, port, public_key, err):
        if self._enter("tox_add_tcp_relay", err, "TOX_ERR_BOOTSTRAP") is not None:
            return False
        self.bootstrapped.append(("tcp", host, port, read(public_key, 32)))
        return True

    def tox_self_get_connection_status(self, tox):
        self.calls.append("tox_self_get_connection_status")
        return self.connection

    def tox_iteration_interval(self, tox):
        self.calls.append("tox_iteration_interval")
        return self.interval

    def tox_iterate(self, tox, user_data):
        self.calls.append("tox_iterate")
        pending, self.pending = self.pending, []
        for category, args in pending:
            self.callbacks[category](tox, *args, user_data)

    # -- self --------------------------------------------------------------

    def tox_self_get_address(self, tox, buf):
        self.calls.append("tox_self_get_address")
        write(buf, SELF_PUBLIC_KEY + self.nospam.to_bytes(4, "big") + b"\x00\x00")

    def tox_self_set_nospam(self, tox, nospam):
        self.calls.append("tox_self_set_nospam")
        self.nospam = nospam

    def tox_self_get_nospam(self, tox):
        self.calls.append("tox_self_get_nospam")
        return self.nospam

    def tox_self_get_public_key(self, tox, buf):
        self.calls.append("tox_self_get_public_key")
        write(buf, SELF_PUBLIC_KEY)

    def tox_self_get_secret_key(self, tox, buf):
        self.calls.append("tox_self_get_secret_key")
        write(buf, SELF_SECRET_KEY)

    def tox_self_get_dht_id(self, tox, buf):
        self.calls.append("tox_self_get_dht_id")
        write(buf, bytes(reversed(SELF_PUBLIC_KEY)))

    def tox_self_set_name(self, tox, name, length, err):
        if self._enter("tox_self_set_name", err, "TOX_ERR_SET_INFO") is not None:
            return False
        self.name = read(name, length)
        return True

    def tox_self_get_name_size(self, tox):
        self.calls.append("tox_self_get_name_size")
        return len(self.name)

    def tox_self_get_name(self, tox, buf):
        self.calls.append("tox_self_get_name")
        write(buf, self.name)

    def tox_self_set_status_message(self, tox, message, length, err):
        if self._enter("tox_self_set_status_message", err, "TOX_ERR_SET_INFO") is not None:
            return False
        self.status_message = read(message, length)
        return True

    def tox_self_get_status_message_size(self, tox):
        self.calls.append("tox_self_get_status_message_size")
        return len(self.status_message)

    def tox_self_get_status_message(self, tox, buf):
        self.calls.append("tox_self_get_status_message")
        write(buf, self.status_message)

    def tox_self_set_status(self, tox, status):
        self.calls.append("tox_self_set_status")
        self.status = status

    def tox_self_get_status(self, tox):
        self.calls.append("tox_self_get_status")
        return self.status

    def tox_self_get_udp_port(self, tox, err):
        if self._enter("tox_self_get_udp_port", err, "TOX_ERR_GET_PORT") is not None:
            return 0
        return 33445

    def tox_self_get_tcp_port(self, tox, err):
        self._enter("tox_self_get_tcp_port", err, "TOX_ERR_GET_PORT", default="NOT_BOUND")
        return 0

    def tox_self_get_friend_list_size(self, tox):
        self.calls.append("tox_self_get_friend_list_size")
        return len(self.friends)

    def tox_self_get_friend_list(self, tox, buf):
        self.calls.append("tox_self_get_friend_list")
        for index, number in enumerate(sorted(self.friends)):
            buf[index] = number

    def tox_self_set_typing(self, tox, friend_number, typing, err):
        if friend_number not in self.friends:
            self._enter("tox_self_set_typing", err, "TOX_ERR_SET_TYPING", "FRIEND_NOT_FOUND")
            return False
        self._enter("tox_self_set_typing", err, "TOX_ERR_SET_TYPING")
        return True

    # -- friends -----------------------------------------------------------

    def _add(self, name, public_key, err):
        if public_key == SELF_PUBLIC_KEY:
            self._enter(name, err, "TOX_ERR_FRIEND_ADD", "OWN_KEY")
            return UINT32_MAX
        if any(f.public_key == public_key for f in self.friends.values()):
            self._enter(name, err, "TOX_ERR_FRIEND_ADD", "ALREADY_SENT")
            return UINT32_MAX
        self._enter(name, err, "TOX_ERR_FRIEND_ADD")
        number = self._free_number(self.friends)
        self.friends[number] = FakeFriend(public_key)
        return number

    def tox_friend_add(self, tox, address, message, length, err):
        return self._add("tox_friend_add", read(address, 38)[:32], err)

    def tox_friend_add_norequest(self, tox, public_key, err):
        return self._add("tox_friend_add_norequest", read(public_key, 32), err)

    def tox_friend_delete(self, tox, friend_number, err):
        if friend_number not in self.friends:
            self._enter("tox_friend_delete", err, "TOX_ERR_FRIEND_DELETE", "FRIEND_NOT_FOUND")
            return False
        self._enter("tox_friend_delete", err, "TOX_ERR_FRIEND_DELETE")
        del self.friends[friend_number]
        return True

    def tox_friend_by_public_key(self, tox, public_key, err):
        key = read(public_key, 32)
        for number, friend in self.friends.items():
            if friend.public_key == key:
                self._enter("tox_friend_by_public_key", err, "TOX_ERR_FRIEND_BY_PUBLIC_KEY")
                return number
        self._enter("tox_friend_by_public_key", err, "TOX_ERR_FRIEND_BY_PUBLIC_KEY", "NOT_FOUND")
        return UINT32_MAX

    def tox_friend_exists(self, tox, friend_number):
        self.calls.append("tox_friend_exists")
        return friend_number in self.friends

    def tox_friend_get_public_key(self, tox, friend_number, buf, err):
        friend = self.friends.get(friend_number)
        if friend is None:
            self._enter(
                "tox_friend_get_public_key", err, "TOX_ERR_FRIEND_GET_PUBLIC_KEY", "FRIEND_NOT_FOUND"
            )
            return False
        self._enter("tox_friend_get_public_key", err, "TOX_ERR_FRIEND_GET_PUBLIC_KEY")
        write(buf, friend.public_key)
        return True

    def tox_friend_get_last_online(self, tox, friend_number, err):
        friend = self.friends.get(friend_number)
        if friend is None:
            self._enter(
                "tox_friend_get_last_online", err, "TOX_ERR_FRIEND_GET_LAST_ONLINE", "FRIEND_NOT_FOUND"
            )
            return 0xFFFFFFFFFFFFFFFF
        self._enter("tox_friend_get_last_online", err, "TOX_ERR_FRIEND_GET_LAST_ONLINE")
        return friend.last_online

    def _query(self, name, friend_number, err, missing):
        friend = self.friends.get(friend_number)
        if friend is None:
            self._enter(name, err, "TOX_ERR_FRIEND_QUERY", "FRIEND_NOT_FOUND")
            return None, missing
        if self._enter(name, err, "TOX_ERR_FRIEND_QUERY") is not None:
            return None, missing
        return friend, None

    def tox_friend_get_name_size(self, tox, friend_number, err):
        friend, missing = self._query("tox_friend_get_name_size", friend_number, err, SIZE_MAX)
        return missing if friend is None else len(friend.name)

    def tox_friend_get_name(self, tox, friend_number, buf, err):
        friend, _ = self._query("tox_friend_get_name", friend_number, err, False)
        if friend is None:
            return False
        write(buf, friend.name)
        return True

    def tox_friend_get_status_message_size(self, tox, friend_number, err):
        friend, missing = self._query(
            "tox_friend_get_status_message_size", friend_number, err, SIZE_MAX
        )
        return missing if friend is None else len(friend.status_message)

    def tox_friend_get_status_message(self, tox, friend_number, buf, err):
        friend, _ = self._query("tox_friend_get_status_message", friend_number, err, False)
        if friend is None:
            return False
        write(buf, friend.status_message)
        return True

    def tox_friend_get_status(self, tox, friend_number, err):
        friend, missing = self._query("tox_friend_get_status", friend_number, err, 0)
        return missing if friend is None else friend.status

    def tox_friend_get_connection_status(self, tox, friend_number, err):
        friend, missing = self._query("tox_friend_get_connection_status", friend_number, err, 0)
        return missing if friend is None else friend.connection

    def tox_friend_get_typing(self, tox, friend_number, err):
        friend, missing = self._query("tox_friend_get_typing", friend_number, err, False)
        return missing if friend is None else friend.typing

    def tox_friend_send_message(self, tox, friend_number, message_type, message, length, err):
        name = "tox_friend_send_message"
        if friend_number not in self.friends:
            self._enter(name, err, "TOX_ERR_FRIEND_SEND_MESSAGE", "FRIEND_NOT_FOUND")
            return 0
        if self._enter(name, err, "TOX_ERR_FRIEND_SEND_MESSAGE") is not None:
            return 0
        self.sent_messages.append((friend_number, message_type, read(message, length)))
        message_id = self.next_message_id
        self.next_message_id += 1
        return message_id

    def tox_hash(self, out, data, length):
        self.calls.append("tox_hash")
        write(out, hashlib.sha256(read(data, length)).digest())
        return True

    # -- files -------------------------------------------------------------

    def tox_file_control(self, tox, friend_number, file_number, control, err):
        if friend_number not in self.friends:
            self._enter("tox_file_control", err, "TOX_ERR_FILE_CONTROL", "FRIEND_NOT_FOUND")
            return False
        self._enter("tox_file_control", err, "TOX_ERR_FILE_CONTROL")
        return True

    def tox_file_seek(self, tox, friend_number, file_number, position, err):
        return self._enter("tox_file_seek", err, "TOX_ERR_FILE_SEEK") is None

    def tox_file_get_file_id(self, tox, friend_number, file_number, buf, err):
        if self._enter("tox_file_get_file_id", err, "TOX_ERR_FILE_GET") is not None:
            return False
        write(buf, bytes([file_number]) * 32)
        return True

    def tox_file_send(self, tox, friend_number, kind, file_size, file_id, filename, length, err):
        if self._enter("tox_file_send", err, "TOX_ERR_FILE_SEND") is not None:
            return UINT32_MAX
        self.last_file_send = (friend_number, kind, file_size, file_id == ffi.NULL, read(filename, length))
        return 0

    def tox_file_send_chunk(self, tox, friend_number, file_number, position, data, length, err):
        if self._enter("tox_file_send_chunk", err, "TOX_ERR_FILE_SEND_CHUNK") is not None:
            return False
        self.sent_chunks.append((friend_number, file_number, position, read(data, length)))
        return True

    # -- conferences -------------------------------------------------------

    def tox_conference_new(self, tox, err):
        if self._enter("tox_conference_new", err, "TOX_ERR_CONFERENCE_NEW") is not None:
            return UINT32_MAX
        number = self._free_number(self.conferences)
        self.conferences[number] = FakeConference()
        return number

    def tox_conference_delete(self, tox, number, err):
        if number not in self.conferences:
            self._enter("tox_conference_delete", err, "TOX_ERR_CONFERENCE_DELETE", "CONFERENCE_NOT_FOUND")
            return False
        self._enter("tox_conference_delete", err, "TOX_ERR_CONFERENCE_DELETE")
        del self.conferences[number]
        return True

    def _peer(self, name, number, peer_number, err):
        conference = self.conferences.get(number)
        if conference is None:
            self._enter(name, err, "TOX_ERR_CONFERENCE_PEER_QUERY", "CONFERENCE_NOT_FOUND")
            return None
        if peer_number is not None and peer_number >= len(conference.peers):
            self._enter(name, err, "TOX_ERR_CONFERENCE_PEER_QUERY", "PEER_NOT_FOUND")
            return None
        if self._enter(name, err, "TOX_ERR_CONFERENCE_PEER_QUERY") is not None:
            return None
        if peer_number is None:
            return conference
        return conference.peers[peer_number]

    def tox_conference_peer_count(self, tox, number, err):
        conference = self._peer("tox_conference_peer_count", number, None, err)
        return UINT32_MAX if conference is None else len(conference.peers)

    def tox_conference_peer_get_name_size(self, tox, number, peer_number, err):
        peer = self._peer("tox_conference_peer_get_name_size", number, peer_number, err)
        return SIZE_MAX if peer is None else len(peer[0])

    def tox_conference_peer_get_name(self, tox, number, peer_number, buf, err):
        peer = self._peer("tox_conference_peer_get_name", number, peer_number, err)
        if peer is None:
            return False
        write(buf, peer[0])
        return True

    def tox_conference_peer_get_public_key(self, tox, number, peer_number, buf, err):
        peer = self._peer("tox_conference_peer_get_public_key", number, peer_number, err)
        if peer is None:
            return False
        write(buf, peer[1])
        return True

    def tox_conference_peer_number_is_ours(self, tox, number, peer_number, err):
        peer = self._peer("tox_conference_peer_number_is_ours", number, peer_number, err)
        return False if peer is None else peer[2]

    def tox_conference_invite(self, tox, friend_number, number, err):
        if number not in self.conferences:
            self._enter("tox_conference_invite", err, "TOX_ERR_CONFERENCE_INVITE", "CONFERENCE_NOT_FOUND")
            return False
        self._enter("tox_conference_invite", err, "TOX_ERR_CONFERENCE_INVITE")
        return True

    def tox_conference_join(self, tox, friend_number, cookie, length, err):
        if friend_number not in self.friends:
            self._enter("tox_conference_join", err, "TOX_ERR_CONFERENCE_JOIN", "FRIEND_NOT_FOUND")
            return UINT32_MAX
        if not length:
            self._enter("tox_conference_join", err, "TOX_ERR_CONFERENCE_JOIN", "INVALID_LENGTH")
            return UINT32_MAX
        self._enter("tox_conference_join", err, "TOX_ERR_CONFERENCE_JOIN")
        number = self._free_number(self.conferences)
        self.conferences[number] = FakeConference(b"joined")
        return number

    def tox_conference_send_message(self, tox, number, message_type, message, length, err):
        name = "tox_conference_send_message"
        if number not in self.conferences:
            self._enter(name, err, "TOX_ERR_CONFERENCE_SEND_MESSAGE", "CONFERENCE_NOT_FOUND")
            return False
        self._enter(name, err, "TOX_ERR_CONFERENCE_SEND_MESSAGE")
        self.sent_messages.append((("group", number), message_type, read(message, length)))
        return True

    def tox_conference_get_title_size(self, tox, number, err):
        if number not in self.conferences:
            self._enter("tox_conference_get_title_size", err, "TOX_ERR_CONFERENCE_TITLE", "CONFERENCE_NOT_FOUND")
            return SIZE_MAX
        self._enter("tox_conference_get_title_size", err, "TOX_ERR_CONFERENCE_TITLE")
        return len(self.conferences[number].title)

    def tox_conference_get_title(self, tox, number, buf, err):
        if number not in self.conferences:
            self._enter("tox_conference_get_title", err, "TOX_ERR_CONFERENCE_TITLE", "CONFERENCE_NOT_FOUND")
            return False
        self._enter("tox_conference_get_title", err, "TOX_ERR_CONFERENCE_TITLE")
        write(buf, self.conferences[number].title)
        return True

    def tox_conference_set_title(self, tox, number, title, length, err):
        if number not in self.conferences:
            self._enter("tox_conference_set_title", err, "TOX_ERR_CONFERENCE_TITLE", "CONFERENCE_NOT_FOUND")
            return False
        self._enter("tox_conference_set_title", err, "TOX_ERR_CONFERENCE_TITLE")
        self.conferences[number].title = read(title, length)
        return True

    def tox_conference_get_chatlist_size(self, tox):
        self.calls.append("tox_conference_get_chatlist_size")
        return len(self.conferences)

    def tox_conference_get_chatlist(self, tox, buf):
        self.calls.append("tox_conference_get_chatlist")
        for index, number in enumerate(sorted(self.conferences)):
            buf[index] = number

    def tox_conference_get_type(self, tox, number, err):
        if number not in self.conferences:
            self._enter("tox_conference_get_type", err, "TOX_ERR_CONFERENCE_GET_TYPE", "CONFERENCE_NOT_FOUND")
            return 0
        self._enter("tox_conference_get_type", err, "TOX_ERR_CONFERENCE_GET_TYPE")
        return 0

    # -- custom packets ----------------------------------------------------

    def _packet(self, name, friend_number, data, length, err):
        if friend_number not in self.friends:
            self._enter(name, err, "TOX_ERR_FRIEND_CUSTOM_PACKET", "FRIEND_NOT_FOUND")
            return False
        if self._enter(name, err, "TOX_ERR_FRIEND_CUSTOM_PACKET") is not None:
            return False
        self.sent_packets.append((name, friend_number, read(data, length)))
        return True

    def tox_friend_send_lossy_packet(self, tox, friend_number, data, length, err):
        return self._packet("tox_friend_send_lossy_packet", friend_number, data, length, err)

    def tox_friend_send_lossless_packet(self, tox, friend_number, data, length, err):
        return self._packet("tox_friend_send_lossless_packet", friend_number, data, length, err)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def fake() -> FakeToxLib:
    return FakeToxLib()


@pytest.fixture()
def core(fake):
    from toxcore_client import ToxCore

    session = ToxCore(library=fake)
    yield session
    session.kill()
