"""Python bindings for libtoxcore (c-toxcore 0.2.x) over cffi."""
from .calls import BoundaryError
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
    ConferenceType,
    Connection,
    FileControl,
    FileKind,
    MessageType,
    ProxyType,
    UserStatus,
)
from .core import SessionState, ToxCore, is_compatible, version
from .events import (
    EVENT_TYPES,
    EventBridge,
    FileChunkReceived,
    FileChunkRequested,
    FileControlReceived,
    FileReceiveRequested,
    FriendConnectionStatusChanged,
    FriendLosslessPacket,
    FriendLossyPacket,
    FriendMessage,
    FriendNameChanged,
    FriendReadReceipt,
    FriendRequest,
    FriendStatusChanged,
    FriendStatusMessageChanged,
    FriendTypingChanged,
    GroupAction,
    GroupConnected,
    GroupInvite,
    GroupMessage,
    GroupPeerListChanged,
    GroupPeerNameChanged,
    GroupTitleChanged,
    SelfConnectionStatusChanged,
)
from .exceptions import ToxAbiError, ToxError, ToxLibraryError, ToxMemoryError
from .options import ToxOptions
from .records import Friend, Group, Profile
