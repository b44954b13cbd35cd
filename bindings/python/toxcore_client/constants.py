import enum

TOX_PUBLIC_KEY_SIZE = 32
TOX_SECRET_KEY_SIZE = 32
TOX_NOSPAM_SIZE = 4
TOX_ADDRESS_SIZE = TOX_PUBLIC_KEY_SIZE + TOX_NOSPAM_SIZE + 2
TOX_MAX_NAME_LENGTH = 128
TOX_MAX_STATUS_MESSAGE_LENGTH = 1007
TOX_MAX_FRIEND_REQUEST_LENGTH = 1016
TOX_MAX_MESSAGE_LENGTH = 1372
TOX_MAX_CUSTOM_PACKET_SIZE = 1373
# largest chunk file_recv_chunk delivers (MAX_FILE_DATA_SIZE in toxcore)
TOX_MAX_FILE_CHUNK_SIZE = 1371
TOX_HASH_LENGTH = 32
TOX_FILE_ID_LENGTH = 32
TOX_MAX_FILENAME_LENGTH = 255
TOX_MAX_HOSTNAME_LENGTH = 255
TOX_CONFERENCE_ID_SIZE = 32

UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF
UINT64_MAX = 0xFFFFFFFFFFFFFFFF
SIZE_MAX = 0xFFFFFFFFFFFFFFFF


class UserStatus(enum.IntEnum):
    NONE = 0
    AWAY = 1
    BUSY = 2


class MessageType(enum.IntEnum):
    NORMAL = 0
    ACTION = 1


class ProxyType(enum.IntEnum):
    NONE = 0
    HTTP = 1
    SOCKS5 = 2


class SavedataType(enum.IntEnum):
    NONE = 0
    TOX_SAVE = 1
    SECRET_KEY = 2


class Connection(enum.IntEnum):
    NONE = 0
    TCP = 1
    UDP = 2


class FileControl(enum.IntEnum):
    RESUME = 0
    PAUSE = 1
    CANCEL = 2


class FileKind(enum.IntEnum):
    DATA = 0
    AVATAR = 1


class ConferenceType(enum.IntEnum):
    TEXT = 0
    AV = 1
