"""Friend and group records kept current from a ToxCore's events.

Numbers are issued by libtoxcore and are only meaningful within one
session. A deleted friend's or group's number may be handed out again, so
records are dropped on deletion and recreated on reuse.
"""
import logging

from .constants import Connection, UserStatus
from .events import (
    FriendConnectionStatusChanged,
    FriendMessage,
    FriendNameChanged,
    FriendStatusChanged,
    FriendStatusMessageChanged,
    GroupAction,
    GroupMessage,
    GroupPeerListChanged,
    GroupPeerNameChanged,
    GroupTitleChanged,
)

logger = logging.getLogger(__name__)


class Friend:
    def __init__(self, friend_number, public_key=b"", name=""):
        self.friend_number = friend_number
        self.public_key = public_key
        self.name = name
        self.alias = ""
        self.status_message = ""
        self.status = UserStatus.NONE
        self.connection = Connection.NONE
        self.has_new_events = False

    @property
    def displayed_name(self):
        """Alias if set, else the friend's own name, else its public key in hex."""
        if self.alias:
            return self.alias
        if self.name:
            return self.name
        return self.public_key.hex().upper()

    @property
    def online(self):
        return self.connection != Connection.NONE

    def __repr__(self):
        return f"<Friend {self.friend_number} {self.displayed_name!r}>"


class Group:
    def __init__(self, group_number, title=""):
        self.group_number = group_number
        self.title = title
        self.peers = []
        self.has_new_messages = False
        self.user_was_mentioned = False

    def __repr__(self):
        return f"<Group {self.group_number} {self.title!r}>"


class Profile:
    """Friends and groups of one ToxCore, keyed by their numbers."""

    def __init__(self, core):
        self.core = core
        self.friends = {}
        self.groups = {}
        events = core.events
        events.connect(FriendNameChanged, self._on_friend_name)
        events.connect(FriendStatusMessageChanged, self._on_friend_status_message)
        events.connect(FriendStatusChanged, self._on_friend_status)
        events.connect(FriendConnectionStatusChanged, self._on_friend_connection)
        events.connect(FriendMessage, self._on_friend_message)
        events.connect(GroupMessage, self._on_group_message)
        events.connect(GroupAction, self._on_group_message)
        events.connect(GroupTitleChanged, self._on_group_title)
        events.connect(GroupPeerListChanged, self._on_group_peers)
        events.connect(GroupPeerNameChanged, self._on_group_peers)

    def load(self):
        """Rebuild both maps from the session's current friend and group lists."""
        self.friends.clear()
        self.groups.clear()
        for friend_number in self.core.self_get_friend_list() or ():
            self._track_friend(friend_number)
        for group_number in self.core.group_list() or ():
            self._track_group(group_number)
            self._refresh_peers(group_number)
        logger.debug("loaded %d friends and %d groups", len(self.friends), len(self.groups))

    def _track_friend(self, friend_number):
        friend = Friend(
            friend_number,
            self.core.friend_get_public_key(friend_number) or b"",
            self.core.friend_get_name(friend_number) or "",
        )
        friend.status_message = self.core.friend_get_status_message(friend_number) or ""
        self.friends[friend_number] = friend
        return friend

    def _track_group(self, group_number):
        group = Group(group_number, self.core.group_get_title(group_number) or "")
        self.groups[group_number] = group
        return group

    def friend(self, friend_number):
        friend = self.friends.get(friend_number)
        if friend is None:
            friend = self._track_friend(friend_number)
        return friend

    def group(self, group_number):
        group = self.groups.get(group_number)
        if group is None:
            group = self._track_group(group_number)
        return group

    def add_friend(self, address, message):
        friend_number = self.core.friend_add(address, message)
        if friend_number is None:
            return None
        return self._track_friend(friend_number)

    def add_friend_norequest(self, public_key):
        friend_number = self.core.friend_add_norequest(public_key)
        if friend_number is None:
            return None
        return self._track_friend(friend_number)

    def remove_friend(self, friend_number):
        if not self.core.friend_delete(friend_number):
            return False
        self.friends.pop(friend_number, None)
        return True

    def new_group(self):
        group_number = self.core.group_new()
        if group_number is None:
            return None
        return self._track_group(group_number)

    def join_group(self, friend_number, cookie):
        group_number = self.core.group_join(friend_number, cookie)
        if group_number is None:
            return None
        return self._track_group(group_number)

    def remove_group(self, group_number):
        if not self.core.group_delete(group_number):
            return False
        self.groups.pop(group_number, None)
        return True

    def _refresh_peers(self, group_number):
        names = self.core.group_get_names(group_number)
        if names is not None:
            self.group(group_number).peers = names

    def _on_friend_name(self, event):
        self.friend(event.friend_number).name = event.name

    def _on_friend_status_message(self, event):
        self.friend(event.friend_number).status_message = event.message

    def _on_friend_status(self, event):
        self.friend(event.friend_number).status = event.status

    def _on_friend_connection(self, event):
        self.friend(event.friend_number).connection = event.connection

    def _on_friend_message(self, event):
        self.friend(event.friend_number).has_new_events = True

    def _on_group_message(self, event):
        group = self.group(event.group_number)
        group.has_new_messages = True
        if self.core.group_peer_number_is_ours(event.group_number, event.peer_number):
            return
        text = getattr(event, "message", None) or getattr(event, "action", "")
        name = self.core.self_get_name()
        if name and name.lower() in text.lower():
            group.user_was_mentioned = True

    def _on_group_title(self, event):
        self.group(event.group_number).title = event.title

    def _on_group_peers(self, event):
        self._refresh_peers(event.group_number)
