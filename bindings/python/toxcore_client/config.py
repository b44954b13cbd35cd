"""On-disk settings and profile save data for toxcore_client tools.

Layout under the root directory::

    <root>/settings.json
    <root>/profiles/<profile>.tox
"""
import dataclasses
import json
import logging
import os
import tempfile

from .options import ToxOptions

logger = logging.getLogger(__name__)

SETTINGS_NAME = "settings.json"
DEFAULT_PROFILE = "default"


def default_root():
    env = os.environ.get("TOXCORE_CLIENT_DIR")
    if env:
        return env
    appdata = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
    if appdata:
        return os.path.join(appdata, "toxcore_client")
    return os.path.expanduser("~/.toxcore_client")


def settings_path(root):
    return os.path.join(root, SETTINGS_NAME)


def profile_path(root, profile):
    return os.path.join(root, "profiles", f"{profile}.tox")


@dataclasses.dataclass(frozen=True)
class BootstrapNode:
    host: str
    port: int
    public_key: bytes

    @classmethod
    def from_mapping(cls, values):
        try:
            host = str(values["host"])
            port = int(values["port"])
            public_key = bytes.fromhex(values["public_key"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid bootstrap node {values!r}: {exc}") from exc
        return cls(host, port, public_key)


@dataclasses.dataclass
class Settings:
    root: str
    profile: str = DEFAULT_PROFILE
    options: dict = dataclasses.field(default_factory=dict)
    bootstrap_nodes: list = dataclasses.field(default_factory=list)
    savedata_path: str = ""
    log_level: str = "WARNING"

    def __post_init__(self):
        if not self.savedata_path:
            self.savedata_path = profile_path(self.root, self.profile)

    def make_options(self, library=None):
        return ToxOptions.from_mapping(self.options, library=library)


def load_settings(path=None, root=None):
    """Read settings JSON; a missing file yields defaults.

    Raises ValueError for a file that is not a JSON object or has a bad
    bootstrap node entry.
    """
    root = root or default_root()
    path = path or settings_path(root)
    if not os.path.isfile(path):
        logger.debug("no settings file at %s, using defaults", path)
        return Settings(root=root)
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: settings must be a JSON object")
    nodes = [BootstrapNode.from_mapping(node) for node in data.get("bootstrap_nodes", [])]
    return Settings(
        root=root,
        profile=data.get("profile", DEFAULT_PROFILE),
        options=dict(data.get("options", {})),
        bootstrap_nodes=nodes,
        savedata_path=data.get("savedata_path", ""),
        log_level=str(data.get("log_level", "WARNING")).upper(),
    )


def load_savedata(path):
    """Return the saved blob, or b"" when there is none yet."""
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except FileNotFoundError:
        return b""


def save_savedata(path, data):
    """Write ``data`` to ``path`` atomically; a crash leaves the old file intact."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".savedata-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    logger.debug("saved %d bytes of profile data to %s", len(data), path)
