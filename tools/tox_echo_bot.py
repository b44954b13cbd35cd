#!/usr/bin/env python3
import argparse
import logging
import os
import signal
import threading

from toxcore_client import (
    FriendMessage,
    FriendRequest,
    GroupInvite,
    MessageType,
    SelfConnectionStatusChanged,
    ToxCore,
)
from toxcore_client.config import default_root, load_savedata, load_settings, save_savedata
from toxcore_client.log import configure_logging

logger = logging.getLogger("toxcore_client.tools.echo_bot")


def open_session(settings):
    options = settings.make_options()
    core = ToxCore(options, load_savedata(settings.savedata_path))
    if not core.is_live:
        options.free()
        raise SystemExit(f"could not start toxcore: {core.constructor_error}")
    return core, options


def bootstrap(core, settings):
    for node in settings.bootstrap_nodes:
        core.bootstrap(node.host, node.port, node.public_key)
        core.add_tcp_relay(node.host, node.port, node.public_key)


def wire_echo(core, accept_all):
    @core.events.connect(FriendRequest)
    def on_request(event):
        if not accept_all:
            logger.info("ignoring friend request from %s", event.public_key.hex().upper())
            return
        friend = core.friend_add_norequest(event.public_key)
        logger.info("accepted friend request", extra={"friend_number": friend})

    @core.events.connect(FriendMessage)
    def on_message(event):
        core.friend_send_message(event.friend_number, event.message, event.message_type)

    @core.events.connect(GroupInvite)
    def on_invite(event):
        core.group_join(event.friend_number, event.cookie)

    @core.events.connect(SelfConnectionStatusChanged)
    def on_connection(event):
        logger.info("connection status: %s", getattr(event.connection, "name", event.connection))


def show_id(settings):
    core, options = open_session(settings)
    with core:
        print(core.self_get_address().hex().upper())
    options.free()


def run_bot(settings, name, accept_all):
    core, options = open_session(settings)
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    with core:
        if name is not None:
            core.self_set_name(name)
        print(f"Tox ID: {core.self_get_address().hex().upper()}")
        wire_echo(core, accept_all)
        bootstrap(core, settings)
        try:
            core.run(stop)
        finally:
            blob = core.get_savedata()
            if blob is not None:
                save_savedata(settings.savedata_path, blob)
    options.free()


def main():
    parser = argparse.ArgumentParser(description="Tox echo bot")
    parser.add_argument("--root", default=default_root(), help="Data root")
    parser.add_argument("--settings", default=None, help="Settings file (default: <root>/settings.json)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="JSON log lines")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("id", help="Print this profile's Tox ID")

    run = sub.add_parser("run", help="Echo every message back to its sender")
    run.add_argument("--name", default=None, help="Nickname to set")
    run.add_argument("--accept-all", action="store_true", help="Accept every friend request")

    args = parser.parse_args()
    root = os.path.abspath(args.root)
    settings = load_settings(args.settings, root=root)
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO)
    configure_logging(verbose=args.verbose, log_json=args.log_json, level=level)

    if args.cmd == "id":
        show_id(settings)
    elif args.cmd == "run":
        run_bot(settings, args.name, args.accept_all)


if __name__ == "__main__":
    main()
