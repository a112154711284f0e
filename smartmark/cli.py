#!/usr/bin/env python3
"""
SmartMark - personal bookmarks with live updates.

Command-line interface: sign in, list, add and delete bookmarks, and watch
the collection update live as other sessions change it.
"""
import sys
import argparse
import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.live import Live

from smartmark import __version__
from smartmark.config import init_config, get_config, set_user_setting
from smartmark.constants import BOOKMARKS_TABLE, MSG_NOT_SIGNED_IN
from smartmark.display import (
    bookmarks_table, dashboard, empty_collection, format_bookmark,
    notification_text, user_header,
)
from smartmark.errors import MalformedRecordError, NotAuthenticatedError
from smartmark.feed import ChangeFeed, PollingFeed
from smartmark.notify import Notifier
from smartmark.records import BookmarkRecord
from smartmark.store import SqlStore
from smartmark.sync import BookmarkSynchronizer

logger = logging.getLogger(__name__)


console = Console()


def output_bookmarks(bookmarks: List[BookmarkRecord], format: str = "table"):
    """Output bookmarks in the specified format."""
    if format == "table":
        if bookmarks:
            console.print(bookmarks_table(bookmarks))
        else:
            console.print(empty_collection())
    elif format == "json":
        print(json.dumps([b.to_dict() for b in bookmarks], indent=2, default=str))
    else:
        for bookmark in bookmarks:
            print(format_bookmark(bookmark, format))


def open_store() -> SqlStore:
    """Store for the configured database, signed in as the session user."""
    config = get_config()
    return SqlStore(user=config.session_user)


def open_session(store: SqlStore, feed: ChangeFeed) -> BookmarkSynchronizer:
    config = get_config()
    notifier = Notifier(timeout=config.notification_timeout)
    return BookmarkSynchronizer.open(store, feed, notifier=notifier,
                                     dedupe_inserts=config.dedupe_inserts)


def not_signed_in():
    console.print(f"[red]{MSG_NOT_SIGNED_IN}[/red]")
    sys.exit(1)


def print_notification(sync: BookmarkSynchronizer, quiet: bool = False):
    notification = sync.notification
    if notification is None or (quiet and not notification.is_error):
        return
    console.print(notification_text(notification))


# ===== Session commands =====

def cmd_login(args):
    """Sign in, creating the user on first use."""
    store = open_store()
    user = store.sign_in(args.email, full_name=args.name, avatar_url=args.avatar_url)

    path = set_user_setting("session_user", user.email)
    get_config().session_user = user.email
    logger.info(f"Saved session user to {path}")

    if not args.quiet:
        console.print("[green]Signed in as[/green] ", user_header(user))


def cmd_logout(args):
    """Forget the session user."""
    set_user_setting("session_user", None)
    get_config().session_user = None
    if not args.quiet:
        console.print("[green]Signed out[/green]")


def cmd_whoami(args):
    """Show the signed-in user."""
    store = open_store()
    user = store.get_current_user()
    if user is None:
        not_signed_in()

    info = store.info()
    if args.output == "json":
        data = user.to_dict()
        data["database"] = info
        print(json.dumps(data, indent=2, default=str))
    else:
        console.print(user_header(user))
        console.print(f"[dim]Database: {info['url']}[/dim]", soft_wrap=True)
        if "size_bytes" in info:
            console.print(f"[dim]Size: {info['size_bytes']:,} bytes[/dim]")


# ===== Bookmark commands =====

def cmd_list(args):
    """List bookmarks, newest first."""
    store = open_store()
    if store.get_current_user() is None:
        not_signed_in()

    bookmarks = []
    for row in store.select(BOOKMARKS_TABLE, order_by="created_at", descending=True):
        try:
            bookmarks.append(BookmarkRecord.from_payload(row))
        except MalformedRecordError as e:
            logger.warning(f"Skipping malformed bookmark row: {e}")

    output_bookmarks(bookmarks, args.output)


def cmd_add(args):
    """Add a bookmark."""
    store = open_store()
    try:
        with open_session(store, ChangeFeed()) as sync:
            ok = sync.add(args.title, args.url)
            print_notification(sync, args.quiet)
    except NotAuthenticatedError:
        not_signed_in()

    if not ok:
        sys.exit(1)


def cmd_delete(args):
    """Delete bookmarks by ID."""
    store = open_store()
    failed = 0
    try:
        with open_session(store, ChangeFeed()) as sync:
            for bookmark_id in args.ids:
                if not sync.remove(bookmark_id):
                    failed += 1
                print_notification(sync, args.quiet)
    except NotAuthenticatedError:
        not_signed_in()

    if args.quiet:
        print(len(args.ids) - failed)
    if failed:
        sys.exit(1)


def cmd_watch(args):
    """Live view of the collection."""
    config = get_config()
    store = open_store()
    feed = PollingFeed(store, interval=args.interval or config.poll_interval)

    try:
        sync = open_session(store, feed)
    except NotAuthenticatedError:
        not_signed_in()

    def render():
        return dashboard(sync.user, sync.bookmarks, sync.notification)

    with sync, feed:
        with Live(render(), console=console, refresh_per_second=4) as live:
            try:
                while True:
                    time.sleep(0.25)
                    live.update(render())
            except KeyboardInterrupt:
                pass


def cmd_shell(args):
    """Interactive dashboard."""
    from smartmark.shell import DashboardShell

    config = get_config()
    store = open_store()
    feed = PollingFeed(store, interval=config.poll_interval)

    try:
        sync = open_session(store, feed)
    except NotAuthenticatedError:
        not_signed_in()

    with sync, feed:
        DashboardShell(sync, console=console).cmdloop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartmark",
        description="SmartMark - personal bookmarks with live updates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  smartmark login ada@example.com --name "Ada Lovelace"
  smartmark add "Example" https://example.com
  smartmark list --output json
  smartmark delete 3 4
  smartmark watch                # live view, updates as other sessions change bookmarks
  smartmark shell                # interactive dashboard

Configuration:
  Default database: ./smartmark.db or from config
  Config file: ~/.config/smartmark/config.toml
  Environment: SMARTMARK_DATABASE, SMARTMARK_DATABASE_URL, SMARTMARK_POLL_INTERVAL
        """
    )

    # Global options
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", help="Database file (default: smartmark.db)")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal output")
    parser.add_argument("-o", "--output", choices=["table", "json", "plain", "urls"],
                        help="Output format")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    login = subparsers.add_parser("login", help="Sign in")
    login.add_argument("email", help="Email address")
    login.add_argument("--name", help="Display name")
    login.add_argument("--avatar-url", help="Avatar image URL")
    login.set_defaults(func=cmd_login)

    logout = subparsers.add_parser("logout", help="Sign out")
    logout.set_defaults(func=cmd_logout)

    whoami = subparsers.add_parser("whoami", help="Show the signed-in user")
    whoami.set_defaults(func=cmd_whoami)

    list_parser = subparsers.add_parser("list", help="List bookmarks")
    list_parser.set_defaults(func=cmd_list)

    add = subparsers.add_parser("add", help="Add a bookmark")
    add.add_argument("title", help="Bookmark title")
    add.add_argument("url", help="Absolute URL, e.g. https://example.com")
    add.set_defaults(func=cmd_add)

    delete = subparsers.add_parser("delete", help="Delete bookmarks")
    delete.add_argument("ids", type=int, nargs="+", help="Bookmark IDs")
    delete.set_defaults(func=cmd_delete)

    watch = subparsers.add_parser("watch", help="Live view of your bookmarks")
    watch.add_argument("--interval", type=float, help="Seconds between change checks")
    watch.set_defaults(func=cmd_watch)

    shell = subparsers.add_parser("shell", help="Interactive dashboard")
    shell.set_defaults(func=cmd_shell)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config:
        get_config(reload=True, config_file=Path(args.config))

    config = init_config(database=args.db, output_format=args.output, log_level=args.log_level)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.WARNING),
        format='%(levelname)s: %(message)s'
    )
    if not config.color_output:
        console.no_color = True

    if not args.output:
        args.output = config.output_format

    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
