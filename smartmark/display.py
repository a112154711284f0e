"""
Rendering helpers shared by the CLI and the interactive shell.
"""
import json
from typing import Iterable, Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from smartmark.notify import Notification
from smartmark.records import BookmarkRecord, UserRecord


def format_bookmark(bookmark: BookmarkRecord, format: str = "plain") -> str:
    """Format a bookmark for line-oriented output."""
    if format == "json":
        return json.dumps(bookmark.to_dict(), default=str)
    elif format == "urls":
        return bookmark.url
    else:  # plain
        return f"[{bookmark.id}] {bookmark.title}\n    {bookmark.url}"


def bookmarks_table(bookmarks: Iterable[BookmarkRecord], title: str = "Your Collection") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="green")
    table.add_column("URL", style="blue")
    table.add_column("Added", style="dim")

    for bookmark in bookmarks:
        added = bookmark.created_at.strftime("%Y-%m-%d %H:%M") if bookmark.created_at else ""
        table.add_row(str(bookmark.id), bookmark.title[:50], bookmark.url[:60], added)

    return table


def empty_collection() -> Text:
    return Text("No bookmarks yet.\nAdd your first one to get started!", style="dim")


def notification_text(notification: Optional[Notification]) -> Optional[Text]:
    """One-line rendering of a notification (None when idle)."""
    if notification is None:
        return None
    if notification.is_error:
        return Text(f"✗ {notification.message}", style="bold red")
    return Text(f"✓ {notification.message}", style="bold green")


def user_header(user: UserRecord) -> Text:
    header = Text()
    header.append(f"({user.initial}) ", style="bold magenta")
    header.append(user.display_name, style="bold")
    if user.display_name != user.email:
        header.append(f"  <{user.email}>", style="dim")
    return header


def dashboard(user: UserRecord, bookmarks: Iterable[BookmarkRecord],
              notification: Optional[Notification] = None) -> Panel:
    """The live dashboard view: header, collection, current notification."""
    bookmarks = list(bookmarks)
    parts = [user_header(user)]
    parts.append(bookmarks_table(bookmarks) if bookmarks else empty_collection())
    toast = notification_text(notification)
    if toast is not None:
        parts.append(toast)
    return Panel(Group(*parts), title="SmartMark", subtitle="Ctrl+C to exit", border_style="blue")
