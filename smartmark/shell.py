#!/usr/bin/env python3
"""
SmartMark Shell - an interactive dashboard for one signed-in session.

Viewing:
- ls [-l]           List your collection (initial load newest first,
                    live additions at the end)
- whoami            Show the signed-in user

Operations:
- add TITLE URL     Add a bookmark (quote titles with spaces)
- rm ID...          Delete bookmarks
- refresh           Reload the collection from the store

Utilities:
- logout            Sign out and leave
- help [cmd]        Show help for command
- exit, quit        Exit shell

The collection is updated by the change feed in the background, so a
bookmark added here (or in another session) appears at the end of the
next ``ls``.
"""

import cmd
import shlex
from typing import Optional

from rich.console import Console

from smartmark.config import set_user_setting
from smartmark.display import bookmarks_table, empty_collection, format_bookmark, notification_text, user_header
from smartmark.notify import Notification
from smartmark.sync import BookmarkSynchronizer


class DashboardShell(cmd.Cmd):
    """Interactive shell over a BookmarkSynchronizer."""

    intro = '''
SmartMark Shell - your bookmarks, live.

Type 'help' or '?' to list commands.
'''
    prompt = 'smartmark> '

    def __init__(self, sync: BookmarkSynchronizer, console: Optional[Console] = None, **kwargs):
        super().__init__(**kwargs)
        self.sync = sync
        self.console = console or Console()
        self._last_shown: Optional[Notification] = None

    def preloop(self):
        self.console.print(user_header(self.sync.user))

    def postcmd(self, stop, line):
        """Show a notification raised by the command, once."""
        notification = self.sync.notification
        if notification is not None and notification is not self._last_shown:
            self.console.print(notification_text(notification))
            self._last_shown = notification
        return stop

    def do_ls(self, arg):
        """List your bookmarks.

        The initial load is newest first; bookmarks that arrive on the
        change feed afterwards are listed at the end.

        Usage:
            ls              Table view
            ls -l           One bookmark per entry, with full URLs
        """
        bookmarks = self.sync.bookmarks
        if not bookmarks:
            self.console.print(empty_collection())
            return

        if '-l' in arg.split():
            for bookmark in bookmarks:
                self.console.print(format_bookmark(bookmark, "plain"), markup=False)
        else:
            self.console.print(bookmarks_table(bookmarks))

    def do_add(self, arg):
        """Add a bookmark.

        Usage:
            add "Python docs" https://docs.python.org
        """
        try:
            parts = shlex.split(arg)
        except ValueError as e:
            self.console.print(f"[red]Error: {e}[/red]")
            return

        if len(parts) != 2:
            self.console.print("[yellow]Usage: add TITLE URL[/yellow]")
            return

        self.sync.add(parts[0], parts[1])

    def do_rm(self, arg):
        """Delete bookmarks by ID.

        Usage:
            rm 42
            rm 42 43
        """
        ids = arg.split()
        if not ids:
            self.console.print("[yellow]Usage: rm ID...[/yellow]")
            return

        for raw in ids:
            try:
                bookmark_id = int(raw)
            except ValueError:
                self.console.print(f"[red]Invalid bookmark ID: {raw}[/red]")
                continue
            self.sync.remove(bookmark_id)

    def do_refresh(self, arg):
        """Reload the collection from the store."""
        if self.sync.refresh():
            self.console.print(f"[dim]{len(self.sync)} bookmark(s)[/dim]")

    def do_whoami(self, arg):
        """Show the signed-in user."""
        self.console.print(user_header(self.sync.user))

    def do_logout(self, arg):
        """Sign out and leave the shell."""
        self.sync.logout()
        set_user_setting("session_user", None)
        self.console.print("[green]Signed out[/green]")
        return True

    def do_exit(self, arg):
        """Exit the shell."""
        self.console.print("\n[cyan]Goodbye![/cyan]\n")
        return True

    def do_quit(self, arg):
        """Exit the shell."""
        return self.do_exit(arg)

    def do_EOF(self, arg):
        """Handle Ctrl+D."""
        self.console.print()
        return self.do_exit(arg)

    def emptyline(self):
        """Do nothing on empty line."""
        pass

    def default(self, line):
        """Handle unknown commands."""
        self.console.print(f"[red]Unknown command: {line.split()[0] if line else ''}[/red]")
        self.console.print("[dim]Type 'help' for available commands[/dim]")
