"""
Tests for smartmark/cli.py

Runs ``main`` with argument lists against a temporary database and checks
output and exit codes for the session and bookmark commands.
"""
import json
from unittest.mock import patch

import pytest

from smartmark import cli
from smartmark.config import SmartmarkConfig, get_config
from smartmark.constants import MSG_ADDED, MSG_INVALID_URL, MSG_NOT_SIGNED_IN
from smartmark.store import SqlStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


@pytest.fixture
def run(db_path, capsys):
    """Run the CLI and return (exit code, stdout)."""
    def _run(*argv):
        code = 0
        try:
            cli.main(["--db", db_path, *argv])
        except SystemExit as e:
            code = e.code
        return code, capsys.readouterr().out
    return _run


@pytest.fixture
def signed_in(run):
    code, _ = run("login", "ada@example.com", "--name", "Ada Lovelace")
    assert code == 0


class TestArgumentParser:
    """Test parser structure."""

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_delete_takes_integer_ids(self):
        args = cli.build_parser().parse_args(["delete", "3", "4"])
        assert args.ids == [3, 4]
        assert args.func is cli.cmd_delete

    def test_global_options(self):
        args = cli.build_parser().parse_args(["-q", "-o", "json", "--log-level", "DEBUG", "list"])
        assert args.quiet
        assert args.output == "json"
        assert args.log_level == "DEBUG"

    def test_rejects_unknown_output_format(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-o", "xml", "list"])


class TestSessionCommands:
    """Test login, logout and whoami."""

    def test_login_persists_session_user(self, run):
        code, out = run("login", "Ada@Example.com", "--name", "Ada Lovelace")
        assert code == 0
        assert "Ada Lovelace" in out
        assert SmartmarkConfig.load().session_user == "ada@example.com"

    def test_whoami_json(self, run, signed_in):
        code, out = run("-o", "json", "whoami")
        assert code == 0
        data = json.loads(out)
        assert data["email"] == "ada@example.com"
        assert data["metadata"]["full_name"] == "Ada Lovelace"
        assert data["database"]["url"].startswith("sqlite:///")
        assert data["database"]["size_bytes"] > 0
        assert "bookmarks" in data["database"]["tables"]

    def test_whoami_shows_database_details(self, run, signed_in):
        code, out = run("whoami")
        assert code == 0
        assert "Ada Lovelace" in out
        assert "Database: sqlite:///" in out
        assert "cli.db" in out
        assert "bytes" in out

    def test_logout_forgets_session_user(self, run, signed_in):
        code, _ = run("logout")
        assert code == 0
        assert SmartmarkConfig.load().session_user is None

        code, out = run("whoami")
        assert code == 1
        assert "Not signed in" in out

    def test_invalid_email_is_an_error(self, run):
        code, out = run("login", "nobody")
        assert code == 1
        assert "Invalid email" in out


class TestBookmarkCommands:
    """Test add, list and delete."""

    def test_add_then_list_json(self, run, signed_in):
        code, out = run("add", "Example", "https://example.com")
        assert code == 0
        assert MSG_ADDED in out

        code, out = run("-o", "json", "list")
        assert code == 0
        bookmarks = json.loads(out)
        assert [(b["title"], b["url"]) for b in bookmarks] == [("Example", "https://example.com")]

    def test_list_newest_first_as_urls(self, run, signed_in):
        run("add", "First", "https://first.example.com")
        run("add", "Second", "https://second.example.com")

        code, out = run("-o", "urls", "list")
        assert out.split() == ["https://second.example.com", "https://first.example.com"]

    def test_list_empty_table(self, run, signed_in):
        code, out = run("list")
        assert code == 0
        assert "No bookmarks yet" in out

    def test_add_invalid_url_fails(self, run, signed_in, db_path):
        code, out = run("add", "Example", "example.com")
        assert code == 1
        assert MSG_INVALID_URL in out

        code, out = run("-o", "json", "list")
        assert json.loads(out) == []

    def test_quiet_add_prints_nothing(self, run, signed_in):
        code, out = run("-q", "add", "Example", "https://example.com")
        assert code == 0
        assert out == ""

    def test_delete(self, run, signed_in):
        run("add", "Example", "https://example.com")
        _, out = run("-o", "json", "list")
        bookmark_id = json.loads(out)[0]["id"]

        code, out = run("delete", str(bookmark_id))
        assert code == 0
        assert "Bookmark deleted" in out

        _, out = run("-o", "json", "list")
        assert json.loads(out) == []

    def test_delete_other_users_bookmark_leaves_it(self, run, signed_in, db_path):
        grace = SqlStore(path=db_path)
        user = grace.sign_in("grace@example.com")
        row = grace.insert("bookmarks", {"title": "G", "url": "https://g.example.com", "user_id": user.id})

        code, _ = run("delete", str(row["id"]))
        assert code == 0
        assert len(grace.select("bookmarks")) == 1
        grace.dispose()

    @pytest.mark.parametrize("argv", [
        ["list"],
        ["add", "Example", "https://example.com"],
        ["delete", "1"],
    ])
    def test_requires_sign_in(self, run, argv):
        code, out = run(*argv)
        assert code == 1
        assert MSG_NOT_SIGNED_IN.split(".")[0] in out


class TestWatch:
    """Test the live view."""

    def test_watch_stops_on_interrupt(self, run, signed_in):
        with patch("smartmark.cli.time.sleep", side_effect=KeyboardInterrupt):
            code, out = run("watch", "--interval", "0.01")
        assert code == 0

    def test_watch_requires_sign_in(self, run):
        code, out = run("watch")
        assert code == 1


class TestConfigOptions:
    """Test global configuration options."""

    def test_config_file_option(self, tmp_path, run, signed_in):
        config_file = tmp_path / "custom.toml"
        config_file.write_text('output_format = "urls"\n')
        run("add", "Example", "https://example.com")

        code, out = run("--config", str(config_file), "list")
        assert out.strip() == "https://example.com"

    def test_db_option_sets_database(self, run, db_path):
        run("logout")
        assert get_config().database == db_path
