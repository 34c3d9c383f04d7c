"""Tests for djangodocs.cli module."""

from __future__ import annotations

import json
from collections import Counter
from unittest.mock import patch

import pytest

# Keep the import-time config loading away from the real environment.
with patch("dotenv.load_dotenv"), patch("shutil.copy"):
    from djangodocs import cli
    from djangodocs.cli import _parse_args, build_cache, main

from djangodocs import refresh
from djangodocs.cache import MemoryStore, SnapshotCache
from djangodocs.config import DJANGO_VERSIONS
from djangodocs.document import Document
from djangodocs.fetch import FetchError

BASE = "https://docs.djangoproject.com/en/6.0"


def _store_snapshot(version: str = "6.0"):
    auth = Document(url=f"{BASE}/topics/auth/", title="Auth", content="About auth")
    default = Document(url=f"{BASE}/topics/auth/default/", title="Default", content="d")
    models = Document(url=f"{BASE}/ref/models/", title="Models", content="m")
    default.parent = auth
    auth.next = default
    default.previous = auth
    build_cache().write(version, [auth, default, models])


@pytest.fixture
def fake_build(monkeypatch):
    calls: list[str] = []

    async def _build(version, *, sitemap_location=None, client=None):
        calls.append(version)
        if version == "5.0":
            raise FetchError(f"https://docs.djangoproject.com/en/{version}/", 502)
        url = f"https://docs.djangoproject.com/en/{version}/ref/x/"
        return [Document(url=url, title="X", content="")]

    monkeypatch.setattr(refresh, "build_graph_async", _build)
    return calls


class TestParseArgs:
    def test_refresh_defaults(self):
        args = _parse_args(["refresh"])
        assert args.command == "refresh"
        assert args.versions is None
        assert args.force is False

    def test_refresh_repeated_versions(self):
        args = _parse_args(["refresh", "--version", "5.2", "--version", "dev", "--force"])
        assert args.versions == ["5.2", "dev"]
        assert args.force is True

    def test_unknown_version_rejected(self):
        with pytest.raises(SystemExit):
            _parse_args(["refresh", "--version", "1.11"])

    def test_list_options(self):
        args = _parse_args(["list", "--version", "5.1", "--section", "ref_sub", "--json"])
        assert (args.version, args.section, args.json_output) == ("5.1", "ref_sub", True)

    def test_command_required(self):
        with pytest.raises(SystemExit):
            _parse_args([])


class TestBuildCache:
    def test_uses_configured_directory(self, tmp_path):
        assert build_cache().store.directory == tmp_path / "snapshots"


class TestRefreshCommand:
    def test_refresh_selected(self, fake_build, capsys):
        assert main(["refresh", "--version", "6.0"]) == 0
        assert fake_build == ["6.0"]
        assert "6.0: loaded 1 documentation page(s)" in capsys.readouterr().out

    def test_refresh_all_reports_failures(self, fake_build, capsys):
        assert main(["refresh"]) == 1
        assert fake_build == list(DJANGO_VERSIONS)
        out = capsys.readouterr().out
        assert "5.0: failed - Failed to fetch" in out
        assert "4.2: loaded 1 documentation page(s)" in out

    def test_fresh_snapshot_skipped(self, fake_build, capsys):
        _store_snapshot("6.0")
        assert main(["refresh", "--version", "6.0"]) == 0
        assert fake_build == []
        assert "6.0: already up to date" in capsys.readouterr().out

    def test_force(self, fake_build):
        _store_snapshot("6.0")
        assert main(["refresh", "--version", "6.0", "--force"]) == 0
        assert fake_build == ["6.0"]


class TestStatusCommand:
    def test_status(self, capsys):
        _store_snapshot("6.0")
        assert main(["status"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "dev: not cached"
        assert lines[1].startswith("6.0: 3 document(s), refreshed ")
        assert lines[1].endswith("(fresh)")

    def test_each_snapshot_read_once(self, monkeypatch, capsys):
        class CountingStore(MemoryStore):
            def __init__(self):
                super().__init__()
                self.reads = Counter()

            def get(self, key):
                self.reads[key] += 1
                return super().get(key)

        store = CountingStore()
        cache = SnapshotCache(store)
        cache.write("5.2", [Document(url=f"{BASE}/ref/models/", title="M", content="")])
        monkeypatch.setattr(cli, "build_cache", lambda: cache)

        assert main(["status"]) == 0
        assert "5.2: 1 document(s)" in capsys.readouterr().out
        assert store.reads == Counter(cache.key(v) for v in DJANGO_VERSIONS)


class TestListCommand:
    def test_text(self, capsys):
        _store_snapshot()
        assert main(["list"]) == 0
        out = capsys.readouterr().out
        assert f"Default (Auth)  {BASE}/topics/auth/default/" in out

    def test_section_json(self, capsys):
        _store_snapshot()
        assert main(["list", "--section", "ref", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [item["url"] for item in data] == [f"{BASE}/ref/models/"]

    def test_missing_snapshot(self, caplog):
        assert main(["list", "--version", "5.2"]) == 1
        assert "No snapshot for version 5.2" in caplog.text


class TestShowCommand:
    def test_show(self, capsys):
        _store_snapshot()
        assert main(["show", f"{BASE}/topics/auth/default/"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("# Default")
        assert f"[Auth]({BASE}/topics/auth/)" in out

    def test_unknown_url(self, caplog):
        _store_snapshot()
        assert main(["show", f"{BASE}/topics/nope/"]) == 1
        assert "is not in the 6.0 snapshot" in caplog.text

    def test_missing_snapshot(self):
        assert main(["show", f"{BASE}/topics/auth/", "--version", "dev"]) == 1


class TestMainErrors:
    def test_keyboard_interrupt(self, monkeypatch):
        def _interrupt(cache):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "_run_status", _interrupt)
        assert main(["status"]) == 130

    def test_unexpected_error(self, monkeypatch, caplog):
        def _boom(cache):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(cli, "_run_status", _boom)
        assert main(["status"]) == 1
        assert "disk on fire" in caplog.text


class TestLoadConfig:
    def test_local_env_wins(self, tmp_path):
        (tmp_path / ".env").write_text("DJANGODOCS_HTTP_TIMEOUT=5\n")
        with patch("djangodocs.cli.Path.cwd", return_value=tmp_path):
            with patch("djangodocs.cli.load_dotenv") as mock_load:
                cli._load_config()
        mock_load.assert_called_once_with(tmp_path / ".env")

    def test_config_dir_env(self, tmp_path):
        env_file = tmp_path / "cfg" / ".env"
        env_file.parent.mkdir()
        env_file.write_text("")
        with patch("djangodocs.cli.Path.cwd", return_value=tmp_path / "nowhere"):
            with patch("djangodocs.cli.CONFIG_ENV_FILE", env_file):
                with patch("djangodocs.cli.load_dotenv") as mock_load:
                    cli._load_config()
        mock_load.assert_called_once_with(env_file)

    def test_seeds_from_example(self, tmp_path, caplog):
        cfg_dir = tmp_path / "cfg"
        env_file = cfg_dir / ".env"
        with patch("djangodocs.cli.Path.cwd", return_value=tmp_path / "nowhere"):
            with patch("djangodocs.cli.CONFIG_ENV_FILE", env_file):
                with patch("djangodocs.cli.CONFIG_DIR", cfg_dir):
                    with patch("djangodocs.cli.load_dotenv") as mock_load:
                        with caplog.at_level("INFO", logger="djangodocs.cli"):
                            cli._load_config()
        assert "DJANGODOCS_CACHE_DIR" in env_file.read_text()
        mock_load.assert_called_once_with(env_file)
        assert "DJANGODOCS_SITEMAP_URL" in caplog.text

    def test_copy_error_is_logged(self, tmp_path, caplog):
        cfg_dir = tmp_path / "cfg"
        env_file = cfg_dir / ".env"
        with patch("djangodocs.cli.Path.cwd", return_value=tmp_path / "nowhere"):
            with patch("djangodocs.cli.CONFIG_ENV_FILE", env_file):
                with patch("djangodocs.cli.CONFIG_DIR", cfg_dir):
                    with patch(
                        "djangodocs.cli.shutil.copy", side_effect=OSError("read-only")
                    ):
                        with patch("djangodocs.cli.load_dotenv") as mock_load:
                            cli._load_config()
        assert not env_file.exists()
        mock_load.assert_not_called()
        assert "Could not create" in caplog.text
        assert "read-only" in caplog.text
