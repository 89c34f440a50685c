"""Tests for sift help, key and status commands."""
import os

import pytest

from conftest import run_sift


class TestHelpBasic:
    def test_help_no_args(self, tmp_path, monkeypatch):
        """sift help shows main help."""
        monkeypatch.chdir(tmp_path)

        result = run_sift("help", cwd=tmp_path)

        assert result.returncode == 0
        assert "usage:" in result.stdout.lower()
        assert "add" in result.stdout
        assert "move" in result.stdout
        assert "list" in result.stdout

    def test_help_specific_command(self, tmp_path, monkeypatch):
        """sift help <command> shows command help."""
        monkeypatch.chdir(tmp_path)

        result = run_sift("help", "move", cwd=tmp_path)

        assert result.returncode == 0
        assert "--up" in result.stdout
        assert "--after" in result.stdout

    def test_help_unknown_command(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = run_sift("help", "nonexistent", cwd=tmp_path)

        assert result.returncode == 1
        assert "Unknown command: nonexistent" in result.stderr

    def test_no_command_prints_help(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = run_sift(cwd=tmp_path)

        assert result.returncode == 0
        assert "usage:" in result.stdout.lower()


class TestKey:
    """sift key works without .sift/ and exposes the key generator."""

    @pytest.mark.parametrize("args,expected", [
        ((), "n"),
        (("b", "d"), "c"),
        (("b", "c"), "bn"),
        (("-", "n"), "g"),
        (("n",), "u"),
        (("abc", "abcab"), "abcaan"),
    ])
    def test_key(self, tmp_path, args, expected):
        result = run_sift("key", *args, cwd=tmp_path)

        assert result.returncode == 0
        assert result.stdout.strip() == expected

    @pytest.mark.parametrize("args", [("c", "b"), ("ba", "c"), ("B",)])
    def test_invalid(self, tmp_path, args):
        result = run_sift("key", *args, cwd=tmp_path)

        assert result.returncode == 1
        assert result.stderr.startswith("Error: ")
        assert result.stdout == ""


class TestStatus:
    @pytest.mark.parametrize("sift_dir_with_fixture", ["mixed_status"], indirect=True)
    def test_counts(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("status", cwd=sift_dir_with_fixture)

        assert result.returncode == 0
        assert "Sift status (prefix: sift)" in result.stdout
        assert "3 open (1 snoozed), 1 done" in result.stdout
        assert "Longest order key: 1" in result.stdout


class TestDebug:
    def test_debug_lines_on_stderr(self, sift_dir, monkeypatch):
        monkeypatch.chdir(sift_dir)
        env = dict(os.environ, SIFT_DEBUG="1")

        result = run_sift("add", "Traced", cwd=sift_dir, env=env)

        assert result.returncode == 0
        assert "Debug: new task" in result.stderr
        assert "Debug:" not in result.stdout
