"""Tests for sift list and show commands."""
import json

import pytest

from conftest import run_sift


class TestList:
    def test_empty(self, sift_dir, monkeypatch):
        monkeypatch.chdir(sift_dir)

        result = run_sift("list", cwd=sift_dir)

        assert result.returncode == 0
        assert "No tasks." in result.stdout

    @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
    def test_numbered_in_key_order(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("list", cwd=sift_dir_with_fixture)

        lines = result.stdout.strip().splitlines()
        assert "1. ○ First (sift-aaa)" in lines[0]
        assert "2. ○ Second (sift-bbb)" in lines[1]
        assert "3. ○ Third (sift-ccc)" in lines[2]

    @pytest.mark.parametrize("sift_dir_with_fixture", ["mixed_status"], indirect=True)
    def test_hides_done_and_snoozed(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("list", cwd=sift_dir_with_fixture)

        assert "Open first" in result.stdout
        assert "Open last" in result.stdout
        assert "Already done" not in result.stdout
        assert "Snoozed far ahead" not in result.stdout
        assert "+2 hidden" in result.stdout

    @pytest.mark.parametrize("sift_dir_with_fixture", ["mixed_status"], indirect=True)
    def test_all(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("list", "--all", cwd=sift_dir_with_fixture)

        lines = result.stdout.strip().splitlines()
        assert len(lines) == 4
        assert "✓ Already done" in lines[1]
        assert "until 2999-01-01" in lines[2]

    @pytest.mark.parametrize("sift_dir_with_fixture", ["mixed_status"], indirect=True)
    def test_json(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("list", "--json", cwd=sift_dir_with_fixture)

        data = json.loads(result.stdout)
        assert [t["id"] for t in data] == ["sift-aaa", "sift-ddd"]

    @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
    def test_jsonl(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("list", "--jsonl", cwd=sift_dir_with_fixture)

        lines = result.stdout.strip().splitlines()
        assert [json.loads(line)["order"] for line in lines] == ["g", "n", "u"]


class TestShow:
    @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
    def test_show(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("show", "sift-bbb", cwd=sift_dir_with_fixture)

        assert result.returncode == 0
        assert "○ Second (sift-bbb)" in result.stdout
        assert "Position: 2 of 3 (order key 'n')" in result.stdout
        assert "Created: 2026-01-05T09:01:00Z by test" in result.stdout

    @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
    def test_show_json(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("show", "aaa", "--json", cwd=sift_dir_with_fixture)

        assert json.loads(result.stdout)["title"] == "First"

    @pytest.mark.parametrize("sift_dir_with_fixture", ["three_tasks"], indirect=True)
    def test_show_missing(self, sift_dir_with_fixture, monkeypatch):
        monkeypatch.chdir(sift_dir_with_fixture)

        result = run_sift("show", "sift-zzz", cwd=sift_dir_with_fixture)

        assert result.returncode == 1
        assert "not found" in result.stderr
