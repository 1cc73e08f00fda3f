"""Integration tests for end-to-end functionality."""

import subprocess
import sys
from pathlib import Path

import pytest


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures"


class TestEndToEnd:
    def given_args(self, *args):
        self.args = list(args)

    def when_cli_is_executed(self, cwd=None):
        self.result = subprocess.run(
            [sys.executable, "-m", "gen_mocks", *self.args],
            capture_output=True,
            text=True,
            cwd=cwd,
        )

    def then_exit_code_is_zero(self):
        assert self.result.returncode == 0, self.result.stderr

    def then_exit_code_is_nonzero(self):
        assert self.result.returncode != 0

    def test_preview_prints_mock_source(self, fixtures_path):
        """The module entry point prints generated files."""
        self.given_args("-p", str(fixtures_path / "svc"), "-i", "^Fetcher$")
        self.when_cli_is_executed()
        self.then_exit_code_is_zero()
        assert self.result.stdout == (
            "# fetcher_mock.go\n"
            "package svc\n\n"
            "type MockFetcher struct {\n\tGet_ func(id string) (string, error)\n}\n\n"
            "func (s *MockFetcher) Get(id string) (string, error) {\n\treturn s.Get_(id)\n}\n"
        )

    def test_write_mode_is_repeatable(self, fixtures_path, tmp_path):
        """Writing twice produces identical files."""
        self.given_args("dir", "-p", str(fixtures_path / "svc"), "-o", str(tmp_path), "-w")
        self.when_cli_is_executed()
        self.then_exit_code_is_zero()
        first = (tmp_path / "users_mock.go").read_bytes()

        self.when_cli_is_executed()

        self.then_exit_code_is_zero()
        assert (tmp_path / "users_mock.go").read_bytes() == first

    def test_errors_exit_nonzero(self, fixtures_path):
        """A package with syntax errors fails with a message on stderr."""
        self.given_args("-p", str(fixtures_path / "broken"))
        self.when_cli_is_executed()
        self.then_exit_code_is_nonzero()
        assert self.result.stdout == ""
        assert self.result.stderr.startswith("Error: ")

    def test_module_entry_point_prints_help(self):
        """`python -m gen_mocks` runs without a top-level package marker."""
        self.given_args("dir", "--help")
        self.when_cli_is_executed()
        self.then_exit_code_is_zero()
        assert "--interfaces" in self.result.stdout
