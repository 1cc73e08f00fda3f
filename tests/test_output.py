"""Tests for output sinks."""

from io import StringIO
from pathlib import Path

import pytest

from gen_mocks.output import FileSink, OutputError, PreviewSink, output_path


class TestOutputPath:
    @pytest.mark.parametrize(
        "source,output_dir,expected",
        [
            ("svc/user.go", ".", "user_mock.go"),
            ("svc/user.go", "mocks", "mocks/user_mock.go"),
            ("/abs/pkg/api.go", "out/svc", "out/svc/api_mock.go"),
        ],
    )
    def test_maps_source_file_to_mock_file(self, source, output_dir, expected):
        """The mock file is named after the source file, in the output directory."""
        assert output_path(Path(source), Path(output_dir)) == Path(expected)


class TestFileSink:
    def test_writes_content(self, tmp_path):
        """Content is written as is."""
        path = tmp_path / "user_mock.go"

        FileSink().write(path, "package svc\n")

        assert path.read_text() == "package svc\n"

    def test_creates_missing_directories(self, tmp_path):
        """The output directory is created on demand."""
        path = tmp_path / "a" / "b" / "user_mock.go"

        FileSink().write(path, "package svc\n")

        assert path.is_file()

    def test_replaces_existing_file(self, tmp_path):
        """An existing mock file is overwritten, not appended to."""
        path = tmp_path / "user_mock.go"
        path.write_text("old content that is longer\n")

        FileSink().write(path, "new\n")

        assert path.read_text() == "new\n"

    def test_unwritable_path_is_an_output_error(self, tmp_path):
        """A file where a directory should be is reported."""
        (tmp_path / "blocker").write_text("")

        with pytest.raises(OutputError, match="cannot write"):
            FileSink().write(tmp_path / "blocker" / "user_mock.go", "package svc\n")


class TestPreviewSink:
    def test_prints_path_then_content(self):
        """Each file is preceded by a comment line naming its path."""
        stream = StringIO()

        PreviewSink(stream).write(Path("svc/user_mock.go"), "package svc\n")

        assert stream.getvalue() == "# svc/user_mock.go\npackage svc\n"

    def test_defaults_to_stdout(self, capsys):
        """Without a stream, files go to standard output."""
        PreviewSink().write(Path("user_mock.go"), "package svc\n")

        assert capsys.readouterr().out == "# user_mock.go\npackage svc\n"

    def test_does_not_touch_disk(self, tmp_path, monkeypatch):
        """Previewing leaves the file system alone."""
        monkeypatch.chdir(tmp_path)

        PreviewSink(StringIO()).write(Path("user_mock.go"), "package svc\n")

        assert list(tmp_path.iterdir()) == []
