"""Write generated mock files, or preview them on stdout."""

import logging
import sys
from pathlib import Path
from typing import Protocol, TextIO

from gen_mocks.errors import GenMocksError

logger = logging.getLogger(__name__)

MOCK_SUFFIX = "_mock"


class OutputError(GenMocksError):
    """A generated file could not be written."""


class Sink(Protocol):
    def write(self, path: Path, content: str) -> None: ...


def output_path(source_file: Path, output_dir: Path) -> Path:
    """Map `pkg/user.go` to `<output_dir>/user_mock.go`."""
    source_file = Path(source_file)
    return Path(output_dir) / f"{source_file.stem}{MOCK_SUFFIX}{source_file.suffix}"


class FileSink:
    """Write each file to disk, replacing any existing content."""

    def write(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputError(f"cannot write {path}: {e}") from e
        logger.info(f"Wrote {path}")


class PreviewSink:
    """Print each file to a stream after a `# <path>` line."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def write(self, path: Path, content: str) -> None:
        stream = self.stream or sys.stdout
        print(f"# {path}", file=stream)
        stream.write(content)
