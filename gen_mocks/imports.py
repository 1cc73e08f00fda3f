"""Normalize the import block of generated Go source.

Two interchangeable formatters implement `process(filename, source)`:
`ImportResolver` works from the imports already present in the source plus a
table of standard library packages, `GoimportsFormatter` runs the goimports
tool.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from gen_mocks.errors import GenMocksError
from gen_mocks.goparse.nodes import GoFile, ImportSpec, iter_type_names
from gen_mocks.goparse.parser import GoParseError, parse_file

logger = logging.getLogger(__name__)

STANDARD_PACKAGES = {
    spec.package_name: spec
    for spec in (
        ImportSpec(path)
        for path in (
            "bufio",
            "bytes",
            "context",
            "crypto/tls",
            "database/sql",
            "encoding/json",
            "errors",
            "fmt",
            "io",
            "io/fs",
            "log",
            "log/slog",
            "math/big",
            "net",
            "net/http",
            "net/url",
            "os",
            "reflect",
            "regexp",
            "strings",
            "sync",
            "time",
            "unsafe",
        )
    )
}


class ImportResolutionError(GenMocksError):
    """A package referenced by generated code could not be imported."""


class Formatter(Protocol):
    def process(self, filename: str, source: str) -> str: ...


def is_standard_library(path: str) -> bool:
    """Standard library paths have no dot in their first element."""
    return "." not in path.split("/", 1)[0]


def used_qualifiers(go_file: GoFile) -> set[str]:
    """Package names used to qualify types anywhere in the file's declarations."""
    exprs = [spec.type for spec in go_file.types]
    for func in go_file.funcs:
        exprs.append(func.type)
        if func.receiver is not None:
            exprs.append(func.receiver.type)
    return {
        type_name.package
        for expr in exprs
        for type_name in iter_type_names(expr)
        if type_name.package
    }


def format_import_block(specs: list[ImportSpec]) -> str:
    """Write imports grouped standard library first, each group sorted by path."""
    if not specs:
        return ""

    def line(spec: ImportSpec) -> str:
        return f'{spec.name} "{spec.path}"' if spec.name else f'"{spec.path}"'

    if len(specs) == 1:
        return "import " + line(specs[0])

    standard = sorted((s for s in specs if is_standard_library(s.path)), key=lambda s: s.path)
    other = sorted((s for s in specs if not is_standard_library(s.path)), key=lambda s: s.path)
    groups = [group for group in (standard, other) if group]
    body = "\n\n".join("\n".join("\t" + line(s) for s in group) for group in groups)
    return f"import (\n{body}\n)"


class ImportResolver:
    """Add missing imports, drop unused ones and sort the rest.

    Candidate imports are the ones already declared in the source, then
    `search_path` (by default a table of common standard library packages).
    Blank and dot imports are kept as written.
    """

    def __init__(self, search_path: dict[str, ImportSpec] | None = None):
        self.search_path = STANDARD_PACKAGES if search_path is None else search_path

    def process(self, filename: str, source: str) -> str:
        try:
            go_file = parse_file(source, filename)
        except GoParseError as e:
            raise ImportResolutionError(f"generated source does not parse: {e}") from e

        declared: dict[str, ImportSpec] = {}
        kept: list[ImportSpec] = []
        for spec in go_file.imports:
            if spec.name in ("_", "."):
                kept.append(spec)
            else:
                declared.setdefault(spec.package_name, spec)

        for qualifier in sorted(used_qualifiers(go_file)):
            spec = declared.get(qualifier) or self.search_path.get(qualifier)
            if spec is None:
                raise ImportResolutionError(
                    f"{filename}: could not find an import for package {qualifier!r}"
                )
            if spec not in kept:
                kept.append(spec)

        dropped = [s.path for s in declared.values() if s not in kept]
        if dropped:
            logger.debug(f"{filename}: removed unused imports {', '.join(dropped)}")

        head = source[: go_file.package_end]
        rest = source[go_file.imports_end :].lstrip("\n")
        block = format_import_block(kept)
        if block:
            return f"{head}\n\n{block}\n\n{rest}"
        return f"{head}\n\n{rest}"


class GoimportsFormatter:
    """Run the goimports tool over the source."""

    def __init__(self, executable: str = "goimports"):
        self.executable = executable

    def process(self, filename: str, source: str) -> str:
        path = shutil.which(self.executable)
        if path is None:
            raise ImportResolutionError(f"{self.executable} not found on PATH")
        srcdir = str(Path(filename).parent)
        logger.debug(f"Running {path} -srcdir {srcdir}")
        result = subprocess.run(
            [path, "-srcdir", srcdir],
            input=source,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise ImportResolutionError(
                f"{self.executable} failed for {filename}: {result.stderr.strip()}"
            )
        return result.stdout
