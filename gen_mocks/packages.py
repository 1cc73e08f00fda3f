"""Locate Go packages on disk and parse them."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from gen_mocks.errors import ConfigError
from gen_mocks.goparse.nodes import GoFile
from gen_mocks.goparse.parser import parse_source_file

logger = logging.getLogger(__name__)

# module example.com/app  or  module "example.com/app"
MODULE_PATTERN = re.compile(r'^module\s+"?([^\s"]+)"?', re.MULTILINE)


@dataclass
class GoPackage:
    """The parsed files of one package clause within a directory."""

    name: str
    directory: Path
    files: list[GoFile] = field(default_factory=list)


def parse_dir(directory: Path) -> list[GoPackage]:
    """Parse the .go files of a directory, grouped by package clause.

    Files are parsed in name order; packages are returned in the order their
    first file appears. Files whose names start with "." or "_" are ignored,
    as the go tool does.

    Args:
        directory: Directory holding the package sources

    Returns:
        One GoPackage per package clause found (for example "svc" and "svc_test")

    Raises:
        ConfigError: If the directory does not exist or cannot be read
        GoParseError: If a file is not UTF-8 or has syntax errors
    """
    if not directory.is_dir():
        raise ConfigError(f"package directory does not exist: {directory}")

    try:
        paths = sorted(
            p
            for p in directory.iterdir()
            if p.suffix == ".go" and p.is_file() and not p.name.startswith((".", "_"))
        )
    except OSError as e:
        raise ConfigError(f"cannot list package directory {directory}: {e.strerror}") from e
    if not paths:
        logger.warning(f"No Go files found in {directory}")

    packages: dict[str, GoPackage] = {}
    for path in paths:
        try:
            go_file = parse_source_file(path)
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e.strerror}") from e
        package = packages.setdefault(
            go_file.package, GoPackage(name=go_file.package, directory=directory)
        )
        package.files.append(go_file)

    logger.info(
        f"Parsed {len(paths)} files in {directory}: packages {', '.join(packages) or 'none'}"
    )
    return list(packages.values())


def find_module(start: Path) -> tuple[Path, str] | None:
    """Find the nearest go.mod at or above `start`.

    Returns:
        The module root directory and module path, or None
    """
    start = start.resolve()
    for directory in [start, *start.parents]:
        go_mod = directory / "go.mod"
        if go_mod.is_file():
            try:
                text = go_mod.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigError(f"cannot read {go_mod}: {e}") from e
            match = MODULE_PATTERN.search(text)
            if match:
                return directory, match.group(1)
            logger.warning(f"No module directive in {go_mod}")
            return None
    return None


def module_import_path(directory: Path) -> str | None:
    """Import path of a package directory inside a Go module, if it is in one."""
    module = find_module(directory)
    if module is None:
        return None
    root, module_path = module
    relative = directory.resolve().relative_to(root).as_posix()
    return module_path if relative == "." else f"{module_path}/{relative}"


def resolve_import_path(import_path: str, search_from: Path) -> Path:
    """Find the directory of the package with the given import path.

    An existing directory is accepted as is. Otherwise the import path is
    looked up in the module enclosing `search_from`, then under each GOPATH
    entry's src directory.

    Raises:
        ConfigError: If no directory holds the package
    """
    candidate = Path(import_path)
    if candidate.is_dir():
        return candidate

    module = find_module(search_from)
    if module is not None:
        root, module_path = module
        if import_path == module_path or import_path.startswith(module_path + "/"):
            directory = root / import_path[len(module_path) :].lstrip("/")
            if directory.is_dir():
                logger.info(f"Resolved {import_path} to {directory} via {root / 'go.mod'}")
                return directory

    gopath = os.environ.get("GOPATH") or str(Path.home() / "go")
    for entry in gopath.split(os.pathsep):
        if not entry:
            continue
        directory = Path(entry) / "src" / import_path
        if directory.is_dir():
            logger.info(f"Resolved {import_path} to {directory} via GOPATH")
            return directory

    raise ConfigError(
        f"cannot find package {import_path!r} in the enclosing module or GOPATH ({gopath})"
    )
