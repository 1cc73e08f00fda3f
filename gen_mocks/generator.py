"""Run the mock generation pipeline over a package directory."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gen_mocks.emitter import Emitter
from gen_mocks.errors import ConfigError
from gen_mocks.goparse.nodes import ImportSpec, assumed_package_name
from gen_mocks.imports import Formatter, GoimportsFormatter, ImportResolver
from gen_mocks.models import GeneratedFile
from gen_mocks.output import FileSink, PreviewSink, Sink, output_path
from gen_mocks.packages import GoPackage, module_import_path, parse_dir
from gen_mocks.selector import DEFAULT_PATTERN, name_matcher, select_interfaces
from gen_mocks.synthesizer import synthesize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateConfig:
    """Everything a generation run needs."""

    package_dir: Path
    pattern: str | None = DEFAULT_PATTERN  # None: names ending in "Service"
    output_dir: Path = Path(".")
    output_package: str | None = None  # None: each package under its own name
    source_import_path: str | None = None
    write: bool = False
    use_goimports: bool = False


@dataclass
class GenerationResult:
    """Files produced by a run and packages that had nothing to mock."""

    files: list[GeneratedFile] = field(default_factory=list)
    skipped_packages: list[str] = field(default_factory=list)


def generate(
    config: GenerateConfig,
    sink: Sink | None = None,
    formatter: Formatter | None = None,
) -> GenerationResult:
    """Generate a mock file for every matching interface in the package directory.

    Packages are processed in order and interfaces one at a time; the first
    error stops the run. A package without matching interfaces is logged and
    skipped. With an output package set, only one package of the directory is
    mocked (see `_import_target`).

    Args:
        config: Run configuration
        sink: Destination for rendered files (default from `config.write`)
        formatter: Import formatter (default from `config.use_goimports`)

    Returns:
        The generated files and the names of skipped packages

    Raises:
        GenMocksError: On the first configuration, parse, render or write error
    """
    matches = name_matcher(config.pattern)
    logger.info(f"Selecting interfaces with {matches!r}")
    if formatter is None:
        formatter = GoimportsFormatter() if config.use_goimports else ImportResolver()
    if sink is None:
        sink = FileSink() if config.write else PreviewSink()
    emitter = Emitter(formatter)
    result = GenerationResult()
    written: dict[Path, str] = {}

    packages = parse_dir(config.package_dir)
    if config.output_package is not None:
        packages = [_import_target(packages, config.output_package, config.package_dir)]

    for package in packages:
        interfaces = select_interfaces(package, matches)
        if not interfaces:
            result.skipped_packages.append(package.name)
            continue

        output_package = config.output_package or package.name
        extra_imports = _source_imports(config, package.directory, package.name, output_package)

        for iface in interfaces:
            mock = synthesize(iface, output_package)
            path = output_path(iface.source_file, config.output_dir)
            if path in written:
                logger.warning(
                    f"{path} already holds {written[path]}; {mock.type_name} replaces it"
                )
            content = emitter.emit(mock, output_package, str(path), extra_imports)
            sink.write(path, content)
            written[path] = mock.type_name
            result.files.append(GeneratedFile(path=path, interface=iface.name, content=content))

    logger.info(
        f"Generated {len(result.files)} mock files, "
        f"skipped {len(result.skipped_packages)} packages"
    )
    return result


def _import_target(packages: list[GoPackage], name: str, directory: Path) -> GoPackage:
    """The package to mock into `name`.

    A package already called `name` is mocked in place. Otherwise the
    directory must hold exactly one importable (non-test) package.
    """
    for package in packages:
        if package.name == name:
            return package
    importable = [p for p in packages if not p.name.endswith("_test")]
    if len(importable) != 1:
        raise ConfigError(f"No '{name}' package found in {directory}")
    return importable[0]


def _source_imports(
    config: GenerateConfig, directory: Path, package: str, output_package: str
) -> tuple[ImportSpec, ...]:
    """The import of the mocked package, when mocks live in another package."""
    if output_package == package:
        return ()
    import_path = config.source_import_path or module_import_path(directory)
    if import_path is None:
        logger.warning(f"Cannot determine the import path of package {package} in {directory}")
        return ()
    name = None if assumed_package_name(import_path) == package else package
    return (ImportSpec(import_path, name),)
