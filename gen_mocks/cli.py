"""Command-line interface for gen-mocks."""

import argparse
import logging
import sys
from pathlib import Path

from gen_mocks.errors import GenMocksError
from gen_mocks.generator import GenerateConfig, generate
from gen_mocks.packages import module_import_path, resolve_import_path
from gen_mocks.selector import DEFAULT_PATTERN, DEFAULT_SUFFIX

logger = logging.getLogger(__name__)

COMMANDS = ("dir", "import")
DEFAULT_IMPORT_PACKAGE = "svc"
DEFAULT_IMPORT_OUTPUT = "svc"


def setup_logging(verbose: bool = False):
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _add_common_arguments(parser: argparse.ArgumentParser, pattern: str | None, pattern_help: str):
    parser.add_argument(
        "-i",
        "--interfaces",
        default=pattern,
        help=f"Regular expression selecting interface names (default: {pattern_help})",
    )
    parser.add_argument(
        "-w",
        "--write",
        action="store_true",
        help="Write files to the output directory (default: print them to stdout)",
    )
    parser.add_argument(
        "--goimports",
        action="store_true",
        help="Normalize imports with the goimports tool instead of the built-in resolver",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress to stderr",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="gen-mocks",
        description="Generate mock structs for Go interfaces",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # dir subcommand
    dir_parser = subparsers.add_parser(
        "dir",
        help="Mock interfaces of the packages in a directory (default)",
    )
    dir_parser.add_argument(
        "-p",
        "--package",
        required=True,
        help="Directory of the package containing interfaces to mock",
    )
    dir_parser.add_argument(
        "-o",
        "--output",
        default=".",
        help="Output directory (default: .)",
    )
    _add_common_arguments(dir_parser, DEFAULT_PATTERN, DEFAULT_PATTERN)

    # import subcommand
    import_parser = subparsers.add_parser(
        "import",
        help="Mock interfaces of a package given by import path into package -n",
    )
    import_parser.add_argument(
        "-p",
        "--package",
        required=True,
        help="Import path of the package containing interfaces to mock",
    )
    import_parser.add_argument(
        "-n",
        "--name",
        default=DEFAULT_IMPORT_PACKAGE,
        help=(
            f"Package name of the generated files (default: {DEFAULT_IMPORT_PACKAGE}); "
            "a package of that name in the directory is mocked in place"
        ),
    )
    import_parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_IMPORT_OUTPUT,
        help=f"Output directory (default: {DEFAULT_IMPORT_OUTPUT})",
    )
    _add_common_arguments(import_parser, None, f"names ending in {DEFAULT_SUFFIX}")

    return parser


def parse_args(args: list[str]) -> argparse.Namespace:
    """Parse command-line arguments, defaulting to the dir command."""
    parser = create_parser()

    # Bare flags such as "-p ./svc" mean the dir command
    if args and args[0] not in COMMANDS and args[0] not in ("-h", "--help"):
        args = ["dir"] + args

    return parser.parse_args(args)


def build_config(parsed: argparse.Namespace) -> GenerateConfig:
    """Turn parsed arguments into a generation config.

    Raises:
        ConfigError: If an import path cannot be resolved
    """
    if parsed.command == "import":
        package_dir = resolve_import_path(parsed.package, Path.cwd())
        if Path(parsed.package).is_dir():
            source_import_path = module_import_path(package_dir)
        else:
            source_import_path = parsed.package
        return GenerateConfig(
            package_dir=package_dir,
            pattern=parsed.interfaces,
            output_dir=Path(parsed.output),
            output_package=parsed.name,
            source_import_path=source_import_path,
            write=parsed.write,
            use_goimports=parsed.goimports,
        )
    return GenerateConfig(
        package_dir=Path(parsed.package),
        pattern=parsed.interfaces,
        output_dir=Path(parsed.output),
        write=parsed.write,
        use_goimports=parsed.goimports,
    )


def run_generate(config: GenerateConfig) -> int:
    """Run generation and report the outcome.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    logger.info(f"Scanning {config.package_dir}")
    try:
        result = generate(config)
    except GenMocksError as e:
        logger.debug("Generation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.write:
        print(
            f"Wrote {len(result.files)} mock files to {config.output_dir}",
            file=sys.stderr,
        )
    return 0


def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, non-zero for fatal errors)
    """
    try:
        parsed = parse_args(args)
    except SystemExit as e:
        # argparse exits 0 for --help and 2 for usage errors
        return e.code if isinstance(e.code, int) else 1

    if parsed.command is None:
        # No command and no args - show help
        create_parser().print_help(sys.stderr)
        return 1

    setup_logging(parsed.verbose)

    try:
        config = build_config(parsed)
    except GenMocksError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return run_generate(config)


def main():
    """Entry point for the CLI."""
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
