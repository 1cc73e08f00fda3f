"""Render mock declarations as Go source files."""

import logging
from dataclasses import dataclass

from gen_mocks.errors import GenMocksError
from gen_mocks.goparse.nodes import ImportSpec
from gen_mocks.goparse.printer import format_signature, format_type
from gen_mocks.imports import Formatter, ImportResolver
from gen_mocks.models import DelegatingMethod, MockDeclarationSet

logger = logging.getLogger(__name__)


class EmitError(GenMocksError):
    """A mock declaration set that cannot be rendered."""


@dataclass(frozen=True)
class FileUnit:
    """The contents of one generated file, before rendering."""

    package: str
    imports: tuple[ImportSpec, ...]
    mock: MockDeclarationSet


def build_file_unit(
    mock: MockDeclarationSet, package: str, extra_imports: tuple[ImportSpec, ...] = ()
) -> FileUnit:
    """Collect the package clause and candidate imports for a mock.

    The candidates are the interface file's imports plus `extra_imports`;
    unused ones are removed later by the import formatter.
    """
    imports: dict[str, ImportSpec] = {}
    for spec in mock.interface.imports + extra_imports:
        if spec.name == "_":
            continue
        imports.setdefault(spec.path, spec)
    return FileUnit(package=package, imports=tuple(imports.values()), mock=mock)


def render_file(unit: FileUnit) -> str:
    """Render a file unit in gofmt layout.

    Declarations follow each other without blank lines; `separate_functions`
    adds them.
    """
    mock = unit.mock
    lines = [f"package {unit.package}", ""]
    if unit.imports:
        lines.append("import (")
        for spec in unit.imports:
            prefix = f"{spec.name} " if spec.name else ""
            lines.append(f'\t{prefix}"{spec.path}"')
        lines.append(")")
        lines.append("")

    if mock.fields:
        width = max(len(f.name) for f in mock.fields)
        lines.append(f"type {mock.type_name} struct {{")
        for field in mock.fields:
            lines.append(f"\t{field.name.ljust(width)} {format_type(field.type)}")
        lines.append("}")
    else:
        lines.append(f"type {mock.type_name} struct{{}}")

    for method in mock.methods:
        lines.extend(_render_method(method))
    return "\n".join(lines) + "\n"


def _render_method(method: DelegatingMethod) -> list[str]:
    call = f"{method.receiver}.{method.field}({', '.join(method.arguments)})"
    statement = f"return {call}" if method.returns_values else call
    return [
        f"func ({method.receiver} *{method.receiver_type}) {method.name}"
        f"{format_signature(method.signature)} {{",
        f"\t{statement}",
        "}",
    ]


def separate_functions(source: str) -> str:
    """Always put a blank line between a closing brace and the next func."""
    return source.replace("}\nfunc", "}\n\nfunc")


class Emitter:
    """Turn mock declaration sets into final, import-normalized Go source."""

    def __init__(self, formatter: Formatter | None = None):
        self.formatter = formatter or ImportResolver()

    def emit(
        self,
        mock: MockDeclarationSet,
        package: str,
        filename: str,
        extra_imports: tuple[ImportSpec, ...] = (),
    ) -> str:
        """Render one mock file.

        Args:
            mock: The declarations to render
            package: Package clause of the generated file
            filename: Path the file will be written to, used by the formatter
            extra_imports: Imports to offer besides those of the interface's file

        Returns:
            Go source text

        Raises:
            EmitError: If the declarations cannot be rendered
            ImportResolutionError: If a referenced package cannot be imported
        """
        unit = build_file_unit(mock, package, extra_imports)
        try:
            source = render_file(unit)
        except TypeError as e:
            raise EmitError(f"cannot render {mock.type_name}: {e}") from e
        source = separate_functions(source)
        logger.debug(f"Rendered {mock.type_name} for {filename}")
        return self.formatter.process(filename, source)
