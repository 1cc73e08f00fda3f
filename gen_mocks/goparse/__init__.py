"""Go source parsing: syntax tree, lark grammar and parser, type printer."""

from gen_mocks.goparse.nodes import (
    FuncType,
    GoFile,
    ImportSpec,
    InterfaceType,
    TypeSpec,
)
from gen_mocks.goparse.parser import GoParseError, parse_file, parse_source_file
from gen_mocks.goparse.printer import format_signature, format_type

__all__ = [
    # Syntax tree
    "GoFile",
    "ImportSpec",
    "TypeSpec",
    "FuncType",
    "InterfaceType",
    # Parsing
    "parse_file",
    "parse_source_file",
    "GoParseError",
    # Printing
    "format_type",
    "format_signature",
]
