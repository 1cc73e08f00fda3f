"""Data models for mock generation."""

from dataclasses import dataclass
from pathlib import Path

from gen_mocks.goparse.nodes import FuncType, ImportSpec, TypeExpr


@dataclass(frozen=True)
class MethodSignature:
    """A method of an interface: its name and function type."""

    name: str
    type: TypeExpr  # a FuncType for every well-formed interface


@dataclass(frozen=True)
class InterfaceDeclaration:
    """A top-level interface type selected for mocking."""

    name: str
    source_file: Path
    package: str
    methods: tuple[MethodSignature, ...]
    imports: tuple[ImportSpec, ...] = ()  # imports of the declaring file
    embedded: tuple[TypeExpr, ...] = ()
    type_params: str | None = None


@dataclass(frozen=True)
class FieldSpec:
    """A function-valued field of a mock struct."""

    name: str
    type: FuncType


@dataclass(frozen=True)
class DelegatingMethod:
    """A mock method that forwards its arguments to a struct field."""

    receiver: str
    receiver_type: str
    name: str
    signature: FuncType  # every parameter group is named
    field: str
    arguments: tuple[str, ...]  # forwarded in order, variadic spread included

    @property
    def returns_values(self) -> bool:
        return bool(self.signature.results)


@dataclass(frozen=True)
class MockDeclarationSet:
    """Everything generated for one interface."""

    interface: InterfaceDeclaration
    type_name: str
    fields: tuple[FieldSpec, ...]
    methods: tuple[DelegatingMethod, ...]


@dataclass(frozen=True)
class GeneratedFile:
    """A rendered mock file and where it belongs."""

    path: Path
    interface: str
    content: str
