"""Syntax tree for the declarations of a Go source file.

Only the parts of a file that matter for mock generation are modelled: the
package clause, imports, type declarations and function signatures. Every node
is a frozen dataclass holding tuples, so a parsed tree can be shared freely;
transformations build new nodes with `dataclasses.replace`.
"""

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from pathlib import Path

_LEADING_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_MAJOR_VERSION = re.compile(r"v[0-9]+")


class TypeExpr:
    """Base class for type expressions."""


@dataclass(frozen=True)
class TypeName(TypeExpr):
    """A named type, optionally package-qualified and instantiated: pkg.Name[T]."""

    name: str
    package: str | None = None
    args: tuple[TypeExpr, ...] = ()


@dataclass(frozen=True)
class Pointer(TypeExpr):
    elem: TypeExpr


@dataclass(frozen=True)
class Slice(TypeExpr):
    elem: TypeExpr


@dataclass(frozen=True)
class Array(TypeExpr):
    length: str  # source text of the length expression, "..." included
    elem: TypeExpr


@dataclass(frozen=True)
class Map(TypeExpr):
    key: TypeExpr
    value: TypeExpr


@dataclass(frozen=True)
class Chan(TypeExpr):
    elem: TypeExpr
    direction: str = "both"  # "both", "send" (chan<-) or "recv" (<-chan)


@dataclass(frozen=True)
class Ellipsis(TypeExpr):
    """The type of a variadic final parameter: ...T."""

    elem: TypeExpr


@dataclass(frozen=True)
class Paren(TypeExpr):
    elem: TypeExpr


@dataclass(frozen=True)
class Field:
    """A field group: `a, b int` is one group with two names.

    Anonymous parameters and embedded struct fields have no names.
    """

    names: tuple[str, ...]
    type: TypeExpr
    tag: str | None = None


@dataclass(frozen=True)
class FuncType(TypeExpr):
    params: tuple[Field, ...] = ()
    results: tuple[Field, ...] = ()

    @property
    def is_variadic(self) -> bool:
        return bool(self.params) and isinstance(self.params[-1].type, Ellipsis)


@dataclass(frozen=True)
class Method:
    """A method element of an interface type."""

    name: str
    type: TypeExpr


@dataclass(frozen=True)
class InterfaceType(TypeExpr):
    methods: tuple[Method, ...] = ()
    embedded: tuple[TypeExpr, ...] = ()
    constraints: tuple[str, ...] = ()  # type-set elements such as "~int | ~string"


@dataclass(frozen=True)
class StructType(TypeExpr):
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class ImportSpec:
    """One imported package, with its explicit name if the file gives one."""

    path: str
    name: str | None = None

    @property
    def package_name(self) -> str:
        """Name the imported package is referred to by in the importing file."""
        return self.name or assumed_package_name(self.path)


@dataclass(frozen=True)
class TypeSpec:
    name: str
    type: TypeExpr
    line: int
    column: int
    type_params: str | None = None
    alias: bool = False


@dataclass(frozen=True)
class FuncDecl:
    name: str
    type: FuncType
    line: int
    receiver: Field | None = None


@dataclass(frozen=True)
class GoFile:
    """The declarations of one parsed source file."""

    path: Path
    package: str
    imports: tuple[ImportSpec, ...] = ()
    types: tuple[TypeSpec, ...] = ()
    funcs: tuple[FuncDecl, ...] = ()
    # Offsets of the end of the package clause and of the import declarations
    package_end: int = 0
    imports_end: int = 0


def assumed_package_name(path: str) -> str:
    """Guess a package's name from its import path.

    Follows the goimports convention: the last path element, skipping a
    trailing major-version element ("/v2"), without a "go-" prefix and cut at
    the first character that cannot appear in an identifier
    ("gopkg.in/yaml.v3" is "yaml").
    """
    elements = path.split("/")
    base = elements[-1]
    if _MAJOR_VERSION.fullmatch(base) and len(elements) > 1:
        base = elements[-2]
    if base.startswith("go-"):
        base = base[3:]
    match = _LEADING_IDENT.match(base)
    return match.group() if match else base


def iter_type_names(expr: TypeExpr) -> Iterator[TypeName]:
    """Yield every TypeName inside a type expression, depth first, in source order."""
    if isinstance(expr, TypeName):
        yield expr
        for arg in expr.args:
            yield from iter_type_names(arg)
    elif isinstance(expr, (Pointer, Slice, Array, Chan, Ellipsis, Paren)):
        yield from iter_type_names(expr.elem)
    elif isinstance(expr, Map):
        yield from iter_type_names(expr.key)
        yield from iter_type_names(expr.value)
    elif isinstance(expr, FuncType):
        for group in expr.params + expr.results:
            yield from iter_type_names(group.type)
    elif isinstance(expr, InterfaceType):
        for method in expr.methods:
            yield from iter_type_names(method.type)
        for embedded in expr.embedded:
            yield from iter_type_names(embedded)
    elif isinstance(expr, StructType):
        for group in expr.fields:
            yield from iter_type_names(group.type)


def map_type_names(expr: TypeExpr, fn: Callable[[TypeName], TypeName]) -> TypeExpr:
    """Return a copy of `expr` with every TypeName replaced by `fn(type_name)`.

    Type arguments are rewritten before `fn` sees their enclosing name.
    """
    if isinstance(expr, TypeName):
        args = tuple(map_type_names(arg, fn) for arg in expr.args)
        return fn(replace(expr, args=args))
    if isinstance(expr, (Pointer, Slice, Array, Chan, Ellipsis, Paren)):
        return replace(expr, elem=map_type_names(expr.elem, fn))
    if isinstance(expr, Map):
        return replace(
            expr, key=map_type_names(expr.key, fn), value=map_type_names(expr.value, fn)
        )
    if isinstance(expr, FuncType):
        return replace(
            expr,
            params=_map_fields(expr.params, fn),
            results=_map_fields(expr.results, fn),
        )
    if isinstance(expr, InterfaceType):
        return replace(
            expr,
            methods=tuple(
                replace(m, type=map_type_names(m.type, fn)) for m in expr.methods
            ),
            embedded=tuple(map_type_names(e, fn) for e in expr.embedded),
        )
    if isinstance(expr, StructType):
        return replace(expr, fields=_map_fields(expr.fields, fn))
    return expr


def _map_fields(
    fields: tuple[Field, ...], fn: Callable[[TypeName], TypeName]
) -> tuple[Field, ...]:
    return tuple(replace(f, type=map_type_names(f.type, fn)) for f in fields)
