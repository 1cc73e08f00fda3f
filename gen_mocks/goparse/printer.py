"""Render type expressions as gofmt would print them."""

from gen_mocks.goparse.nodes import (
    Array,
    Chan,
    Ellipsis,
    Field,
    FuncType,
    InterfaceType,
    Map,
    Paren,
    Pointer,
    Slice,
    StructType,
    TypeExpr,
    TypeName,
)

CHAN_PREFIXES = {"both": "chan ", "send": "chan<- ", "recv": "<-chan "}


def format_type(expr: TypeExpr) -> str:
    """Format a type expression on a single line.

    Raises:
        TypeError: If `expr` is not a known type expression node
    """
    if isinstance(expr, TypeName):
        text = f"{expr.package}.{expr.name}" if expr.package else expr.name
        if expr.args:
            text += "[" + ", ".join(format_type(arg) for arg in expr.args) + "]"
        return text
    if isinstance(expr, Pointer):
        return "*" + format_type(expr.elem)
    if isinstance(expr, Slice):
        return "[]" + format_type(expr.elem)
    if isinstance(expr, Array):
        return f"[{expr.length}]{format_type(expr.elem)}"
    if isinstance(expr, Map):
        return f"map[{format_type(expr.key)}]{format_type(expr.value)}"
    if isinstance(expr, Chan):
        return CHAN_PREFIXES[expr.direction] + format_type(expr.elem)
    if isinstance(expr, Ellipsis):
        return "..." + format_type(expr.elem)
    if isinstance(expr, Paren):
        return f"({format_type(expr.elem)})"
    if isinstance(expr, FuncType):
        return "func" + format_signature(expr)
    if isinstance(expr, InterfaceType):
        elements = [m.name + format_signature(m.type) for m in expr.methods]
        elements += [format_type(e) for e in expr.embedded]
        elements += list(expr.constraints)
        if not elements:
            return "interface{}"
        return "interface{ " + "; ".join(elements) + " }"
    if isinstance(expr, StructType):
        if not expr.fields:
            return "struct{}"
        fields = []
        for group in expr.fields:
            text = format_field(group)
            if group.tag:
                text += " " + group.tag
            fields.append(text)
        return "struct{ " + "; ".join(fields) + " }"
    raise TypeError(f"unsupported type expression: {expr!r}")


def format_field(group: Field) -> str:
    """Format a field group: `a, b int`, or just the type when unnamed."""
    if group.names:
        return ", ".join(group.names) + " " + format_type(group.type)
    return format_type(group.type)


def format_signature(func_type: FuncType) -> str:
    """Format parameters and results, e.g. `(id string) (string, error)`."""
    if not isinstance(func_type, FuncType):
        raise TypeError(f"expected a function type, got {func_type!r}")
    params = "(" + ", ".join(format_field(g) for g in func_type.params) + ")"
    results = func_type.results
    if not results:
        return params
    if len(results) == 1 and not results[0].names:
        return f"{params} {format_type(results[0].type)}"
    return f"{params} (" + ", ".join(format_field(g) for g in results) + ")"
