"""Build mock declarations from interface declarations."""

import logging
from dataclasses import replace

from gen_mocks.errors import GenMocksError
from gen_mocks.goparse.nodes import (
    Ellipsis,
    Field,
    FuncType,
    TypeExpr,
    TypeName,
    map_type_names,
)
from gen_mocks.models import (
    DelegatingMethod,
    FieldSpec,
    InterfaceDeclaration,
    MethodSignature,
    MockDeclarationSet,
)

logger = logging.getLogger(__name__)

MOCK_PREFIX = "Mock"
FIELD_SUFFIX = "_"
PARAM_PREFIX = "v"
RECEIVER_NAME = "s"

PREDECLARED_TYPES = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)


class InvariantViolation(GenMocksError):
    """An interface method that is not a function type."""


def mock_type_name(interface_name: str) -> str:
    return MOCK_PREFIX + interface_name


def field_name(method_name: str) -> str:
    return method_name + FIELD_SUFFIX


def name_parameters(
    params: tuple[Field, ...], results: tuple[Field, ...] = ()
) -> tuple[Field, ...]:
    """Give every parameter a name that a call can refer to.

    An unnamed field group becomes `v<i>`, where i is the group's position in
    the list. Blank (`_`) names are replaced the same way; a group of several
    blanks gets `v<i>_<j>`. Names already used by `results` are avoided.
    Returns new groups, `params` is left untouched.
    """
    taken = {name for group in params + results for name in group.names if name != "_"}

    def fresh(candidate: str) -> str:
        while candidate in taken:
            candidate += "_"
        taken.add(candidate)
        return candidate

    named = []
    for index, group in enumerate(params):
        if not group.names:
            names = (fresh(f"{PARAM_PREFIX}{index}"),)
        elif "_" in group.names:
            single = len(group.names) == 1
            names = tuple(
                fresh(f"{PARAM_PREFIX}{index}" if single else f"{PARAM_PREFIX}{index}_{j}")
                if name == "_"
                else name
                for j, name in enumerate(group.names)
            )
        else:
            named.append(group)
            continue
        named.append(replace(group, names=names))
    return tuple(named)


def forwarded_arguments(params: tuple[Field, ...]) -> tuple[str, ...]:
    """Argument list passing named parameters on in order, spreading a variadic one."""
    arguments = []
    for group in params:
        spread = "..." if isinstance(group.type, Ellipsis) else ""
        arguments.extend(name + spread for name in group.names)
    return tuple(arguments)


def receiver_name(func_type: FuncType) -> str:
    """The receiver name, moved aside if a parameter or named result already uses it."""
    names = {name for group in func_type.params + func_type.results for name in group.names}
    receiver = RECEIVER_NAME
    while receiver in names:
        receiver += "_"
    return receiver


def qualify(expr: TypeExpr, package: str) -> TypeExpr:
    """Qualify the source package's own type names for use from another package."""

    def qualify_name(type_name: TypeName) -> TypeName:
        if type_name.package or type_name.name in PREDECLARED_TYPES:
            return type_name
        if not type_name.name[0].isupper():
            logger.warning(
                f"unexported type {type_name.name} cannot be referenced from outside "
                f"package {package}"
            )
        return replace(type_name, package=package)

    return map_type_names(expr, qualify_name)


def _method_type(iface: InterfaceDeclaration, method: MethodSignature) -> FuncType:
    if not isinstance(method.type, FuncType):
        raise InvariantViolation(
            f"{iface.source_file}: method {iface.name}.{method.name} has non-function "
            f"type {type(method.type).__name__}"
        )
    return method.type


def synthesize(
    iface: InterfaceDeclaration, output_package: str | None = None
) -> MockDeclarationSet:
    """Build the mock struct and delegating methods for an interface.

    Args:
        iface: The interface to mock
        output_package: Package the mock is generated into; when it differs from
            the interface's package, the interface's own type names are qualified

    Returns:
        The mock declaration set, fields and methods in interface order

    Raises:
        InvariantViolation: If a method's type is not a function type
    """
    type_name = mock_type_name(iface.name)
    foreign = output_package is not None and output_package != iface.package

    fields = []
    methods = []
    for method in iface.methods:
        func_type = _method_type(iface, method)
        if foreign:
            func_type = qualify(func_type, iface.package)

        fields.append(FieldSpec(name=field_name(method.name), type=func_type))

        params = name_parameters(func_type.params, func_type.results)
        signature = replace(func_type, params=params)
        methods.append(
            DelegatingMethod(
                receiver=receiver_name(signature),
                receiver_type=type_name,
                name=method.name,
                signature=signature,
                field=field_name(method.name),
                arguments=forwarded_arguments(params),
            )
        )
        logger.debug(f"Synthesized {type_name}.{method.name}")

    logger.info(f"Synthesized {type_name} with {len(methods)} methods")
    return MockDeclarationSet(
        interface=iface,
        type_name=type_name,
        fields=tuple(fields),
        methods=tuple(methods),
    )
