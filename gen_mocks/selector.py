"""Select the interface declarations of a package that should be mocked."""

import logging
import re
from collections.abc import Callable

from gen_mocks.errors import ConfigError
from gen_mocks.goparse.nodes import GoFile, InterfaceType, TypeSpec
from gen_mocks.models import InterfaceDeclaration, MethodSignature
from gen_mocks.packages import GoPackage

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = "Service"
DEFAULT_PATTERN = rf"{DEFAULT_SUFFIX}$"

NameMatcher = Callable[[str], bool]


class RegexMatcher:
    """Match interface names with a regular expression (searched, not anchored)."""

    def __init__(self, pattern: str):
        try:
            self.regex = re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"invalid interface pattern {pattern!r}: {e}") from e
        self.pattern = pattern

    def __call__(self, name: str) -> bool:
        return self.regex.search(name) is not None

    def __repr__(self) -> str:
        return f"RegexMatcher({self.pattern!r})"


class SuffixMatcher:
    """Match interface names ending with a fixed suffix."""

    def __init__(self, suffix: str = DEFAULT_SUFFIX):
        self.suffix = suffix

    def __call__(self, name: str) -> bool:
        return name.endswith(self.suffix)

    def __repr__(self) -> str:
        return f"SuffixMatcher({self.suffix!r})"


def name_matcher(pattern: str | None) -> NameMatcher:
    """A regular expression matcher, or the suffix matcher when no pattern is given."""
    if pattern is None:
        return SuffixMatcher()
    return RegexMatcher(pattern)


def select_interfaces(
    package: GoPackage, matches: NameMatcher
) -> list[InterfaceDeclaration]:
    """Collect the top-level interfaces of a package whose names match.

    Declarations are returned in source order, file by file. Aliases and
    definitions in terms of another named interface are not followed. Generic
    interfaces and type-set constraints are skipped with a warning.

    Args:
        package: The parsed package
        matches: Predicate on interface names

    Returns:
        Matching interfaces; empty (with a warning logged) if none match
    """
    selected = []
    for go_file in package.files:
        for spec in go_file.types:
            if spec.alias or not isinstance(spec.type, InterfaceType):
                continue
            if not matches(spec.name):
                continue
            declaration = _to_declaration(go_file, spec)
            if declaration is not None:
                selected.append(declaration)

    if not selected:
        logger.warning(f"No interfaces matching {matches!r} in package {package.name}")
    else:
        names = ", ".join(d.name for d in selected)
        logger.info(f"Selected {len(selected)} interfaces in package {package.name}: {names}")
    return selected


def _to_declaration(go_file: GoFile, spec: TypeSpec) -> InterfaceDeclaration | None:
    location = f"{go_file.path}:{spec.line}"
    iface = spec.type
    if spec.type_params:
        logger.warning(f"{location}: skipping generic interface {spec.name}[{spec.type_params}]")
        return None
    if iface.constraints:
        logger.warning(f"{location}: skipping constraint interface {spec.name}")
        return None
    if iface.embedded:
        logger.warning(
            f"{location}: {spec.name} embeds {len(iface.embedded)} interfaces; "
            f"their methods are not mocked"
        )
    return InterfaceDeclaration(
        name=spec.name,
        source_file=go_file.path,
        package=go_file.package,
        methods=tuple(MethodSignature(m.name, m.type) for m in iface.methods),
        imports=go_file.imports,
        embedded=iface.embedded,
        type_params=spec.type_params,
    )
