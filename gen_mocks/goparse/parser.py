"""Parse the top-level declarations of Go source files."""

import logging
from dataclasses import dataclass
from pathlib import Path

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from gen_mocks.errors import GenMocksError
from gen_mocks.goparse.nodes import (
    Array,
    Chan,
    Ellipsis,
    Field,
    FuncDecl,
    FuncType,
    GoFile,
    ImportSpec,
    InterfaceType,
    Map,
    Method,
    Paren,
    Pointer,
    Slice,
    StructType,
    TypeExpr,
    TypeName,
    TypeSpec,
)

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

# Keywords that may start a declaration after the package clause
_DECLARATION_KEYWORDS = frozenset({"IMPORT", "TYPE", "FUNC", "VAR", "CONST"})


@dataclass(frozen=True)
class SyntaxIssue:
    """A syntax error at a position in a source file."""

    filename: str
    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}: {self.message}"


class GoParseError(GenMocksError):
    """A syntax error in a Go source file."""

    def __init__(self, issue: SyntaxIssue):
        self.issue = issue
        super().__init__(str(issue))


class SemicolonInserter:
    """Turn line ends into statement terminators the way the Go lexer does.

    A newline (or a general comment spanning lines) ends the statement when the
    line's last token is a name, a literal, a closing bracket or `++`/`--`.
    Explicit semicolons always do. Comments produce no tokens.
    """

    always_accept = ("NEWLINE", "SEMI", "COMMENT")

    TERMINABLE = {
        "NAME",
        "NUMBER",
        "STRING",
        "RAW_STRING",
        "RUNE",
        "RPAR",
        "RSQB",
        "RBRACE",
    }

    def process(self, stream):
        can_terminate = False
        last = None
        for token in stream:
            ttype = token.type
            if ttype == "COMMENT" and "\n" not in token.value:
                continue
            if ttype in ("NEWLINE", "COMMENT"):
                if can_terminate:
                    yield Token.new_borrow_pos("_SEP", "\n", token)
                    can_terminate = False
                continue
            if ttype == "SEMI":
                yield Token.new_borrow_pos("_SEP", token.value, token)
                can_terminate = False
                continue
            yield token
            last = token
            can_terminate = ttype in self.TERMINABLE or token.value in ("++", "--")
        if can_terminate:
            yield Token.new_borrow_pos("_SEP", "\n", last)


_PARSER = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="earley",
    lexer="basic",
    propagate_positions=True,
    maybe_placeholders=False,
    postlex=SemicolonInserter(),
)


class _BuildError(Exception):
    """A construct the grammar accepts but Go does not."""

    def __init__(self, tree: Tree, message: str):
        super().__init__(message)
        self.line = tree.meta.line
        self.column = tree.meta.column


def parse_source_file(path: Path) -> GoFile:
    """Read and parse a Go source file.

    Args:
        path: Path to the .go file

    Returns:
        The parsed GoFile

    Raises:
        GoParseError: If the file is not UTF-8 or has syntax errors
        OSError: If the file cannot be read
    """
    logger.info(f"Parsing {path}")
    data = path.read_bytes()
    try:
        source = data.decode("utf-8")
    except UnicodeDecodeError as e:
        line_start = data.rfind(b"\n", 0, e.start) + 1
        issue = SyntaxIssue(
            str(path),
            data.count(b"\n", 0, e.start) + 1,
            e.start - line_start + 1,
            "illegal UTF-8 encoding",
        )
        raise GoParseError(issue) from e
    return parse_file(source, path)


def parse_file(source: str, path: Path | str = "<input>") -> GoFile:
    """Parse Go source text.

    Parsing stops at the first syntax error.

    Args:
        source: Go source text
        path: Path reported in error messages and stored on the result

    Returns:
        The parsed GoFile

    Raises:
        GoParseError: If the source has a syntax error
    """
    path = Path(path)
    if source.startswith(BYTE_ORDER_MARK):
        # Blanked rather than removed so offsets into the source stay valid
        source = " " + source[len(BYTE_ORDER_MARK) :]
    try:
        tree = _PARSER.parse(source)
        go_file = _build_file(tree, source, path)
    except UnexpectedInput as e:
        raise GoParseError(_syntax_issue(e, source, str(path))) from e
    except _BuildError as e:
        raise GoParseError(SyntaxIssue(str(path), e.line, e.column, str(e))) from e
    logger.debug(
        f"Parsed {path}: package {go_file.package}, {len(go_file.types)} types, "
        f"{len(go_file.funcs)} funcs"
    )
    return go_file


# ===--- errors ---=== #


def _syntax_issue(error: UnexpectedInput, source: str, filename: str) -> SyntaxIssue:
    if isinstance(error, UnexpectedCharacters):
        message = _describe_bad_character(source, error.pos_in_stream)
        return SyntaxIssue(filename, error.line, error.column, message)
    if isinstance(error, UnexpectedToken):
        message = _describe_unexpected(error.token, set(error.expected), source)
        return SyntaxIssue(filename, error.line, error.column, message)
    # Running out of input carries no position; report the end of the source
    line = source.count("\n") + 1
    column = len(source) - source.rfind("\n")
    return SyntaxIssue(filename, line, column, "unexpected end of file")


def _describe_bad_character(source: str, pos: int) -> str:
    char = source[pos]
    if char in "\"`":
        return "string literal not terminated"
    if char == "'":
        return "rune literal not terminated"
    return f"invalid character {char!r}"


def _describe_unexpected(token: Token, expected: set[str], source: str) -> str:
    if source.startswith("/*", token.start_pos):
        return "comment not terminated"
    if token.type == "_SEP":
        found = "semicolon" if token.value == ";" else "newline"
    else:
        found = repr(token.value)
    if "PACKAGE" in expected:
        return f"expected 'package', found {found}: package clause must come first"
    if token.type == "IMPORT":
        return "imports must appear before other declarations"
    if expected and expected <= _DECLARATION_KEYWORDS:
        return f"non-declaration statement outside function body: {found}"
    return f"syntax error: unexpected {found}"


# ===--- tree building ---=== #


def _build_file(tree: Tree, source: str, path: Path) -> GoFile:
    package_clause, *declarations = tree.children
    package_token = package_clause.children[0]
    imports: list[ImportSpec] = []
    imports_end = package_token.end_pos
    types: list[TypeSpec] = []
    funcs: list[FuncDecl] = []
    for child in declarations:
        kind = _name(child)
        if kind == "import_decl":
            imports.extend(_build_import_spec(spec) for spec in child.children)
            imports_end = child.meta.end_pos
        elif kind == "type_decl":
            types.extend(_build_type_spec(spec, source) for spec in child.children)
        elif kind == "func_decl":
            funcs.append(_build_func_decl(child, source))
    return GoFile(
        path=path,
        package=package_token.value,
        imports=tuple(imports),
        types=tuple(types),
        funcs=tuple(funcs),
        package_end=package_token.end_pos,
        imports_end=imports_end,
    )


def _build_import_spec(tree: Tree) -> ImportSpec:
    name = None
    path = ""
    for child in tree.children:
        if isinstance(child, Tree):
            name = child.children[0].value
        else:
            path = child.value[1:-1]
    return ImportSpec(path=path, name=name)


def _build_type_spec(tree: Tree, source: str) -> TypeSpec:
    name_token, *rest = tree.children
    type_params = None
    if _name(rest[0]) == "type_params":
        type_params = _text(rest[0].children[0], source)
        rest = rest[1:]
    return TypeSpec(
        name=name_token.value,
        type=_build_type(rest[0], source),
        line=name_token.line,
        column=name_token.column,
        type_params=type_params,
        alias=_name(tree) == "alias_spec",
    )


def _build_func_decl(tree: Tree, source: str) -> FuncDecl:
    receiver = None
    name_token = next(child for child in tree.children if isinstance(child, Token))
    signature = None
    for child in tree.children:
        kind = _name(child)
        if kind == "receiver":
            groups = _build_parameters(child.children[0], source)
            if len(groups) != 1:
                raise _BuildError(child, "method has multiple receivers")
            receiver = groups[0]
        elif kind == "signature":
            signature = _build_signature(child, source)
    return FuncDecl(
        name=name_token.value,
        type=signature,
        line=tree.meta.line,
        receiver=receiver,
    )


def _build_type(tree: Tree, source: str) -> TypeExpr:
    kind = _name(tree)
    children = tree.children
    if kind == "type_name":
        return _build_type_name(tree, source)
    if kind == "pointer_type":
        return Pointer(_build_type(children[0], source))
    if kind == "slice_type":
        return Slice(_build_type(children[0], source))
    if kind == "array_type":
        return Array(_text(children[0], source), _build_type(children[1], source))
    if kind == "map_type":
        return Map(_build_type(children[0], source), _build_type(children[1], source))
    if kind == "chan_type":
        return Chan(_build_type(children[0], source), "both")
    if kind == "send_chan_type":
        return Chan(_build_type(children[0], source), "send")
    if kind == "recv_chan_type":
        return Chan(_build_type(children[0], source), "recv")
    if kind == "func_type":
        return _build_signature(children[0], source)
    if kind == "interface_type":
        return _build_interface(tree, source)
    if kind == "struct_type":
        return StructType(fields=tuple(_build_field(child, source) for child in children))
    if kind == "paren_type":
        return Paren(_build_type(children[0], source))
    raise ValueError(f"Unsupported type node: {kind}")


def _build_type_name(tree: Tree, source: str) -> TypeName:
    names = [child.value for child in tree.children if isinstance(child, Token)]
    args: tuple[TypeExpr, ...] = ()
    last = tree.children[-1]
    if isinstance(last, Tree):
        args = tuple(_build_type(arg, source) for arg in last.children)
    if len(names) == 2:
        return TypeName(name=names[1], package=names[0], args=args)
    return TypeName(name=names[0], args=args)


def _build_signature(tree: Tree, source: str) -> FuncType:
    params = _build_parameters(tree.children[0], source)
    results: tuple[Field, ...] = ()
    if len(tree.children) > 1:
        result = tree.children[1].children[0]
        if _name(result) == "parameters":
            results = _build_parameters(result, source)
        else:
            results = (Field((), _build_type(result, source)),)
    return FuncType(params=params, results=results)


def _build_parameters(tree: Tree, source: str) -> tuple[Field, ...]:
    """Turn a parenthesized parameter or result list into field groups.

    Go only knows whether `(a, b)` lists names or types once it sees the
    whole list: if any entry pairs a name with a type, the bare identifiers
    before it are names sharing that type.
    """
    entries = [_build_param(child, source) for child in tree.children]

    if not any(name is not None and typ is not None for name, typ in entries):
        return tuple(
            Field((), typ if typ is not None else TypeName(name)) for name, typ in entries
        )

    groups: list[Field] = []
    pending: list[str] = []
    for name, typ in entries:
        if typ is None:
            pending.append(name)
            continue
        if name is None:
            raise _BuildError(tree, "mixed named and unnamed parameters")
        pending.append(name)
        groups.append(Field(tuple(pending), typ))
        pending = []
    if pending:
        raise _BuildError(tree, "mixed named and unnamed parameters")
    return tuple(groups)


def _build_param(tree: Tree, source: str) -> tuple[str | None, TypeExpr | None]:
    """Build one comma-separated entry as (name, type).

    A lone unqualified identifier comes back as (identifier, None) because it
    may be either a name or a type.
    """
    kind = _name(tree)
    children = tree.children
    if kind == "named_param":
        return children[0].value, _build_type(children[1], source)
    if kind == "named_variadic_param":
        return children[0].value, Ellipsis(_build_type(children[1], source))
    if kind == "variadic_param":
        return None, Ellipsis(_build_type(children[0], source))
    typ = _build_type(children[0], source)
    if isinstance(typ, TypeName) and typ.package is None and not typ.args:
        return typ.name, None
    return None, typ


def _build_interface(tree: Tree, source: str) -> InterfaceType:
    methods: list[Method] = []
    embedded: list[TypeExpr] = []
    constraints: list[str] = []
    for child in tree.children:
        kind = _name(child)
        if kind == "method_spec":
            name_token, signature = child.children
            methods.append(Method(name=name_token.value, type=_build_signature(signature, source)))
        elif kind == "embedded_elem":
            embedded.append(_build_type_name(child.children[0], source))
        else:
            constraints.append(_text(child, source))
    return InterfaceType(
        methods=tuple(methods),
        embedded=tuple(embedded),
        constraints=tuple(constraints),
    )


def _build_field(tree: Tree, source: str) -> Field:
    children = tree.children
    tag = None
    if _name(children[-1]) == "tag":
        tag = children[-1].children[0].value
        children = children[:-1]
    kind = _name(tree)
    if kind == "embedded_field":
        return Field((), _build_type_name(children[0], source), tag=tag)
    if kind == "embedded_pointer_field":
        return Field((), Pointer(_build_type_name(children[0], source)), tag=tag)
    names = tuple(child.value for child in children[:-1])
    return Field(names, _build_type(children[-1], source), tag=tag)


def _text(tree: Tree, source: str) -> str:
    return source[tree.meta.start_pos : tree.meta.end_pos]


def _name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    return node.type
