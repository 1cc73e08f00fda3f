"""Tests for rendering mock files."""

from pathlib import Path

import pytest

from gen_mocks.emitter import (
    EmitError,
    Emitter,
    build_file_unit,
    render_file,
    separate_functions,
)
from gen_mocks.goparse.nodes import FuncType, ImportSpec
from gen_mocks.goparse.parser import parse_file, parse_source_file
from gen_mocks.models import FieldSpec, InterfaceDeclaration, MethodSignature
from gen_mocks.packages import GoPackage
from gen_mocks.selector import RegexMatcher, select_interfaces
from gen_mocks.synthesizer import synthesize


@pytest.fixture
def fixtures_path():
    return Path(__file__).parent / "fixtures"


EXPECTED_FETCHER = """\
package svc

type MockFetcher struct {
\tGet_ func(id string) (string, error)
}

func (s *MockFetcher) Get(id string) (string, error) {
\treturn s.Get_(id)
}
"""

EXPECTED_USER_SERVICE = """\
package svc

import (
\t"context"
\t"time"

\t"example.com/app/models"
)

type MockUserService struct {
\tGet_   func(ctx context.Context, id string) (*models.User, error)
\tList_  func(ctx context.Context, offset, limit int) ([]*models.User, error)
\tLog_   func(format string, args ...interface{})
\tTouch_ func(context.Context, time.Time) error
\tStats_ func() (count int, err error)
}

func (s *MockUserService) Get(ctx context.Context, id string) (*models.User, error) {
\treturn s.Get_(ctx, id)
}

func (s *MockUserService) List(ctx context.Context, offset, limit int) ([]*models.User, error) {
\treturn s.List_(ctx, offset, limit)
}

func (s *MockUserService) Log(format string, args ...interface{}) {
\ts.Log_(format, args...)
}

func (s *MockUserService) Touch(v0 context.Context, v1 time.Time) error {
\treturn s.Touch_(v0, v1)
}

func (s *MockUserService) Stats() (count int, err error) {
\treturn s.Stats_()
}
"""


def mock_for(fixture: Path, name: str, output_package: str | None = None):
    go_file = parse_source_file(fixture)
    package = GoPackage(name=go_file.package, directory=fixture.parent, files=[go_file])
    [iface] = select_interfaces(package, RegexMatcher(f"^{name}$"))
    return synthesize(iface, output_package)


class TestEmit:
    def given_mock(self, fixtures_path, filename: str, name: str):
        self.mock = mock_for(fixtures_path / "svc" / filename, name)

    def when_emitted(self, package: str = "svc", extra_imports=()):
        self.source = Emitter().emit(self.mock, package, "svc/out_mock.go", extra_imports)

    def test_renders_single_method_mock(self, fixtures_path):
        """The fetcher mock matches gofmt output exactly."""
        self.given_mock(fixtures_path, "fetcher.go", "Fetcher")
        self.when_emitted()
        assert self.source == EXPECTED_FETCHER

    def test_renders_full_service_mock(self, fixtures_path):
        """Aligned fields, sorted imports and unused imports dropped."""
        self.given_mock(fixtures_path, "users.go", "UserService")
        self.when_emitted()
        assert self.source == EXPECTED_USER_SERVICE

    def test_methods_without_results_do_not_return(self, fixtures_path):
        """A method with no results calls its field as a statement."""
        self.given_mock(fixtures_path, "users.go", "UserService")
        self.when_emitted()
        assert "\ts.Log_(format, args...)\n" in self.source
        assert "return s.Log_" not in self.source

    def test_output_parses_as_go(self, fixtures_path):
        """The generated file is valid input for the parser."""
        self.given_mock(fixtures_path, "users.go", "UserService")
        self.when_emitted()

        go_file = parse_file(self.source, "users_mock.go")

        assert [t.name for t in go_file.types] == ["MockUserService"]
        assert [f.name for f in go_file.funcs] == ["Get", "List", "Log", "Touch", "Stats"]

    def test_output_is_deterministic(self, fixtures_path):
        """Emitting the same mock twice gives identical text."""
        self.given_mock(fixtures_path, "users.go", "UserService")
        self.when_emitted()
        first = self.source
        self.when_emitted()
        assert self.source == first

    def test_uses_formatter_result(self, fixtures_path):
        """Whatever the formatter returns is the emitted source."""

        class Recording:
            def process(self, filename, source):
                self.seen = (filename, source)
                return "formatted"

        formatter = Recording()
        self.given_mock(fixtures_path, "fetcher.go", "Fetcher")

        result = Emitter(formatter).emit(self.mock, "svc", "svc/fetcher_mock.go")

        assert result == "formatted"
        assert formatter.seen[0] == "svc/fetcher_mock.go"
        assert "}\n\nfunc (s *MockFetcher)" in formatter.seen[1]

    def test_unrenderable_type_is_an_emit_error(self, fixtures_path):
        """A field type the printer does not know is reported, not crashed on."""
        self.given_mock(fixtures_path, "fetcher.go", "Fetcher")
        broken = type(self.mock)(
            interface=self.mock.interface,
            type_name=self.mock.type_name,
            fields=(FieldSpec(name="Get_", type=object()),),
            methods=self.mock.methods,
        )

        with pytest.raises(EmitError, match="cannot render MockFetcher"):
            Emitter().emit(broken, "svc", "svc/fetcher_mock.go")


class TestFileUnit:
    def test_merges_and_dedupes_imports(self):
        """Extra imports join the interface's imports once per path, blank imports dropped."""
        go_file = parse_file(
            'package svc\n\nimport (\n\t"context"\n\t_ "embed"\n)\n\n'
            "type PingService interface {\n\tPing(context.Context) error\n}\n"
        )
        iface = InterfaceDeclaration(
            name="PingService",
            source_file=Path("ping.go"),
            package="svc",
            methods=(MethodSignature("Ping", go_file.types[0].type.methods[0].type),),
            imports=go_file.imports,
        )

        unit = build_file_unit(
            synthesize(iface), "mocks", (ImportSpec("context"), ImportSpec("example.com/svc"))
        )

        assert unit.package == "mocks"
        assert [s.path for s in unit.imports] == ["context", "example.com/svc"]

    def test_empty_interface_renders_empty_struct(self):
        """An interface without methods becomes an empty struct."""
        iface = InterfaceDeclaration(
            name="NopService", source_file=Path("nop.go"), package="svc", methods=()
        )

        source = render_file(build_file_unit(synthesize(iface), "svc"))

        assert source == "package svc\n\ntype MockNopService struct{}\n"


class TestSeparateFunctions:
    def test_inserts_blank_line_before_func(self):
        """A closing brace directly followed by func gets a blank line."""
        assert separate_functions("}\nfunc a() {\n}\nfunc b() {\n}\n") == (
            "}\n\nfunc a() {\n}\n\nfunc b() {\n}\n"
        )

    def test_leaves_separated_source_alone(self):
        """Already separated declarations are unchanged."""
        source = "}\n\nfunc a() {\n}\n"
        assert separate_functions(source) == source


def test_field_type_is_the_interface_signature():
    """The struct field uses the method signature as written."""
    go_file = parse_file("package p\n\ntype CheckService interface {\n\tCheck(bool) error\n}\n")
    method = go_file.types[0].type.methods[0]
    assert isinstance(method.type, FuncType)

    iface = InterfaceDeclaration(
        name="CheckService",
        source_file=Path("check.go"),
        package="p",
        methods=(MethodSignature(method.name, method.type),),
    )
    source = Emitter().emit(synthesize(iface), "p", "check_mock.go")

    assert "\tCheck_ func(bool) error\n" in source
    assert "func (s *MockCheckService) Check(v0 bool) error {\n\treturn s.Check_(v0)\n}" in source
