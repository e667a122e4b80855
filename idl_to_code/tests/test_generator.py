import io

import pytest

from idl_to_code import __version__
from idl_to_code.config import GeneratorConfig
from idl_to_code.errors import (
    CompileError,
    ConflictError,
    ImportConflictError,
    SinkWriteError,
    TemplateError,
    TypeLookupError,
)
from idl_to_code.generator import Generator, template_func
from idl_to_code.package_importer import PrefixPackageImporter
from idl_to_code.types import I32, STRING, Constant, ListSpec, StructSpec

GO_BANNER = f"// Code generated by idl-to-code v{__version__}. DO NOT EDIT.\n// @generated\n"


def make_generator(**kwargs) -> Generator:
    config = GeneratorConfig(package_name="shared", import_path="example.com/gen/shared", **kwargs)
    return Generator(config, package_importer=PrefixPackageImporter("example.com/gen", "idl"))


class FailingSink:
    def write(self, text):
        raise OSError("disk full")


class TestDeclare:
    """Tests for admitting declarations into the package."""

    def test_declarations_are_written_in_order(self):
        """Banner, header, empty import block, then declarations in order"""
        generator = make_generator()
        generator.declare("type T struct{}", {})
        generator.declare("func F(){}", {})

        assert generator.write_to_string() == GO_BANNER + "\npackage shared\n\ntype T struct{}\n\nfunc F(){}\n"

    def test_strict_duplicate_fails(self):
        generator = make_generator()
        generator.declare("func F(){}", {})

        with pytest.raises(ConflictError) as excinfo:
            generator.declare("func F(){}", {})
        assert excinfo.value.name == "F"
        assert len(generator.pending) == 1

    def test_lenient_duplicate_is_skipped(self):
        generator = make_generator()
        generator.declare("func F(){}", {})

        generator.ensure_declared("func F(){}", {})
        assert len(generator.pending) == 1

    def test_lenient_keeps_processing_fragment(self):
        generator = make_generator()
        generator.declare("func F() {}", {})

        generator.ensure_declared("func F() {}\n\nfunc G() {}", {})
        assert [decl.key for decl in generator.pending] == ["F", "G"]

    def test_methods_of_different_receivers_do_not_conflict(self):
        generator = make_generator()
        generator.declare('func (a A) String() string { return "a" }', {})
        generator.declare('func (b *B) String() string { return "b" }', {})

        with pytest.raises(ConflictError):
            generator.declare('func (a *A) String() string { return "a" }', {})

    def test_method_does_not_conflict_with_function(self):
        generator = make_generator()
        generator.declare("func String() string { return \"\" }", {})
        generator.declare('func (a A) String() string { return "a" }', {})

        assert len(generator.pending) == 2

    def test_template_data_and_functions(self):
        generator = make_generator()
        generator.declare(
            "<: format_doc(doc) :>type <: go_case(name) :> int32",
            {"name": "status_code", "doc": "StatusCode of a reply."},
        )

        (decl,) = generator.pending
        assert decl.source == "// StatusCode of a reply.\ntype StatusCode int32"

    def test_explicit_imports_go_to_import_block(self):
        generator = make_generator()
        generator.declare('import "fmt"\n\nfunc Print() { fmt.Println() }', {})

        assert len(generator.pending) == 1
        out = generator.write_to_string()
        assert 'import "fmt"\n\nfunc Print() { fmt.Println() }\n' in out

    def test_explicit_import_conflict_is_never_swallowed(self):
        """Alias collisions of explicit imports fail even when lenient"""
        generator = make_generator()
        assert generator.import_module("example.com/a/b") == "b"

        with pytest.raises(ImportConflictError):
            generator.ensure_declared('import b "example.com/c/b"\n\nfunc G() {}', {})

    def test_failed_declare_admits_nothing(self):
        generator = make_generator()
        generator.declare("func B() {}", {})

        with pytest.raises(ConflictError):
            generator.declare("func A() {}\n\nfunc B() {}", {})

        generator.declare("func A() {}", {})
        assert [decl.key for decl in generator.pending] == ["B", "A"]

    def test_failed_declare_rolls_back_imports(self):
        generator = make_generator()

        with pytest.raises(ConflictError):
            generator.declare(
                'var x <: import_module("time") :>.Duration\n\nvar x int',
                {},
            )
        assert len(generator.importer) == 0

    def test_helper_exception_rolls_back_imports(self):
        """Errors that are not generation errors also leave the file untouched"""

        def wire_type(generator, name):
            generator.import_module("go.uber.org/thriftrw/wire")
            return {"i32": "wire.TI32"}[name]

        config = GeneratorConfig(package_name="shared", import_path="example.com/gen/shared")
        generator = Generator(config, helpers={"wire_type": wire_type})

        with pytest.raises(KeyError):
            generator.declare(
                'var x <: import_module("fmt") :>.Stringer\n\nvar y = <: wire_type("uuid") :>',
                {},
            )
        assert len(generator.importer) == 0
        assert generator.pending == []
        generator.declare("var x int", {})

    def test_partial_admission_without_atomic_declare(self):
        """Earlier declarations of a failed call stay admitted"""
        generator = make_generator(atomic_declare=False)
        generator.declare("func B() {}", {})

        with pytest.raises(ConflictError):
            generator.declare("func A() {}\n\nfunc B() {}", {})

        assert [decl.key for decl in generator.pending] == ["B", "A"]
        with pytest.raises(ConflictError):
            generator.declare("func A() {}", {})

    def test_grouped_declaration_is_reserved_as_a_whole(self):
        generator = make_generator()
        generator.declare("const B = 2", {})

        generator.ensure_declared("const (\n\tA = 1\n\tB = 2\n)", {})
        assert len(generator.pending) == 1
        generator.declare("const A = 1", {})

    def test_template_error(self):
        generator = make_generator()

        with pytest.raises(TemplateError):
            generator.declare('type T struct { X <: import_module("time") :>.Time }\n<: missing :>', {})
        assert len(generator.importer) == 0
        assert generator.pending == []

    def test_compile_error(self):
        generator = make_generator()

        with pytest.raises(CompileError) as excinfo:
            generator.declare("func <: name :>( {", {"name": "F"})
        assert excinfo.value.source == "func F( {"
        assert not generator.namespace.is_taken("F")


class TestWrite:
    """Tests for flushing files."""

    def test_state_is_reset(self):
        generator = make_generator()
        generator.import_module("fmt")
        generator.declare("type T struct{}", {})
        generator.write_to_string()

        assert generator.pending == []
        assert len(generator.importer) == 0

    def test_names_stay_reserved_across_files(self):
        generator = make_generator()
        generator.declare("type T struct{}", {})
        generator.write_to_string()

        with pytest.raises(ConflictError):
            generator.declare("type T struct{}", {})

    def test_init_may_be_declared_once_per_file(self):
        generator = make_generator()
        generator.declare("func init() {}", {})
        with pytest.raises(ConflictError):
            generator.declare("func init() {}", {})

        generator.write_to_string()
        generator.declare("func init() {}", {})

    def test_reentrant_names_are_configurable(self):
        generator = make_generator(reentrant_names=["Register"])
        generator.declare("func init() {}\n\nfunc Register() {}", {})
        generator.write_to_string()

        generator.declare("func Register() {}", {})
        with pytest.raises(ConflictError):
            generator.declare("func init() {}", {})

    def test_imports_are_per_file(self):
        generator = make_generator()
        generator.declare('type T struct {\n\tCreated <: import_module("time") :>.Time\n}', {})
        first = generator.write_to_string()
        generator.declare("type U struct{}", {})
        second = generator.write_to_string()

        assert 'import "time"\n\ntype T struct {\n\tCreated time.Time\n}\n' in first
        assert "import" not in second

    def test_mangled_names_persist_across_files(self):
        generator = make_generator()
        name = generator.mangle_type(ListSpec(STRING))
        generator.write_to_string()

        assert generator.mangle_type(ListSpec(STRING)) == name
        assert generator.namespace.is_taken(name)

    def test_sink_failure(self):
        generator = make_generator()
        generator.declare("type T struct{}", {})

        with pytest.raises(SinkWriteError):
            generator.write(FailingSink())
        assert len(generator.pending) == 1

    def test_closed_sink(self):
        generator = make_generator()
        generator.declare("type T struct{}", {})
        sink = io.StringIO()
        sink.close()

        with pytest.raises(SinkWriteError):
            generator.write(sink)
        assert len(generator.pending) == 1


class TestLookup:
    """Tests for resolving schema types and constants to names."""

    def test_local_type(self):
        generator = make_generator()

        assert generator.lookup_type_name(StructSpec("event", "idl/shared.thrift")) == "Event"
        assert len(generator.importer) == 0

    def test_imported_type(self):
        generator = make_generator()

        assert generator.lookup_type_name(StructSpec("user", "idl/users/models.thrift")) == "models.User"
        assert generator.importer.alias_of("example.com/gen/users/models") == "models"

    def test_native_type_fails(self):
        generator = make_generator()

        with pytest.raises(TypeLookupError):
            generator.lookup_type_name(I32)

    def test_schema_file_outside_root_fails(self):
        generator = make_generator()

        with pytest.raises(TypeLookupError):
            generator.lookup_type_name(StructSpec("user", "other/models.thrift"))

    def test_constant(self):
        generator = make_generator()

        assert generator.lookup_constant_name(Constant("max_retries", "idl/users/models.thrift", I32)) == "models.MaxRetries"
        assert generator.lookup_constant_name(Constant("max_retries", "idl/shared.thrift", I32)) == "MaxRetries"

    def test_type_reference_imports_module(self):
        generator = make_generator()
        generator.declare(
            "type Holder struct {\n\tUser <: type_reference(user) :>\n\tTags <: type_reference(tags) :>\n}",
            {"user": StructSpec("user", "idl/users/models.thrift"), "tags": ListSpec(STRING)},
        )

        out = generator.write_to_string()
        assert 'import "example.com/gen/users/models"\n' in out
        assert "\tUser *models.User\n\tTags []string\n" in out


class TestTemplateFunctions:
    def test_new_var_avoids_package_names(self):
        generator = make_generator()
        generator.declare("var x = 1", {})

        assert generator.text_template('<: new_var("x") :> <: new_var("x") :> <: new_var("y") :>', {}) == "x2 x3 y"
        assert generator.text_template('<: new_var("y") :>', {}) == "y"

    def test_helpers_receive_generator(self):
        def to_wire(generator, spec, value):
            return f"{generator.mangle_type(spec)}_ToWire({value})"

        config = GeneratorConfig(package_name="shared", import_path="example.com/gen/shared")
        generator = Generator(config, helpers={"to_wire": to_wire})

        assert generator.text_template('<: to_wire(spec, "v") :>', {"spec": ListSpec(STRING)}) == "_List_String_ToWire(v)"

    def test_template_func(self):
        generator = make_generator()

        assert generator.text_template("<: shout('hi') :>", {}, template_func("shout", str.upper)) == "HI"
        package = template_func("package", lambda g: g.package_name, bind_generator=True)
        assert generator.text_template("<: package() :>", {}, package) == "shared"

    def test_new_namespace(self):
        generator = make_generator()
        generator.declare("var x = 1", {})

        template = '<% set scope = new_namespace() %><: scope.new_name("x") :> <: scope.new_name("x") :>'
        assert generator.text_template(template, {}) == "x2 x3"
        assert not generator.namespace.is_taken("x2")

    def test_type_predicates(self):
        generator = make_generator()
        template = "<: is_reference_type(spec) :> <: is_struct_type(spec) :> <: is_hashable(spec) :>"

        assert generator.text_template(template, {"spec": ListSpec(STRING)}) == "True False False"
        assert generator.text_template(template, {"spec": StructSpec("user", "idl/a.thrift")}) == "False True False"
        assert generator.text_template(template, {"spec": I32}) == "False False True"

    def test_data_cannot_shadow_functions(self):
        """Data keys named like functions stay reachable through data"""
        generator = make_generator()
        data = {"go_case": "raw", "name": "user_id"}

        assert generator.text_template("<: go_case(name) :> <: data.go_case :>", data) == "UserID raw"

    def test_text_template_declares_nothing(self):
        generator = make_generator()
        generator.text_template("func F() {}", {})

        generator.declare("func F() {}", {})


class TestPythonTarget:
    """Tests for generating Python modules."""

    def make_generator(self) -> Generator:
        config = GeneratorConfig(package_name="models", import_path="gen.models", language="python")
        return Generator(config, package_importer=PrefixPackageImporter("gen", "idl", separator="."))

    def test_write(self):
        generator = self.make_generator()
        generator.declare("class User:\n    pass\n", {})
        generator.declare("def names() -> <: import_module('collections.abc') :>.Iterable[str]:\n    return []\n", {})

        assert generator.write_to_string() == (
            f"# Code generated by idl-to-code v{__version__}. DO NOT EDIT.\n"
            "# @generated\n"
            "\n"
            "from collections import abc\n"
            "\n"
            "class User:\n"
            "    pass\n"
            "\n"
            "def names() -> abc.Iterable[str]:\n"
            "    return []\n"
        )

    def test_no_reentrant_names(self):
        generator = self.make_generator()
        generator.declare("def init():\n    pass", {})
        generator.write_to_string()

        with pytest.raises(ConflictError):
            generator.declare("def init():\n    pass", {})

    def test_submodule_imports_share_package_alias(self):
        generator = self.make_generator()
        generator.declare("import os.path\nimport os\n", {})
        generator.declare("import xml.dom\n", {})
        generator.declare("import xml.sax\n", {})

        assert generator.importer.emit() == "import os\nimport os.path\nimport xml.dom\nimport xml.sax\n"

    def test_imported_type(self):
        generator = self.make_generator()

        assert generator.lookup_type_name(StructSpec("user", "idl/users.thrift")) == "users.User"
        assert generator.importer.emit() == "from gen import users\n"


class TestGeneratorConfig:
    def test_package_name_required(self):
        with pytest.raises(ValueError):
            Generator(GeneratorConfig())

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            Generator(GeneratorConfig(package_name="x", language="cobol"))

    def test_from_dict_ignores_unknown_keys(self):
        config = GeneratorConfig.from_dict({"package_name": "x", "language": "python", "unknown": 1})

        assert config.package_name == "x"
        assert config.language == "python"
        assert config.to_dict()["atomic_declare"] is True
