"""Tests for source generation and compiled implementation classes.

Types are built directly as schemas; instances are bare subclasses of the
compiled implementation with their fields set as attributes.
"""

from __future__ import annotations

import io

import pytest

from yade.codegen import MODULE_HEADER, compile_impl, generate, generate_module, impl_name
from yade.config import GeneratorConfig
from yade.exceptions import GenerationError, ReservedFieldName, UnresolvedFieldReference
from yade.schema import TypeDefinition

CAUSE = {"name": "cause"}


def display_attr(template: str, *args: dict) -> dict:
    return {
        "name": "display",
        "args": [{"kind": "name_value", "name": "msg", "value": template}, *args],
    }


def ident(name: str) -> dict:
    return {"kind": "ident", "name": name}


def instance(impl: type, variant: str | None = None, **fields: object) -> object:
    obj = type("Instance", (impl,), {})()
    if variant is not None:
        obj.__yade_variant__ = variant
    for name, value in fields.items():
        setattr(obj, name, value)
    return obj


KIND_ERROR = TypeDefinition.model_validate(
    {
        "name": "KindError",
        "attrs": [display_attr("a kind error: {}", ident("kind"))],
        "fields": [
            {"name": "kind", "ty": "KindErrorKind"},
            {"name": "source", "ty": "Option<Box<dyn Error>>", "attrs": [CAUSE]},
        ],
    }
)

ENUM_ERROR = TypeDefinition.model_validate(
    {
        "name": "EnumError",
        "kind": "enum",
        "variants": [
            {"name": "Hello", "attrs": [display_attr("Some things here")]},
            {
                "name": "More",
                "attrs": [display_attr("cat: {}", ident("cat"))],
                "fields": [
                    {"name": "cat", "ty": "String"},
                    {"name": "source", "ty": "std::io::Error", "attrs": [CAUSE]},
                ],
            },
            {"name": "Last", "fields": [{"ty": "std::io::Error", "attrs": [CAUSE]}]},
            {"name": "Boxed", "fields": [{"ty": "Box<dyn Error + Send>", "attrs": [CAUSE]}]},
        ],
    }
)

KIND = TypeDefinition.model_validate(
    {
        "name": "KindErrorKind",
        "kind": "enum",
        "variants": [
            {"name": "One", "attrs": [display_attr("Kind is One")]},
            {
                "name": "Two",
                "attrs": [display_attr("Kind is Two: {}", ident("_0"))],
                "fields": [{"ty": "String"}],
            },
            {"name": "Three"},
        ],
    }
)


# =============================================================================
# Test: generated source
# =============================================================================


class TestGenerate:
    def test_impl_class_name(self):
        """The class is named after the type."""
        source = generate(KIND_ERROR)
        assert impl_name(KIND_ERROR) == "KindErrorImpl"
        assert source.startswith("class KindErrorImpl:")

    def test_struct_carries_variant_tag(self):
        """Struct implementations tag themselves with the type name."""
        assert "__yade_variant__ = 'KindError'" in generate(KIND_ERROR)

    def test_enum_has_no_class_tag(self):
        """Enum variants are tagged by their own classes."""
        assert "__yade_variant__ =" not in generate(ENUM_ERROR)

    def test_error_members(self):
        """The error derive emits cause and description."""
        source = generate(ENUM_ERROR)
        assert "def render(self, sink):" in source
        assert "def __str__(self):" in source
        assert "def cause(self):" in source
        assert "def description(self):" in source

    def test_display_only(self):
        """error=False emits the rendering only."""
        source = generate(KIND, error=False)
        assert "def render(self, sink):" in source
        assert "def cause(self):" not in source
        assert "def description(self):" not in source

    def test_module_compiles(self):
        """generate_module output is a valid module defining every class."""
        source = generate_module([KIND_ERROR, ENUM_ERROR])
        assert source.startswith(MODULE_HEADER)
        namespace: dict = {}
        exec(compile(source, "<generated>", "exec"), namespace)
        assert "KindErrorImpl" in namespace
        assert "EnumErrorImpl" in namespace

    def test_failure_is_tagged_with_type(self):
        """Errors raised anywhere in the pass name the type."""
        broken = TypeDefinition.model_validate(
            {
                "name": "Broken",
                "kind": "enum",
                "variants": [{"name": "V", "attrs": [display_attr("{}", ident("nope"))]}],
            }
        )
        with pytest.raises(UnresolvedFieldReference) as exc_info:
            generate(broken)
        assert exc_info.value.type_name == "Broken"
        assert exc_info.value.variant_name == "V"

    def test_module_aborts_on_first_failure(self):
        """No partial module is produced."""
        broken = TypeDefinition.model_validate(
            {"name": "Broken", "attrs": [display_attr("{}", ident("nope"))]}
        )
        with pytest.raises(GenerationError):
            generate_module([KIND_ERROR, broken])

    def test_reserved_field(self):
        """A field named like a generated member is rejected."""
        typedef = TypeDefinition.model_validate(
            {"name": "Shadow", "fields": [{"name": "render", "ty": "String"}]}
        )
        with pytest.raises(ReservedFieldName):
            generate(typedef, error=False)

    def test_cause_field_name_allowed_for_display_only(self):
        """Only the members actually generated are reserved."""
        typedef = TypeDefinition.model_validate(
            {"name": "Kindish", "fields": [{"name": "cause", "ty": "String"}]}
        )
        assert "class KindishImpl:" in generate(typedef, error=False)


# =============================================================================
# Test: compiled behavior
# =============================================================================


class TestRender:
    def test_template_with_named_argument(self):
        """Named arguments substitute the field value."""
        impl = compile_impl(KIND_ERROR)
        obj = instance(impl, kind="Kind is One", source=None)
        assert str(obj) == "a kind error: Kind is One"

    def test_literal_variant_name(self):
        """Variants without a marker render their name."""
        impl = compile_impl(ENUM_ERROR)
        assert str(instance(impl, "Last", _0=OSError("x"))) == "Last"

    def test_argument_free_template(self):
        """Argument-free templates render verbatim."""
        impl = compile_impl(KIND, error=False)
        assert str(instance(impl, "One")) == "Kind is One"

    def test_positional_alias(self):
        """`_0` reads the first positional field."""
        impl = compile_impl(KIND, error=False)
        assert str(instance(impl, "Two", _0="Things for free")) == "Kind is Two: Things for free"

    def test_render_to_sink(self):
        """render() writes to any object with write()."""
        impl = compile_impl(ENUM_ERROR)
        sink = io.StringIO()
        instance(impl, "More", cat="tabby", source=OSError("x")).render(sink)
        assert sink.getvalue() == "cat: tabby"

    def test_unknown_variant_fallback(self):
        """An untagged instance writes the fixed fallback message."""
        impl = compile_impl(ENUM_ERROR)
        assert str(instance(impl)) == "There was an unknown error."

    def test_configured_fallback(self):
        """The fallback text comes from the config."""
        impl = compile_impl(ENUM_ERROR, config=GeneratorConfig(unknown_message="???"))
        assert str(instance(impl, "Gone")) == "???"


class TestCause:
    def test_direct(self):
        """Direct cause: the field itself."""
        impl = compile_impl(ENUM_ERROR)
        inner = OSError("oh no!")
        assert instance(impl, "More", cat="c", source=inner).cause() is inner

    def test_positional_direct(self):
        """Direct cause on an unnamed field."""
        impl = compile_impl(ENUM_ERROR)
        inner = OSError("missing")
        assert instance(impl, "Last", _0=inner).cause() is inner

    def test_boxed(self):
        """Boxed cause: the box's referent."""
        impl = compile_impl(ENUM_ERROR)
        inner = ValueError("boxed")
        assert instance(impl, "Boxed", _0=inner).cause() is inner

    def test_optional_boxed_present(self):
        """Optional boxed cause holding a value."""
        impl = compile_impl(KIND_ERROR)
        inner = OSError("for a cause")
        assert instance(impl, kind="k", source=inner).cause() is inner

    def test_optional_boxed_absent(self):
        """Optional boxed cause holding nothing."""
        impl = compile_impl(KIND_ERROR)
        assert instance(impl, kind="k", source=None).cause() is None

    def test_no_cause(self):
        """Unmarked variants never have a cause."""
        impl = compile_impl(ENUM_ERROR)
        assert instance(impl, "Hello").cause() is None

    def test_unknown_variant_has_no_cause(self):
        """The defensive fallback returns no cause."""
        impl = compile_impl(ENUM_ERROR)
        assert instance(impl).cause() is None

    def test_description(self):
        """description() is the configured constant."""
        config = GeneratorConfig(description="see str()")
        impl = compile_impl(ENUM_ERROR, config=config)
        assert instance(impl, "Hello").description() == "see str()"
