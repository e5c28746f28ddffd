"""Tests for reading annotated Python classes into type definitions."""

from typing import Annotated, ClassVar, Optional

import pytest

from yade.config import GeneratorConfig
from yade.exceptions import InvalidAnnotationArgument
from yade.introspect import type_definition, type_ref, variant_classes
from yade.markers import Cause, Variant, display
from yade.schema import BoolLit, FloatLit, Ident, IntLit, NameValue, StrLit


class AppError(Exception):
    pass


@display("cat: {} ({})", "cat", 1)
class Record(Exception):
    cat: str
    source: Annotated[OSError, Cause()]
    registry: ClassVar[dict] = {}


class Tuple(Exception):
    _0: str
    _1: Annotated[Exception, Cause]


class Gapped(Exception):
    _0: str
    _5: int


class Choice(Exception):
    @display("first")
    class First(Variant):
        pass

    class Second(Variant):
        _0: Annotated[AppError | None, Cause()]

    helper = "not a variant"


# =============================================================================
# Test: type_ref
# =============================================================================


class TestTypeRef:
    def test_exception_class(self):
        """Exception subclasses are named error types."""
        ty = type_ref(OSError)
        assert ty.name == "OSError"
        assert ty.is_error is True

    def test_plain_class(self):
        """Other classes are known not to be errors."""
        assert type_ref(str).is_error is False

    @pytest.mark.parametrize("hint", [Exception, BaseException])
    def test_error_object(self, hint):
        """Exception and BaseException are boxed error objects."""
        ty = type_ref(hint)
        assert ty.name == "Box"
        assert ty.params[0].is_error is True

    @pytest.mark.parametrize("hint", [Exception | None, Optional[Exception]])
    def test_optional(self, hint):
        """`X | None` is Optional<X>."""
        ty = type_ref(hint)
        assert str(ty) == "Optional<Box<Exception>>"

    def test_union(self):
        """A union of several types is not a path type."""
        ty = type_ref(OSError | ValueError)
        assert ty.kind == "union"

    def test_generic(self):
        """Generic aliases keep their origin name and parameters."""
        ty = type_ref(dict[str, int])
        assert ty.name == "dict"
        assert [p.name for p in ty.params] == ["str", "int"]
        assert type_ref(tuple[int, ...]).kind == "tuple"

    def test_annotated_is_unwrapped(self):
        """Annotated metadata does not change the type."""
        assert type_ref(Annotated[OSError, Cause()]) == type_ref(OSError)

    def test_none(self):
        """None is not an error."""
        assert type_ref(None).is_error is False


# =============================================================================
# Test: type_definition
# =============================================================================


class TestTypeDefinition:
    def test_struct(self):
        """A class without variants is a struct of its hinted attributes."""
        typedef = type_definition(Record)
        assert typedef.kind == "struct"
        assert [f.name for f in typedef.fields] == ["cat", "source"]

    def test_class_vars_skipped(self):
        """ClassVar hints are not fields."""
        assert "registry" not in [f.name for f in type_definition(Record).fields]

    def test_cause_marker(self):
        """Cause() becomes the cause attribute."""
        source = type_definition(Record).fields[1]
        assert [a.name for a in source.attrs] == ["cause"]

    def test_cause_marker_class(self):
        """The bare Cause class works as a marker too."""
        assert [a.name for a in type_definition(Tuple).fields[1].attrs] == ["cause"]

    def test_display_marker(self):
        """display() becomes the display attribute with its arguments."""
        (attr,) = type_definition(Record).attrs
        assert attr.name == "display"
        assert attr.args == [
            NameValue(name="msg", value="cat: {} ({})"),
            Ident(name="cat"),
            IntLit(value=1),
        ]

    def test_positional_fields(self):
        """Fields named `_0, _1, ...` in order are positional."""
        assert [f.name for f in type_definition(Tuple).fields] == [None, None]

    def test_gapped_names_stay_named(self):
        """One name out of sequence makes every field named."""
        assert [f.name for f in type_definition(Gapped).fields] == ["_0", "_5"]

    def test_enum(self):
        """Nested Variant classes make an enum, in declaration order."""
        typedef = type_definition(Choice)
        assert typedef.kind == "enum"
        assert [v.name for v in typedef.variants] == ["First", "Second"]
        assert typedef.variants[0].attrs[0].args == [NameValue(name="msg", value="first")]
        assert str(typedef.variants[1].fields[0].ty) == "Optional<AppError>"

    def test_variant_classes(self):
        """Only Variant subclasses count as variants."""
        assert [v.__name__ for v in variant_classes(Choice)] == ["First", "Second"]
        assert variant_classes(Record) == []

    def test_configured_vocabulary(self):
        """Produced attribute names follow the config."""
        config = GeneratorConfig(display_attr="error", message_key="fmt", cause_attr="source")
        typedef = type_definition(Record, config=config)
        assert typedef.attrs[0].name == "error"
        assert typedef.attrs[0].args[0] == NameValue(name="fmt", value="cat: {} ({})")
        assert typedef.fields[1].attrs[0].name == "source"

    def test_display_without_message(self):
        """display() without a message records only the arguments."""

        @display()
        class NoMessage(Exception):
            pass

        assert type_definition(NoMessage).attrs[0].args == []

    def test_argument_kinds(self):
        """Non-identifier strings, floats and bools keep their literal kind."""

        @display("x", "not a field", 1.5, True)
        class Literals(Exception):
            pass

        args = type_definition(Literals).attrs[0].args
        assert args[1:] == [StrLit(value="not a field"), FloatLit(value=1.5), BoolLit(value=True)]

    def test_unsupported_argument(self):
        """Arguments of any other Python type are rejected."""

        @display("x", [1])
        class Listy(Exception):
            pass

        with pytest.raises(InvalidAnnotationArgument):
            type_definition(Listy)
