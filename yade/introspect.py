"""Read annotated Python classes into type definitions.

Inspects ``typing.Annotated`` metadata and ``display()`` markers on a class
(struct) or on its nested ``Variant`` classes (enum) and produces the
TypeDefinition the generator consumes. Python type hints are mapped onto the
constructor vocabulary of the schema:

- ``X | None`` / ``Optional[X]`` becomes ``Optional<X>``
- ``Exception`` / ``BaseException`` becomes ``Box<Exception>``
- other classes keep their name and record whether they are exceptions
"""

from __future__ import annotations

import keyword
import types
from typing import Annotated, ClassVar, Union, get_args, get_origin, get_type_hints

from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.diagnostics import raise_generation_error
from yade.exceptions import InvalidAnnotationArgument, UnresolvedAnnotation
from yade.markers import DISPLAY_MARKERS, Cause, Display, Variant
from yade.schema import (
    AttrArg,
    Attribute,
    BoolLit,
    Field,
    FloatLit,
    Ident,
    IntLit,
    NameValue,
    StrLit,
    TypeDefinition,
    TypeRef,
)
from yade.schema import Variant as VariantDef

OPTIONAL = "Optional"
BOXED = "Box"
# Error trait objects: any error can be stored behind these annotations
ERROR_OBJECTS = (BaseException, Exception)


def variant_classes(cls: type) -> list[type]:
    """Nested Variant subclasses of ``cls``, in declaration order."""
    return [
        v
        for v in cls.__dict__.values()
        if isinstance(v, type) and issubclass(v, Variant) and v is not Variant
    ]


def type_definition(cls: type, *, config: GeneratorConfig = DEFAULT_CONFIG) -> TypeDefinition:
    """Build a TypeDefinition from an annotated class.

    A class with nested ``Variant`` subclasses is an enum; any other class is
    a struct whose fields are its type-hinted attributes.

    Args:
        cls: The class to inspect.
        config: Marker vocabulary used for the produced attributes.

    Returns:
        The type definition, ready for ``yade.codegen.generate``.

    Raises:
        InvalidAnnotationArgument: A ``display()`` argument is not an int or
            a string.
        UnresolvedAnnotation: A type hint names something that is not
            defined, other than the class being derived.
    """
    variants = variant_classes(cls)
    if variants:
        return TypeDefinition(
            name=cls.__name__,
            kind="enum",
            variants=[
                VariantDef(
                    name=v.__name__,
                    fields=_fields(v, cls, config),
                    attrs=_display_attrs(v, config),
                )
                for v in variants
            ],
        )
    return TypeDefinition(
        name=cls.__name__,
        kind="struct",
        attrs=_display_attrs(cls, config),
        fields=_fields(cls, cls, config),
    )


def type_ref(hint: object) -> TypeRef:
    """Map a Python type hint onto a schema TypeRef."""
    if get_origin(hint) is Annotated:
        hint = get_args(hint)[0]

    if hint is None or hint is type(None):
        return TypeRef(name="None", is_error=False)

    origin = get_origin(hint)
    if origin is Union or isinstance(hint, types.UnionType):
        args = get_args(hint)
        members = [a for a in args if a is not type(None)]
        if len(members) == 1:
            return TypeRef(name=OPTIONAL, params=(type_ref(members[0]),))
        return TypeRef(name="Union", params=tuple(type_ref(a) for a in args), kind="union")

    if hint in ERROR_OBJECTS:
        return TypeRef(name=BOXED, params=(TypeRef(name=hint.__name__, is_error=True),))

    if origin is not None:
        params = tuple(type_ref(a) for a in get_args(hint) if a is not Ellipsis)
        name = getattr(origin, "__name__", str(origin))
        kind = "tuple" if origin is tuple else "path"
        is_error = isinstance(origin, type) and issubclass(origin, BaseException)
        return TypeRef(name=name, params=params, kind=kind, is_error=is_error)

    if isinstance(hint, type):
        return TypeRef(name=hint.__name__, is_error=issubclass(hint, BaseException))

    return TypeRef(name=str(hint), kind="other", is_error=False)


#
# --- Helpers
#


def _fields(cls: type, owner: type, config: GeneratorConfig) -> list[Field]:
    entries: list[tuple[str, object, list[Attribute]]] = []
    for name, hint in _type_hints(cls, owner).items():
        if hint is ClassVar or get_origin(hint) is ClassVar:
            continue

        attrs: list[Attribute] = []
        if get_origin(hint) is Annotated:
            for m in get_args(hint)[1:]:
                if m is Cause or isinstance(m, Cause):
                    attrs.append(Attribute(name=config.cause_attr))
        entries.append((name, hint, attrs))

    # Fields named exactly `_0, _1, ...` are positional; any other name makes all of them named
    positional = [name for name, _, _ in entries] == [f"_{i}" for i in range(len(entries))]
    return [
        Field(name=None if positional else name, ty=type_ref(hint), attrs=attrs)
        for name, hint, attrs in entries
    ]


def _type_hints(cls: type, owner: type) -> dict[str, object]:
    # The class being derived is not bound in its module until the decorator returns
    localns = {**vars(owner), owner.__name__: owner}
    if cls is not owner:
        localns.update(vars(cls))
    try:
        return get_type_hints(cls, localns=localns, include_extras=True)
    except NameError as e:
        raise_generation_error(
            UnresolvedAnnotation,
            "Y0012",
            type_name=owner.__name__,
            variant_name=cls.__name__,
            cause=e,
            variant=cls.__name__,
            reason=str(e),
        )


def _display_attrs(cls: type, config: GeneratorConfig) -> list[Attribute]:
    markers: tuple[Display, ...] = cls.__dict__.get(DISPLAY_MARKERS, ())
    attrs = []
    for marker in markers:
        args: list[AttrArg] = []
        if marker.msg is not None:
            args.append(NameValue(name=config.message_key, value=marker.msg))
        args += [_arg(value, cls, config) for value in marker.args]
        attrs.append(Attribute(name=config.display_attr, args=args))
    return attrs


def _arg(value: object, cls: type, config: GeneratorConfig) -> AttrArg:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return BoolLit(value=value)
    if isinstance(value, int):
        return IntLit(value=value)
    if isinstance(value, float):
        return FloatLit(value=value)
    if isinstance(value, str):
        if value.isidentifier() and not keyword.iskeyword(value):
            return Ident(name=value)
        return StrLit(value=value)
    raise_generation_error(
        InvalidAnnotationArgument,
        "Y0007",
        type_name=cls.__name__,
        attr=config.display_attr,
        arg=repr(value),
        variant=cls.__name__,
    )
