"""Serializable type schema consumed by the generator.

A TypeDefinition describes one annotated error type: either a struct (one
implicit variant carrying the type-level attributes and fields) or an enum of
named variants. Schemas are plain pydantic models so they can be written as
JSON, produced by the Python introspector, or built directly in tests.

Field types are TypeRef descriptors. In JSON they may be written as strings
such as ``"Option<Box<dyn Error + Send>>"``; only the outer constructor name
and its parameters matter to the generator.
"""

from __future__ import annotations

import json
import keyword
import re
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from yade.exceptions import SchemaError

TypeKind = Literal["path", "tuple", "reference", "array", "union", "other"]


class TypeRef(BaseModel):
    """Type descriptor of a field.

    Attributes:
        name: Outer constructor name (last path segment), e.g. ``Option``.
        params: Generic parameters, in order.
        kind: Shape of the type; only ``path`` types can be causes.
        is_error: Whether the type is known to be an error type. None when the
            schema does not say (JSON schemas), set by the Python introspector.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    params: tuple[TypeRef, ...] = ()
    kind: TypeKind = "path"
    is_error: bool | None = None

    @classmethod
    def parse(cls, text: str) -> TypeRef:
        """Parse a type expression such as ``Option<Box<dyn Error>>``."""
        tokens = _TYPE_TOKEN.findall(text)
        if "".join(tokens) != re.sub(r"\s+", "", text):
            raise ValueError(f"unexpected character in type {text!r}")
        ty, pos = _parse_type(tokens, 0, text)
        if pos != len(tokens):
            raise ValueError(f"unexpected {tokens[pos]!r} in type {text!r}")
        return ty

    def __str__(self) -> str:
        inner = ", ".join(str(p) for p in self.params)
        if self.kind == "reference":
            return f"&{inner}"
        if self.kind == "tuple":
            return f"({inner})"
        if self.kind == "array":
            return f"[{inner}]"
        if self.kind == "union":
            return " | ".join(str(p) for p in self.params)
        return f"{self.name}<{inner}>" if self.params else self.name


#
# --- Attribute arguments
#


class NameValue(BaseModel):
    """``name = value`` entry, e.g. ``msg = "..."``."""

    kind: Literal["name_value"] = "name_value"
    name: str
    value: str | bool | int | float

    def token(self) -> str:
        return f"{self.name} = {_literal_token(self.value)}"


class IntLit(BaseModel):
    kind: Literal["int"] = "int"
    value: int

    def token(self) -> str:
        return str(self.value)


class Ident(BaseModel):
    kind: Literal["ident"] = "ident"
    name: str

    def token(self) -> str:
        return self.name


class StrLit(BaseModel):
    kind: Literal["str"] = "str"
    value: str

    def token(self) -> str:
        return json.dumps(self.value)


class FloatLit(BaseModel):
    kind: Literal["float"] = "float"
    value: float

    def token(self) -> str:
        return repr(self.value)


class BoolLit(BaseModel):
    kind: Literal["bool"] = "bool"
    value: bool

    def token(self) -> str:
        return "true" if self.value else "false"


AttrArg = Annotated[
    Union[NameValue, IntLit, Ident, StrLit, FloatLit, BoolLit],
    Discriminator("kind"),
]


class Attribute(BaseModel):
    """An annotation attached to a type, variant or field.

    ``args`` is None for a bare marker (``#[cause]``) and a list for a
    parenthesized one (``#[display(msg = "...", kind)]``).
    """

    name: str
    args: list[AttrArg] | None = None


#
# --- Type shapes
#


class Field(BaseModel):
    """A named or positional field. ``name`` is None for positional fields."""

    name: str | None = None
    ty: TypeRef
    attrs: list[Attribute] = []

    @field_validator("ty", mode="before")
    @classmethod
    def parse_ty(cls, value: object) -> object:
        if isinstance(value, str):
            return TypeRef.parse(value)
        return value

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        if value is not None:
            _check_identifier(value, "field")
        return value


class Variant(BaseModel):
    name: str
    fields: list[Field] = []
    attrs: list[Attribute] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_identifier(value, "variant")

    @model_validator(mode="after")
    def unique_fields(self) -> Variant:
        names = [f.name for f in self.fields if f.name is not None]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate field name(s) in '{self.name}': {', '.join(dupes)}")
        if names and len(names) != len(self.fields):
            raise ValueError(f"cannot mix positional and named fields in '{self.name}'")
        return self

    def accessor(self, index: int) -> str:
        """Attribute name under which field ``index`` lives on an instance."""
        name = self.fields[index].name
        return name if name is not None else f"_{index}"

    def label(self, index: int) -> str:
        """Human-readable field reference for diagnostics."""
        name = self.fields[index].name
        return name if name is not None else str(index)


class TypeDefinition(BaseModel):
    """One annotated type: a struct or an enum.

    Structs use ``attrs`` and ``fields`` and have exactly one implicit variant
    named after the type. Enums use ``variants``; type-level attributes on an
    enum are not consulted.
    """

    name: str
    kind: Literal["struct", "enum"] = "struct"
    attrs: list[Attribute] = []
    fields: list[Field] = []
    variants: list[Variant] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_identifier(value, "type")

    @model_validator(mode="after")
    def check_shape(self) -> TypeDefinition:
        if self.kind == "struct" and self.variants:
            raise ValueError(f"struct '{self.name}' cannot declare variants")
        if self.kind == "enum" and self.fields:
            raise ValueError(f"enum '{self.name}' cannot declare fields; put them on variants")
        names = [v.name for v in self.variants]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate variant name(s) in '{self.name}': {', '.join(dupes)}")
        if self.kind == "struct":
            # Validates the implicit variant's fields too
            self.all_variants()
        return self

    def all_variants(self) -> list[Variant]:
        """Variants in declaration order, including a struct's implicit one."""
        if self.kind == "struct":
            return [Variant(name=self.name, fields=self.fields, attrs=self.attrs)]
        return list(self.variants)


_SCHEMA_ADAPTER = TypeAdapter(list[TypeDefinition])


def load_schema(source: str | Path) -> list[TypeDefinition]:
    """Load type definitions from a JSON file path or JSON text.

    The document is either one TypeDefinition object or a list of them.

    Raises:
        SchemaError: If the JSON is malformed or does not validate.
    """
    if isinstance(source, Path):
        try:
            text = source.read_text()
        except OSError as e:
            raise SchemaError(f"Cannot read schema '{source}': {e}", cause=e)
    else:
        text = source

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}", cause=e)

    if isinstance(data, dict):
        data = [data]

    try:
        return _SCHEMA_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid type schema:\n{e}", cause=e)


def dump_schema(typedefs: list[TypeDefinition]) -> str:
    return _SCHEMA_ADAPTER.dump_json(typedefs, indent=2, exclude_none=True).decode()


#
# --- Helpers
#

_TYPE_TOKEN = re.compile(r"::|[<>,()\[\];&+|]|'?[A-Za-z_][A-Za-z0-9_]*|\d+")


def _check_identifier(value: str, what: str) -> str:
    if not value.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"{what} name {value!r} is not a valid identifier")
    return value


def _literal_token(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def _expect(tokens: list[str], pos: int, tok: str, text: str) -> int:
    if pos >= len(tokens) or tokens[pos] != tok:
        found = tokens[pos] if pos < len(tokens) else "end of input"
        raise ValueError(f"expected {tok!r}, found {found!r} in type {text!r}")
    return pos + 1


def _parse_type(tokens: list[str], pos: int, text: str) -> tuple[TypeRef, int]:
    ty, pos = _parse_single(tokens, pos, text)
    if pos < len(tokens) and tokens[pos] == "|":
        members = [ty]
        while pos < len(tokens) and tokens[pos] == "|":
            member, pos = _parse_single(tokens, pos + 1, text)
            members.append(member)
        return TypeRef(name="Union", params=tuple(members), kind="union"), pos
    return ty, pos


def _parse_single(tokens: list[str], pos: int, text: str) -> tuple[TypeRef, int]:
    if pos >= len(tokens):
        raise ValueError(f"unexpected end of type {text!r}")
    tok = tokens[pos]

    if tok == "&":
        pos += 1
        if pos < len(tokens) and tokens[pos].startswith("'"):
            pos += 1
        if pos < len(tokens) and tokens[pos] == "mut":
            pos += 1
        inner, pos = _parse_single(tokens, pos, text)
        return TypeRef(name="&", params=(inner,), kind="reference"), pos

    if tok == "(":
        params, pos = _parse_list(tokens, pos + 1, ")", text)
        return TypeRef(name="()", params=params, kind="tuple"), pos

    if tok == "[":
        inner, pos = _parse_type(tokens, pos + 1, text)
        if pos < len(tokens) and tokens[pos] == ";":
            pos += 2
        pos = _expect(tokens, pos, "]", text)
        return TypeRef(name="[]", params=(inner,), kind="array"), pos

    if tok in ("dyn", "impl"):
        pos += 1

    if pos >= len(tokens) or not tokens[pos].isidentifier():
        found = tokens[pos] if pos < len(tokens) else "end of input"
        raise ValueError(f"expected a type name, found {found!r} in type {text!r}")

    # Path: only the last segment names the constructor
    name = tokens[pos]
    pos += 1
    while pos < len(tokens) and tokens[pos] == "::":
        pos += 1
        if pos >= len(tokens) or not tokens[pos].isidentifier():
            raise ValueError(f"dangling '::' in type {text!r}")
        name = tokens[pos]
        pos += 1

    params: tuple[TypeRef, ...] = ()
    if pos < len(tokens) and tokens[pos] == "<":
        params, pos = _parse_list(tokens, pos + 1, ">", text)

    # Trait object bounds (`Error + Send + 'static`) do not change the shape
    while pos < len(tokens) and tokens[pos] == "+":
        pos += 2

    return TypeRef(name=name, params=params), pos


def _parse_list(
    tokens: list[str], pos: int, close: str, text: str
) -> tuple[tuple[TypeRef, ...], int]:
    items: list[TypeRef] = []
    while pos < len(tokens) and tokens[pos] != close:
        if tokens[pos].startswith("'"):
            # Lifetime parameter
            pos += 1
        else:
            item, pos = _parse_type(tokens, pos, text)
            items.append(item)
        if pos < len(tokens) and tokens[pos] == ",":
            pos += 1
    pos = _expect(tokens, pos, close, text)
    return tuple(items), pos
