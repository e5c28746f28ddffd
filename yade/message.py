"""Message compiler.

Resolves a display template's argument list against a variant's fields, in
declared order, and checks the template's placeholders against the resolved
arguments.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass

from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.diagnostics import raise_generation_error
from yade.exceptions import InvalidAnnotationArgument, InvalidTemplate, UnresolvedFieldReference
from yade.parser import DisplayAnnotation
from yade.schema import AttrArg, Ident, IntLit, Variant

logger = logging.getLogger(__name__)

_POSITIONAL_ALIAS = re.compile(r"_(\d+)")
# "", "0", "0.attr", "0[key]"
_PLACEHOLDER = re.compile(r"(\d*)([.\[].*)?")


@dataclass(frozen=True)
class ArgumentRef:
    """A template argument: a positional index or a field name."""

    index: int | None = None
    name: str | None = None

    def __str__(self) -> str:
        return str(self.index) if self.index is not None else str(self.name)


@dataclass(frozen=True)
class CompiledMessage:
    """A template with its arguments resolved to field positions.

    Attributes:
        template: Format string, or the variant name when ``literal``.
        fields: Field index of each argument, in argument order.
        literal: True when the text is written as-is (no display marker).
    """

    template: str
    fields: tuple[int, ...] = ()
    literal: bool = False


def argument_ref(
    arg: AttrArg, variant: Variant, *, config: GeneratorConfig = DEFAULT_CONFIG
) -> ArgumentRef:
    """Convert a raw marker argument into an ArgumentRef.

    Raises:
        InvalidAnnotationArgument: The argument is not a non-negative integer
            literal or an identifier.
    """
    if isinstance(arg, IntLit) and arg.value >= 0:
        return ArgumentRef(index=arg.value)
    if isinstance(arg, Ident):
        match = _POSITIONAL_ALIAS.fullmatch(arg.name)
        # A field actually named `_N` wins over the positional alias
        if match and not any(f.name == arg.name for f in variant.fields):
            return ArgumentRef(index=int(match.group(1)))
        return ArgumentRef(name=arg.name)
    raise_generation_error(
        InvalidAnnotationArgument,
        "Y0007",
        variant_name=variant.name,
        attr=config.display_attr,
        arg=arg.token(),
        variant=variant.name,
    )


def resolve_argument(ref: ArgumentRef, variant: Variant) -> int:
    """Resolve an ArgumentRef to a field position of the variant.

    Raises:
        UnresolvedFieldReference: No field has the name, or the index is out
            of range.
    """
    if ref.index is not None:
        if ref.index >= len(variant.fields):
            raise_generation_error(
                UnresolvedFieldReference,
                "Y0005",
                variant_name=variant.name,
                field_name=str(ref.index),
                index=ref.index,
                variant=variant.name,
                count=len(variant.fields),
            )
        return ref.index

    for i, field in enumerate(variant.fields):
        if field.name == ref.name:
            return i

    raise_generation_error(
        UnresolvedFieldReference,
        "Y0004",
        variant_name=variant.name,
        field_name=str(ref.name),
        field=ref.name,
        variant=variant.name,
    )


def _placeholders(template: str):
    # Fields nested in a format spec are numbered after the field that holds them
    for _literal, field_name, spec, _conversion in string.Formatter().parse(template):
        if field_name is None:
            continue
        yield field_name
        if spec:
            yield from _placeholders(spec)


def check_template(
    template: str, arg_count: int, variant: Variant, *, strict: bool = True
) -> None:
    """Check the placeholders of ``template`` against ``arg_count`` arguments.

    Only positional placeholders are accepted: ``{}``, ``{0}``, and their
    attribute/index forms, with any conversion and format spec. Placeholders
    nested in a format spec count as arguments too. Automatic and
    manual numbering cannot be mixed. When ``strict``, the placeholders must
    use every argument and no other.

    Raises:
        InvalidTemplate: The template is malformed or does not match.
    """

    def fail(reason: str, cause: Exception | None = None) -> None:
        raise_generation_error(
            InvalidTemplate,
            "Y0010",
            variant_name=variant.name,
            cause=cause,
            template=template,
            variant=variant.name,
            reason=reason,
        )

    try:
        parsed = list(_placeholders(template))
    except ValueError as e:
        fail(str(e), e)

    auto = 0
    used: set[int] = set()
    numbering: str | None = None
    for field_name in parsed:
        match = _PLACEHOLDER.fullmatch(field_name)
        if match is None:
            fail(f"named placeholder '{{{field_name}}}' is not supported")
        digits = match.group(1)
        style = "manual" if digits else "automatic"
        if numbering is not None and numbering != style:
            fail("cannot mix automatic and manual field numbering")
        numbering = style
        if digits:
            used.add(int(digits))
        else:
            used.add(auto)
            auto += 1

    over = [i for i in sorted(used) if i >= arg_count]
    if over or (strict and used != set(range(arg_count))):
        raise_generation_error(
            InvalidTemplate,
            "Y0009",
            variant_name=variant.name,
            template=template,
            variant=variant.name,
            used=sorted(used) or "none",
            count=arg_count,
        )


def compile_message(
    variant: Variant,
    display: DisplayAnnotation | None,
    *,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> CompiledMessage:
    """Resolve a variant's display template to concrete field positions.

    A variant without a display marker renders its own name literally.
    """
    if display is None:
        return CompiledMessage(template=variant.name, literal=True)

    refs = [argument_ref(arg, variant, config=config) for arg in display.args]
    fields = tuple(resolve_argument(ref, variant) for ref in refs)
    check_template(display.template, len(fields), variant, strict=config.strict_templates)

    logger.debug(
        f"Message of {variant.name}: {display.template!r} with "
        f"{[variant.label(i) for i in fields]}"
    )
    return CompiledMessage(template=display.template, fields=fields)
