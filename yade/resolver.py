"""Cause resolver.

For each variant, locates the cause-marked field and classifies its declared
type as one of:

- ``direct``: a type that is itself an error; the field is the cause.
- ``boxed``: an owned box of an error trait object; the cause is the referent.
- ``optional_boxed``: an optional boxed error; no cause when absent.

Variants without a cause-marked field are classified ``none``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.diagnostics import raise_generation_error
from yade.exceptions import GenerationError, InvalidCauseShape, MultipleCauses
from yade.parser import parse_cause
from yade.schema import Field, TypeDefinition, TypeRef, Variant

logger = logging.getLogger(__name__)


class CauseKind(str, Enum):
    NONE = "none"
    DIRECT = "direct"
    BOXED = "boxed"
    OPTIONAL_BOXED = "optional_boxed"


@dataclass(frozen=True)
class CauseBinding:
    """How a variant exposes its cause.

    Attributes:
        kind: Shape classification of the cause field.
        index: Position of the cause field, None when kind is NONE.
        field: The cause field itself, None when kind is NONE.
    """

    kind: CauseKind
    index: int | None = None
    field: Field | None = None


NO_CAUSE = CauseBinding(CauseKind.NONE)


def find_cause(
    variant: Variant, *, config: GeneratorConfig = DEFAULT_CONFIG
) -> tuple[int, Field] | None:
    """Locate the cause-marked field of a variant.

    Returns:
        ``(index, field)`` of the marked field, or None if no field is marked.

    Raises:
        MultipleCauses: Several fields are marked and
            ``allow_multiple_causes`` is off.
    """
    marked = [(i, f) for i, f in enumerate(variant.fields) if parse_cause(f, config=config)]
    if not marked:
        return None
    if len(marked) > 1 and not config.allow_multiple_causes:
        labels = ", ".join(f"'{variant.label(i)}'" for i, _ in marked)
        raise_generation_error(
            MultipleCauses,
            "Y0008",
            variant_name=variant.name,
            variant=variant.name,
            attr=config.cause_attr,
            fields=labels,
        )
    return marked[0]


def classify_shape(ty: TypeRef, *, config: GeneratorConfig = DEFAULT_CONFIG) -> CauseKind:
    """Classify a cause field's declared type by its outer constructor.

    Raises:
        InvalidCauseShape: The type is not a named type, is an optional of
            something other than a boxed error, or (with ``strict_causes``)
            is not known to be an error type. The message is filled in by
            ``classify_cause``.
    """
    if ty.kind != "path":
        raise InvalidCauseShape(f"`{ty}` is not a named type", code="Y0006")

    if ty.name in config.optional_constructors:
        inner = ty.params[0] if len(ty.params) == 1 else None
        if inner is None or inner.kind != "path" or inner.name not in config.boxed_constructors:
            raise InvalidCauseShape(f"`{ty}` is not an optional boxed error", code="Y0006")
        return CauseKind.OPTIONAL_BOXED

    if ty.name in config.boxed_constructors:
        return CauseKind.BOXED

    # Any other named type is taken to be an error type unless known otherwise
    if ty.is_error is False or (config.strict_causes and ty.is_error is not True):
        raise InvalidCauseShape(f"`{ty}` is not an error type", code="Y0006")
    return CauseKind.DIRECT


def classify_cause(
    variant: Variant, *, config: GeneratorConfig = DEFAULT_CONFIG
) -> CauseBinding:
    """Determine whether a variant has a cause and how to expose it."""
    found = find_cause(variant, config=config)
    if found is None:
        return NO_CAUSE

    index, field = found
    try:
        kind = classify_shape(field.ty, config=config)
    except InvalidCauseShape as e:
        raise_generation_error(
            InvalidCauseShape,
            "Y0006",
            variant_name=variant.name,
            field_name=variant.label(index),
            cause=e,
            field=variant.label(index),
            variant=variant.name,
            ty=str(field.ty),
        )

    logger.debug(f"Cause of {variant.name}: field {variant.label(index)} ({kind.value})")
    return CauseBinding(kind, index, field)


def classify_causes(
    typedef: TypeDefinition, *, config: GeneratorConfig = DEFAULT_CONFIG
) -> dict[str, CauseBinding]:
    """Map each variant name of a type to its cause binding.

    The result dict preserves variant declaration order.
    """
    result: dict[str, CauseBinding] = {}
    for variant in typedef.all_variants():
        try:
            result[variant.name] = classify_cause(variant, config=config)
        except GenerationError as err:
            err.type_name = err.type_name or typedef.name
            raise
    return result
