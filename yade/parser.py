"""Annotation parser.

Extracts the display marker of a variant and the cause marker of a field
from their attribute lists, validating the marker's argument list shape.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.diagnostics import raise_generation_error
from yade.exceptions import (
    DuplicateAnnotation,
    EmptyMessage,
    InvalidAnnotationArgument,
    MissingMessageKey,
)
from yade.schema import AttrArg, Attribute, Field, NameValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayAnnotation:
    """Validated display marker: the template and its raw arguments."""

    template: str
    args: tuple[AttrArg, ...] = ()


def parse_display(
    attrs: Sequence[Attribute],
    *,
    variant: str = "",
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> DisplayAnnotation | None:
    """Find and validate the display marker among a variant's attributes.

    Args:
        attrs: All attributes attached to the variant (or struct).
        variant: Variant name, for diagnostics.
        config: Marker vocabulary.

    Returns:
        The DisplayAnnotation, or None when the variant has no display marker.

    Raises:
        DuplicateAnnotation: The marker occurs more than once.
        MissingMessageKey: The marker has no argument list, or the list does
            not start with ``msg = "..."``.
        InvalidAnnotationArgument: The message value is not a string.
        EmptyMessage: The message is the empty string.
    """
    attr_name = config.display_attr
    key = config.message_key

    found: Attribute | None = None
    for attr in attrs:
        if attr.name != attr_name:
            continue
        if found is not None:
            raise_generation_error(
                DuplicateAnnotation, "Y0001", variant_name=variant, attr=attr_name
            )
        if attr.args is None:
            raise_generation_error(
                MissingMessageKey, "Y0002", variant_name=variant, attr=attr_name, key=key
            )
        found = attr

    if found is None:
        return None

    args = found.args or []
    first = args[0] if args else None
    if not isinstance(first, NameValue) or first.name != key:
        raise_generation_error(
            MissingMessageKey, "Y0002", variant_name=variant, attr=attr_name, key=key
        )

    if not isinstance(first.value, str):
        raise_generation_error(
            InvalidAnnotationArgument,
            "Y0007",
            variant_name=variant,
            attr=attr_name,
            arg=first.token(),
            variant=variant,
        )

    if not first.value:
        raise_generation_error(
            EmptyMessage, "Y0003", variant_name=variant, attr=attr_name, key=key
        )

    logger.debug(f"Display marker on {variant or '<anonymous>'}: {first.value!r}")
    return DisplayAnnotation(template=first.value, args=tuple(args[1:]))


def parse_cause(field: Field, *, config: GeneratorConfig = DEFAULT_CONFIG) -> bool:
    """True iff the field carries the cause marker. No shape validation."""
    return any(attr.name == config.cause_attr for attr in field.attrs)
