"""Class decorators that derive rendering and cause lookup.

``error`` installs ``render``, ``__str__``, ``cause`` and ``description``;
``kind`` installs the rendering only. Both read the class through
``yade.introspect``, generate the implementation with ``yade.codegen`` and
copy the generated members onto the class.

Structs become dataclasses. For enums, each nested ``Variant`` class is
rebuilt as a dataclass subclass of the enum class and tagged with its
variant name, so ``FetchError.Io(err)`` is an instance of ``FetchError``.
"""

from __future__ import annotations

import dataclasses
import logging

from yade.codegen import DISPLAY_MEMBERS, ERROR_MEMBERS, VARIANT_TAG, compile_impl
from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.introspect import type_definition, variant_classes
from yade.markers import DERIVED, DISPLAY_MARKERS

logger = logging.getLogger(__name__)


def error(cls: type | None = None, *, config: GeneratorConfig = DEFAULT_CONFIG):
    """Derive rendering and cause lookup for an error type.

    Usage:
        @error
        @display("a kind error: {}", "kind")
        class KindError(Exception):
            kind: KindErrorKind
            source: Annotated[Exception | None, Cause()]

    Raises:
        GenerationError: At decoration time, for any malformed annotation.
    """
    if cls is None:
        return lambda c: _derive(c, error=True, config=config)
    return _derive(cls, error=True, config=config)


def kind(cls: type | None = None, *, config: GeneratorConfig = DEFAULT_CONFIG):
    """Derive rendering only, for plain "kind" enums that are not errors."""
    if cls is None:
        return lambda c: _derive(c, error=False, config=config)
    return _derive(cls, error=False, config=config)


def _derive(cls: type, *, error: bool, config: GeneratorConfig) -> type:
    # Generate first: a malformed annotation must leave the class untouched
    typedef = type_definition(cls, config=config)
    impl = compile_impl(typedef, error=error, config=config)

    variants = variant_classes(cls)
    if not variants and not _is_own_dataclass(cls):
        cls = dataclasses.dataclass(cls, eq=not issubclass(cls, BaseException))

    members = DISPLAY_MEMBERS + (ERROR_MEMBERS if error else ())
    for name in members:
        if name in impl.__dict__:
            setattr(cls, name, impl.__dict__[name])

    for variant in variants:
        setattr(cls, variant.__name__, _variant_class(cls, variant))

    setattr(cls, DERIVED, True)
    logger.debug(f"Derived {'error' if error else 'kind'} for {cls.__qualname__}")
    return cls


def _variant_class(owner: type, variant: type) -> type:
    """Rebuild a nested Variant as a dataclass subclass of its enum class."""
    fields_cls = variant if _is_own_dataclass(variant) else dataclasses.dataclass(
        variant, eq=not issubclass(owner, BaseException)
    )
    namespace = {
        "__module__": owner.__module__,
        "__qualname__": f"{owner.__qualname__}.{variant.__name__}",
        "__doc__": variant.__doc__,
        VARIANT_TAG: variant.__name__,
        DISPLAY_MARKERS: variant.__dict__.get(DISPLAY_MARKERS, ()),
    }
    return type(variant.__name__, (fields_cls, owner), namespace)


def _is_own_dataclass(cls: type) -> bool:
    return "__dataclass_fields__" in cls.__dict__
