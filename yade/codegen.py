"""Code generator.

Combines the parsed display markers, compiled messages and cause bindings of
a type into Python source for an implementation class ``<Name>Impl``:

- ``render(self, sink)`` writes the message of the instance's variant.
- ``__str__`` renders into a string.
- ``cause(self)`` returns the underlying error or None (error derive only).
- ``description(self)`` returns a constant redirect (error derive only).

Generated methods dispatch on the instance's ``__yade_variant__`` tag. Struct
implementations carry their own tag; enum variants are tagged by whoever
builds the variant classes (see ``yade.derive``).

Generation is a pure function of (type definition, config): it either returns
source text or raises a GenerationError. Nothing is emitted for a type that
fails.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from yade.config import DEFAULT_CONFIG, GeneratorConfig
from yade.diagnostics import raise_generation_error
from yade.exceptions import GenerationError, ReservedFieldName
from yade.message import CompiledMessage, compile_message
from yade.parser import parse_display
from yade.resolver import CauseBinding, CauseKind, classify_cause
from yade.schema import TypeDefinition, Variant

logger = logging.getLogger(__name__)

VARIANT_TAG = "__yade_variant__"
DISPLAY_MEMBERS = ("render", "__str__", VARIANT_TAG)
ERROR_MEMBERS = ("cause", "description")

MODULE_HEADER = '''\
"""Generated by yade. Do not edit."""

import io
'''


def impl_name(typedef: TypeDefinition) -> str:
    return f"{typedef.name}Impl"


def generate(
    typedef: TypeDefinition,
    *,
    error: bool = True,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> str:
    """Generate the implementation class source for one type.

    Args:
        typedef: The annotated type.
        error: Also generate ``cause``/``description``. False generates the
            rendering only (for plain "kind" enums).
        config: Marker vocabulary and checks.

    Returns:
        Source of the ``<Name>Impl`` class (no module header).

    Raises:
        GenerationError: Any malformed annotation, tagged with the type name.
    """
    try:
        analyzed = [_analyze(variant, error=error, config=config) for variant in typedef.all_variants()]
    except GenerationError as err:
        err.type_name = err.type_name or typedef.name
        raise

    lines = [f"class {impl_name(typedef)}:"]
    if typedef.kind == "struct":
        lines.append(f"    {VARIANT_TAG} = {typedef.name!r}")
        lines.append("")
    lines += _render_method(analyzed, config)
    lines.append("")
    lines += _str_method()
    if error:
        lines.append("")
        lines += _cause_method(analyzed)
        lines.append("")
        lines += _description_method(config)

    logger.debug(
        f"Generated {impl_name(typedef)} for {len(analyzed)} variant(s) "
        f"({'error' if error else 'display only'})"
    )
    return "\n".join(lines) + "\n"


def generate_module(
    typedefs: Iterable[TypeDefinition],
    *,
    error: bool = True,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> str:
    """Generate a module holding one implementation class per type.

    Types are generated independently; the first failing type aborts the
    whole module.
    """
    classes = [generate(typedef, error=error, config=config) for typedef in typedefs]
    return MODULE_HEADER + "".join(f"\n\n{source}" for source in classes)


def compile_impl(
    typedef: TypeDefinition,
    *,
    error: bool = True,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> type:
    """Generate and execute the implementation class for one type.

    Returns:
        The ``<Name>Impl`` class, ready to be mixed in or copied onto a class.
    """
    source = MODULE_HEADER + "\n\n" + generate(typedef, error=error, config=config)
    namespace: dict[str, object] = {"__name__": f"yade.generated.{typedef.name}"}
    code = compile(source, f"<yade:{typedef.name}>", "exec")
    exec(code, namespace)
    return namespace[impl_name(typedef)]  # type: ignore[return-value]


#
# --- Helpers
#


def _analyze(
    variant: Variant, *, error: bool, config: GeneratorConfig
) -> tuple[Variant, CompiledMessage, CauseBinding | None]:
    reserved = DISPLAY_MEMBERS + (ERROR_MEMBERS if error else ())
    for field in variant.fields:
        if field.name in reserved:
            raise_generation_error(
                ReservedFieldName,
                "Y0011",
                variant_name=variant.name,
                field_name=field.name,
                field=field.name,
                variant=variant.name,
                member=field.name,
            )

    display = parse_display(variant.attrs, variant=variant.name, config=config)
    message = compile_message(variant, display, config=config)
    cause = classify_cause(variant, config=config) if error else None
    return variant, message, cause


def _render_method(
    analyzed: list[tuple[Variant, CompiledMessage, CauseBinding | None]],
    config: GeneratorConfig,
) -> list[str]:
    lines = [
        "    def render(self, sink):",
        f"        variant = getattr(self, {VARIANT_TAG!r}, None)",
    ]
    for variant, message, _cause in analyzed:
        lines.append(f"        if variant == {variant.name!r}:")
        if message.literal:
            lines.append(f"            sink.write({message.template!r})")
        else:
            args = ", ".join(f"self.{variant.accessor(i)}" for i in message.fields)
            lines.append(f"            sink.write({message.template!r}.format({args}))")
        lines.append("            return")
    lines.append(f"        sink.write({config.unknown_message!r})")
    return lines


def _str_method() -> list[str]:
    return [
        "    def __str__(self):",
        "        sink = io.StringIO()",
        "        self.render(sink)",
        "        return sink.getvalue()",
    ]


def _cause_method(
    analyzed: list[tuple[Variant, CompiledMessage, CauseBinding | None]],
) -> list[str]:
    lines = [
        "    def cause(self):",
        f"        variant = getattr(self, {VARIANT_TAG!r}, None)",
    ]
    for variant, _message, cause in analyzed:
        lines.append(f"        if variant == {variant.name!r}:")
        lines += _cause_expression(variant, cause)
    lines.append("        return None")
    return lines


def _cause_expression(variant: Variant, cause: CauseBinding | None) -> list[str]:
    if cause is None or cause.kind is CauseKind.NONE:
        return ["            return None"]
    attr = f"self.{variant.accessor(cause.index)}"
    # Python references have no box indirection: a boxed referent, an optional
    # box (None when absent) and a direct cause are all the attribute itself
    return [f"            return {attr}  # {cause.kind.value}"]


def _description_method(config: GeneratorConfig) -> list[str]:
    return [
        "    def description(self):",
        f"        return {config.description!r}",
    ]

