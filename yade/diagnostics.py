"""Diagnostic code registry and formatting for generation errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn

from yade.exceptions import GenerationError


@dataclass(frozen=True)
class DiagnosticMessage:
    code: str
    text: str
    doc: str = ""


REGISTRY: dict[str, DiagnosticMessage] = {}


def raise_generation_error(
    error_cls: type[GenerationError],
    code: str,
    *,
    type_name: str = "",
    variant_name: str = "",
    field_name: str = "",
    cause: Exception | None = None,
    **kwargs: object,
) -> NoReturn:
    """Raise ``error_cls`` with the registered text for ``code``.

    Args:
        error_cls: The GenerationError subclass for this kind.
        code: Registry code (e.g., "Y0004").
        type_name: Type being generated, if known at the raise site.
        variant_name: Variant holding the annotation.
        field_name: Field the annotation refers to, if any.
        cause: Underlying exception to chain.
        **kwargs: Format parameters for the registered text.

    Raises:
        GenerationError: Always, as an instance of ``error_cls``.
    """
    raise error_cls(
        message(code, **kwargs),
        code=code,
        type_name=type_name,
        variant_name=variant_name,
        field_name=field_name,
        cause=cause,
    )


def message(code: str, **kwargs: object) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None


def format_diagnostic(err: GenerationError) -> str:
    """Render a generation error the way the CLI prints it.

    ``error[Y0004]: Couldn't find field 'x' of 'More'``
    ``  --> EnumError::More``
    """
    head = f"error[{err.code}]: {err}" if err.code else f"error: {err}"
    loc = err.location
    lines = [head]
    if loc:
        lines.append(f"  --> {loc}")
    doc = REGISTRY[err.code].doc if err.code in REGISTRY else ""
    if doc:
        lines.append(f"  = help: {doc}")
    return "\n".join(lines)


#
# --- Helpers
#

def _add(msg: DiagnosticMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate diagnostic code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg


def _get(code: str) -> DiagnosticMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown diagnostic code: {code}")


#
# --- Registry population
#

_add(DiagnosticMessage("Y0001",
    "Attribute '{attr}' specified multiple times.",
    "A variant takes at most one display marker."))

_add(DiagnosticMessage("Y0002",
    "Attribute '{attr}' must contain `{key} = \"\"`",
    "The first entry of the marker's argument list is the message text."))

_add(DiagnosticMessage("Y0003",
    "Attribute '{attr}' must have a non-empty `{key}`",
    "Drop the marker to render the variant name instead."))

_add(DiagnosticMessage("Y0004",
    "Couldn't find field '{field}' of '{variant}'",
    "Named arguments must match a declared field exactly; use `_N` or N for positional fields."))

_add(DiagnosticMessage("Y0005",
    "Field index {index} is out of range for '{variant}' ({count} field(s))",
    "Positional arguments count fields from zero in declaration order."))

_add(DiagnosticMessage("Y0006",
    "Cause must be a type implementing Error, a Box<Error>, or an Option<Box<Error>>; "
    "'{field}' of '{variant}' is `{ty}`",
    "In Python classes use an exception type, `Exception`, or `Exception | None`."))

_add(DiagnosticMessage("Y0007",
    "Invalid '{attr}' attribute argument `{arg}` for '{variant}'",
    "Template arguments are integer literals or field identifiers."))

_add(DiagnosticMessage("Y0008",
    "Only one field of '{variant}' may be marked '{attr}', found {fields}",
    "Set `allow_multiple_causes = true` under [tool.yade] to keep the first one."))

_add(DiagnosticMessage("Y0009",
    "Template {template!r} of '{variant}' uses argument(s) {used} but {count} were given",
    "Every argument must be used by exactly the placeholders of the template."))

_add(DiagnosticMessage("Y0010",
    "Template {template!r} of '{variant}' is invalid: {reason}",
    "Only positional placeholders such as {} or {0} are supported."))

_add(DiagnosticMessage("Y0011",
    "Field '{field}' of '{variant}' shadows the generated '{member}' member",
    "Rename the field; generated members are installed on the class."))

_add(DiagnosticMessage("Y0012",
    "Cannot resolve the type hints of '{variant}': {reason}",
    "Names used in annotations must be defined in the class's module; "
    "the class being derived may refer to itself."))
