"""Annotation markers for yade error types.

These markers describe Python classes to the introspector
(``yade.introspect``), which turns them into a TypeDefinition:

- ``Cause()`` goes inside ``typing.Annotated`` on the field holding the
  underlying error.
- ``display(...)`` decorates a struct or a variant class with its message.
- ``Variant`` is the base of the nested classes that form an enum.
"""

from __future__ import annotations

from dataclasses import dataclass

DISPLAY_MARKERS = "__yade_display__"
DERIVED = "__yade_derived__"


@dataclass(frozen=True)
class Cause:
    """Marker for the field holding the underlying error.

    The field's type decides how the cause is exposed: an exception class is
    a direct cause, ``Exception`` is a boxed cause, and ``Exception | None``
    is an optional boxed cause.

    Usage:
        @error
        class ReadError(Exception):
            path: str
            source: Annotated[OSError, Cause()]
    """

    pass


@dataclass(frozen=True)
class Display:
    """Message marker recorded by ``display()``.

    ``msg`` is None when the decorator was called without a message, which
    the generator reports as a missing message key.
    """

    msg: str | None = None
    args: tuple[object, ...] = ()


def display(msg: str | None = None, *args: object):
    """Attach a message template to a struct or variant class.

    Arguments are positional field indices (ints) or field names (identifier
    strings, including the ``_N`` positional alias).

    Usage:
        @error
        @display("cat: {}", "cat")
        class CatError(Exception):
            cat: str

    Must be applied below ``error``/``kind``; markers added after the
    implementation was generated would be ignored.
    """
    marker = Display(msg, args)

    def decorate(cls: type) -> type:
        if cls.__dict__.get(DERIVED):
            raise TypeError(
                f"display() applied to {cls.__name__} after it was derived; "
                "place @display below @error/@kind"
            )
        markers = cls.__dict__.get(DISPLAY_MARKERS, ())
        # Decorators apply bottom-up; keep source order
        setattr(cls, DISPLAY_MARKERS, (marker, *markers))
        return cls

    return decorate


class Variant:
    """Base for enum variants declared as nested classes.

    Usage:
        @error
        class FetchError(Exception):
            @display("Timed out")
            class Timeout(Variant): ...

            class Io(Variant):
                _0: Annotated[OSError, Cause()]
    """

    pass
