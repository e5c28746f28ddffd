"""Yade exception hierarchy.

All yade exceptions inherit from YadeError and support cause chaining.
Generation errors describe malformed annotations; they abort generation for
the whole type and never have a runtime counterpart in generated code.
"""


class YadeError(Exception):
    """Base exception for all yade errors.

    Wraps original errors as __cause__ for proper exception chaining.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class SchemaError(YadeError):
    """Raised when a type schema cannot be loaded or validated.

    Examples: invalid JSON, unknown argument kinds, names that are not
    Python identifiers, duplicate variant names.
    """

    pass


class ConfigError(YadeError):
    """Raised when the ``[tool.yade]`` table cannot be read."""

    pass


class GenerationError(YadeError):
    """Base for malformed-annotation errors found during a generation pass.

    Carries the diagnostic code and the location of the offending annotation
    so the CLI can point at ``Type::Variant.field``.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        type_name: str = "",
        variant_name: str = "",
        field_name: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.code = code
        self.type_name = type_name
        self.variant_name = variant_name
        self.field_name = field_name

    @property
    def location(self) -> str:
        """``Type::Variant.field`` with the known parts only."""
        loc = self.type_name
        if self.variant_name and self.variant_name != self.type_name:
            loc = f"{loc}::{self.variant_name}" if loc else self.variant_name
        if self.field_name:
            loc = f"{loc}.{self.field_name}" if loc else self.field_name
        return loc


class DuplicateAnnotation(GenerationError):
    """A second display marker on one variant."""


class MissingMessageKey(GenerationError):
    """The display marker's argument list does not start with ``msg = "..."``."""


class EmptyMessage(GenerationError):
    """The display message is an empty string."""


class UnresolvedFieldReference(GenerationError):
    """A template argument names a field that does not exist."""


class InvalidCauseShape(GenerationError):
    """The cause field is not an error, a boxed error, or an optional boxed error."""


class InvalidAnnotationArgument(GenerationError):
    """A template argument is neither an integer literal nor an identifier."""


class MultipleCauses(GenerationError):
    """More than one field of a variant carries the cause marker."""


class InvalidTemplate(GenerationError):
    """The template placeholders do not line up with its arguments."""


class ReservedFieldName(GenerationError):
    """A field would shadow one of the generated members."""


class UnresolvedAnnotation(GenerationError):
    """A type hint of a derived class names something that is not defined."""
