"""Yade: annotation-driven rendering and cause lookup for error types."""

from yade.codegen import compile_impl, generate, generate_module
from yade.config import DEFAULT_CONFIG, GeneratorConfig, load_config
from yade.derive import error, kind
from yade.diagnostics import format_diagnostic
from yade.exceptions import (
    ConfigError,
    DuplicateAnnotation,
    EmptyMessage,
    GenerationError,
    InvalidAnnotationArgument,
    InvalidCauseShape,
    InvalidTemplate,
    MissingMessageKey,
    MultipleCauses,
    ReservedFieldName,
    SchemaError,
    UnresolvedAnnotation,
    UnresolvedFieldReference,
    YadeError,
)
from yade.introspect import type_definition
from yade.markers import Cause, Display, Variant, display
from yade.message import compile_message
from yade.parser import parse_cause, parse_display
from yade.resolver import CauseBinding, CauseKind, classify_cause, classify_causes
from yade.schema import TypeDefinition, load_schema

__all__ = [
    # Derive
    "error",
    "kind",
    # Markers
    "Cause",
    "Display",
    "Variant",
    "display",
    # Schema
    "TypeDefinition",
    "load_schema",
    "type_definition",
    # Pipeline
    "parse_display",
    "parse_cause",
    "classify_cause",
    "classify_causes",
    "CauseBinding",
    "CauseKind",
    "compile_message",
    "generate",
    "generate_module",
    "compile_impl",
    # Config
    "GeneratorConfig",
    "DEFAULT_CONFIG",
    "load_config",
    # Exceptions
    "YadeError",
    "SchemaError",
    "ConfigError",
    "GenerationError",
    "DuplicateAnnotation",
    "MissingMessageKey",
    "EmptyMessage",
    "UnresolvedFieldReference",
    "InvalidCauseShape",
    "InvalidAnnotationArgument",
    "MultipleCauses",
    "InvalidTemplate",
    "ReservedFieldName",
    "UnresolvedAnnotation",
    "format_diagnostic",
]
