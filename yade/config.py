"""Generator configuration.

Defaults describe the reference marker vocabulary (``display``/``msg``/
``cause``) and the constructor names used to classify cause fields. Projects
override them under ``[tool.yade]`` in their pyproject.toml.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from yade.exceptions import ConfigError


class GeneratorConfig(BaseModel):
    """Settings for one generation pass.

    Attributes:
        display_attr: Name of the type/variant-level message marker.
        message_key: Reserved key of the message text inside the marker.
        cause_attr: Name of the field-level cause marker.
        optional_constructors: Outer constructor names meaning "optional".
        boxed_constructors: Outer constructor names meaning "owned box of an
            error trait object".
        unknown_message: Text written by the unreachable render fallback.
        description: Constant returned by the generated ``description()``.
        strict_templates: Require the template placeholders to use exactly
            the given arguments.
        strict_causes: Only accept Direct causes whose type is known to be an
            error type.
        allow_multiple_causes: Keep the first cause-marked field instead of
            failing when several fields carry the marker.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    display_attr: str = "display"
    message_key: str = "msg"
    cause_attr: str = "cause"
    optional_constructors: tuple[str, ...] = ("Option", "Optional")
    boxed_constructors: tuple[str, ...] = ("Box",)
    unknown_message: str = "There was an unknown error."
    description: str = "For a description please use the str() rendering of this error"
    strict_templates: bool = True
    strict_causes: bool = False
    allow_multiple_causes: bool = False


DEFAULT_CONFIG = GeneratorConfig()


def load_config(path: Path | None = None) -> GeneratorConfig:
    """Read ``[tool.yade]`` from a pyproject.toml.

    Args:
        path: pyproject.toml to read. None, or a file without a
            ``[tool.yade]`` table, gives the defaults.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the file is not valid TOML, `tool` or `tool.yade` is
            not a table, or the table has unknown keys or wrongly typed values.
    """
    if path is None or not path.exists():
        return DEFAULT_CONFIG

    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in '{path}': {e}", cause=e)

    table = data
    for key in ("tool", "yade"):
        table = table.get(key, {})
        if not isinstance(table, dict):
            raise ConfigError(f"'{key}' in '{path}' must be a table, got {type(table).__name__}")
    try:
        return GeneratorConfig.model_validate(table)
    except ValidationError as e:
        raise ConfigError(f"Invalid [tool.yade] table in '{path}':\n{e}", cause=e)
