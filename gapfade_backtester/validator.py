"""
Configuration Validator
-----------------------
Strict checking of raw configuration dictionaries (usually parsed YAML) against
the dataclass schemas in `config`.

A misspelled key would otherwise be silently ignored and the run would use a
default threshold, so unknown keys and mistyped scalars fail at load time.
"""

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Set, Type, cast, get_type_hints

_SCALARS = (bool, int, float, str)


def _type_ok(value: Any, expected: Any) -> bool:
    if expected is bool:
        return isinstance(value, bool)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected is str:
        return isinstance(value, str)
    return True


def validate_keys(
    raw_config: Dict[str, Any], data_class: Type[Any], path: str = ""
) -> None:
    """
    Recursively validates a raw configuration dictionary against a dataclass schema.

    Args:
        raw_config (Dict[str, Any]): Parsed configuration section.
        data_class (Type[Any]): Dataclass type describing the section.
        path (str, optional): Dot-notation location, used in error messages.

    Raises:
        ValueError: On keys absent from the schema, on a scalar where a section is
            expected (or vice versa), and on scalars of the wrong type.
    """
    where = path if path else "root"
    if not isinstance(raw_config, dict):
        raise ValueError(
            f"Config Error: Expected a mapping at '{where}', got {type(raw_config).__name__}"
        )

    allowed_fields: Set[str] = {f.name for f in fields(data_class)}
    unknown_keys = set(raw_config.keys()) - allowed_fields

    if unknown_keys:
        raise ValueError(
            f"Config Error: Unknown keys detected at '{where}': {sorted(unknown_keys)}. "
            f"Allowed keys: {sorted(allowed_fields)}"
        )

    hints = get_type_hints(data_class)
    for field in fields(data_class):
        if field.name not in raw_config:
            continue
        value = raw_config[field.name]
        expected = hints.get(field.name)
        key_path = f"{path}.{field.name}" if path else field.name

        if is_dataclass(expected):
            validate_keys(value, cast(Type[Any], expected), path=key_path)
        elif expected in _SCALARS and not _type_ok(value, expected):
            raise ValueError(
                f"Config Error: Invalid type at '{key_path}': expected "
                f"{expected.__name__}, got {type(value).__name__} ({value!r})"
            )
