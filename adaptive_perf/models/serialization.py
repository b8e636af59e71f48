# adaptive_perf/models/serialization.py

"""Dict <-> dataclass conversion shared by the profile store and payload parsing.

Payloads from collaborators may use camelCase keys (``firstContentfulPaint``);
stored documents use snake_case. Both are accepted on the way in.
"""

import dataclasses
import logging
import math
import re
import typing
from enum import Enum
from typing import Any, Dict, Type, TypeVar, Union

from .exceptions import InvalidInputError

logger_serialization = logging.getLogger(__name__)

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NONE_TYPE = type(None)


def normalize_key(key: str) -> str:
    """Convert ``camelCase`` / ``kebab-case`` keys to ``snake_case``."""
    if not isinstance(key, str):
        raise InvalidInputError(f"Keys must be strings, got {type(key).__name__}")
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def to_dict(obj: Any) -> Any:
    """Recursively convert dataclasses/enums/containers into JSON-safe values."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): to_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_dict(v) for v in obj]
    return obj


def field_hints(cls: Type[Any]) -> Dict[str, Any]:
    return typing.get_type_hints(cls)


def coerce_value(value: Any, hint: Any, path: str = "") -> Any:
    """Coerce ``value`` into ``hint``, raising InvalidInputError on shape/type mismatch."""
    if hint is Any:
        return value

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin is Union:
        if value is None and _NONE_TYPE in args:
            return None
        non_none = [a for a in args if a is not _NONE_TYPE]
        if len(non_none) == 1:
            return coerce_value(value, non_none[0], path)
        for candidate in non_none:
            try:
                return coerce_value(value, candidate, path)
            except InvalidInputError:
                continue
        raise InvalidInputError(f"{path}: value {value!r} matches none of {non_none}")

    if origin in (list, typing.List):
        if not isinstance(value, (list, tuple)):
            raise InvalidInputError(f"{path}: expected a list, got {type(value).__name__}")
        item_hint = args[0] if args else Any
        return [coerce_value(v, item_hint, f"{path}[{i}]") for i, v in enumerate(value)]

    if origin in (dict, typing.Dict):
        if not isinstance(value, dict):
            raise InvalidInputError(f"{path}: expected an object, got {type(value).__name__}")
        value_hint = args[1] if len(args) == 2 else Any
        return {str(k): coerce_value(v, value_hint, f"{path}.{k}") for k, v in value.items()}

    if isinstance(hint, type) and issubclass(hint, Enum):
        if isinstance(value, hint):
            return value
        try:
            return hint(value)
        except ValueError:
            allowed = [m.value for m in hint]
            raise InvalidInputError(f"{path}: invalid value {value!r}, expected one of {allowed}")

    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        if isinstance(value, hint):
            return value
        if not isinstance(value, dict):
            raise InvalidInputError(f"{path}: expected an object, got {type(value).__name__}")
        return from_dict(hint, value, path)

    if hint is bool:
        if not isinstance(value, bool):
            raise InvalidInputError(f"{path}: expected a boolean, got {value!r}")
        return value

    if hint is int:
        if isinstance(value, bool):
            raise InvalidInputError(f"{path}: expected an integer, got a boolean")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise InvalidInputError(f"{path}: expected an integer, got {value!r}")

    if hint is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputError(f"{path}: expected a number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidInputError(f"{path}: expected a finite number, got {value!r}")
        return float(value)

    if hint is str:
        if not isinstance(value, str):
            raise InvalidInputError(f"{path}: expected a string, got {type(value).__name__}")
        return value

    return value


def from_dict(cls: Type[T], data: Dict[str, Any], path: str = "") -> T:
    """Build dataclass ``cls`` from ``data``; absent keys keep the dataclass defaults."""
    if not isinstance(data, dict):
        raise InvalidInputError(f"{path or cls.__name__}: expected an object, got {type(data).__name__}")

    hints = field_hints(cls)
    init_fields = {f.name for f in dataclasses.fields(cls) if f.init}
    kwargs: Dict[str, Any] = {}
    for raw_key, raw_value in data.items():
        key = normalize_key(raw_key)
        if key not in init_fields:
            logger_serialization.debug(f"Ignoring unknown key '{raw_key}' for {cls.__name__}")
            continue
        kwargs[key] = coerce_value(raw_value, hints[key], f"{path}.{key}" if path else key)
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{path or cls.__name__}: {e}") from e
