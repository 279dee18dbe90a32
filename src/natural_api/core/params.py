"""
Parameter bag normalization.

Query and path parameters accept a narrow set of value kinds: ``str``,
``int``, ``float``, ``bool`` and a list/tuple of those. Anything else is
rejected here, at the builder call, so a malformed chain never reaches
the wire.
"""

import dataclasses
from typing import Any, Dict, Mapping, Tuple, Union

from pydantic import BaseModel

from .exceptions import ConfigurationError

Scalar = Union[str, int, float, bool]
ParamValue = Union[Scalar, Tuple[Scalar, ...]]

_SCALAR_TYPES = (str, int, float, bool)


def normalize_value(key: str, value: Any, allow_array: bool = True) -> ParamValue:
    """
    Validate a single parameter value and return its stored form.

    Lists are stored as tuples so the value cannot be mutated afterwards.

    Raises:
        ConfigurationError: value is None, of an unsupported kind, or an
            array where arrays are not allowed.
    """
    if value is None:
        raise ConfigurationError(f"Parameter '{key}' cannot be None")

    if isinstance(value, _SCALAR_TYPES):
        return value

    if isinstance(value, (list, tuple)):
        if not allow_array:
            raise ConfigurationError(
                f"Path parameter '{key}' cannot be an array"
            )
        items = []
        for item in value:
            if item is None or not isinstance(item, _SCALAR_TYPES):
                raise ConfigurationError(
                    f"Parameter '{key}' array items must be str, int, float or bool, "
                    f"got {type(item).__name__}"
                )
            items.append(item)
        return tuple(items)

    raise ConfigurationError(
        f"Unsupported value for parameter '{key}': {type(value).__name__}. "
        f"Expected str, int, float, bool or a list of those"
    )


def project_fields(parameters: Any) -> Dict[str, Any]:
    """
    Project a mapping or a structured object onto key/value pairs.

    Accepts a mapping, a dataclass instance, a pydantic model or a plain
    object (its public attributes). ``None`` fields are dropped.

    Example:
        >>> @dataclass
        ... class Paging:
        ...     page: int = 1
        ...     cursor: Optional[str] = None
        >>> project_fields(Paging())
        {'page': 1}
    """
    if parameters is None:
        raise ConfigurationError("Parameters cannot be None")

    if isinstance(parameters, Mapping):
        items = dict(parameters)
    elif isinstance(parameters, BaseModel):
        items = parameters.model_dump()
    elif dataclasses.is_dataclass(parameters) and not isinstance(parameters, type):
        items = {f.name: getattr(parameters, f.name) for f in dataclasses.fields(parameters)}
    elif hasattr(parameters, "__dict__"):
        items = {k: v for k, v in vars(parameters).items() if not k.startswith("_")}
    else:
        raise ConfigurationError(
            f"Cannot extract parameters from {type(parameters).__name__}"
        )

    projected = {}
    for key, value in items.items():
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError(f"Parameter key must be a non-empty string, got {key!r}")
        if value is None:
            continue
        projected[key] = value
    return projected


def normalize_params(parameters: Any, allow_array: bool = True) -> Dict[str, ParamValue]:
    """Project ``parameters`` and validate every value."""
    return {
        key: normalize_value(key, value, allow_array=allow_array)
        for key, value in project_fields(parameters).items()
    }


def format_scalar(value: Scalar) -> str:
    """Render a scalar for the wire. Booleans become ``true``/``false``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
