"""
Base domain model with camelCase JSON compatibility.

The preview collaborator and the regenerator service both speak camelCase
JSON. Domain models inherit from BaseDomainModel to get automatic
camelCase <-> snake_case conversion at that boundary.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T", bound="BaseDomainModel")


def to_camel_case(snake_str: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        >>> to_camel_case("file_path")
        'filePath'
        >>> to_camel_case("attempt_number")
        'attemptNumber'
    """
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def to_snake_case(camel_str: str) -> str:
    """
    Convert camelCase to snake_case.

    Examples:
        >>> to_snake_case("filePath")
        'file_path'
        >>> to_snake_case("unresolvedImports")
        'unresolved_imports'
    """
    if not camel_str:
        return camel_str
    result = [camel_str[0].lower()]
    for char in camel_str[1:]:
        if char.isupper():
            result.extend(["_", char.lower()])
        else:
            result.append(char)
    return "".join(result)


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseDomainModel):
        return value.to_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


@dataclass
class BaseDomainModel:
    """
    Base class for all domain models.

    - to_json() serializes to camelCase
    - from_json() deserializes flat camelCase (or snake_case) JSON
    - Enum values are serialized by value
    """

    def to_json(self) -> dict[str, Any]:
        """Serialize to camelCase JSON-compatible dict."""
        return {to_camel_case(f.name): _serialize(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_json(cls: type[T], data: dict[str, Any]) -> T:
        """
        Deserialize from camelCase JSON.

        Unknown keys are ignored. Nested models and enums are left to
        subclasses that need them.

        Raises:
            ValueError: If a required field is missing
        """
        normalized = {to_snake_case(k): v for k, v in data.items()}
        kwargs: dict[str, Any] = {}

        for field in fields(cls):
            if not field.init:
                continue
            if field.name not in normalized:
                if field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING:
                    continue
                raise ValueError(f"Missing required field: {to_camel_case(field.name)}")
            kwargs[field.name] = normalized[field.name]

        return cls(**kwargs)
