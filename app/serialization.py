# =============================================================================
# app/serialization.py - JSON Serialization Options
# =============================================================================
# All API request/response models derive from ApiModel so that enum members
# travel over the wire by NAME ("Admin") rather than by value (2 or "admin").
#
# Example:
#   class Role(IntEnum):
#       READER = 1
#       ADMIN = 2
#
#   class UserResponse(ApiModel):
#       role: Role
#       history: dict[str, list[Role]] = {}
#
#   UserResponse(role=Role.ADMIN).model_dump(mode="json")  # {"role": "ADMIN", ...}
#   UserResponse.model_validate({"role": "ADMIN"})         # role=Role.ADMIN
#
# Routes use ApiRoute (see app/routing.py) so that plain dict/list return
# values follow the same rule.
# =============================================================================

from enum import Enum
from typing import Any, Mapping, get_args, get_origin

from pydantic import BaseModel, ConfigDict, SerializerFunctionWrapHandler, ValidationInfo, field_serializer, field_validator

SEQUENCE_TYPES = (list, tuple, set, frozenset)


def enum_name(value: Any) -> Any:
    """Replace enum members with their names, inside mappings and sequences too."""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, Mapping):
        return {enum_name(k): enum_name(v) for k, v in value.items()}
    if isinstance(value, SEQUENCE_TYPES):
        return [enum_name(v) for v in value]
    return value


def has_enum(value: Any) -> bool:
    """True if an enum member appears anywhere in a plain value."""
    if isinstance(value, Enum):
        return True
    if isinstance(value, Mapping):
        return any(has_enum(k) or has_enum(v) for k, v in value.items())
    if isinstance(value, SEQUENCE_TYPES):
        return any(has_enum(v) for v in value)
    return False


def _enum_types(annotation: Any) -> list[type[Enum]]:
    """Collect enum classes referenced by an annotation (Optional, list[...], unions)."""
    if get_origin(annotation) is None and isinstance(annotation, type) and issubclass(annotation, Enum):
        return [annotation]
    found: list[type[Enum]] = []
    for arg in get_args(annotation):
        found.extend(_enum_types(arg))
    return found


def _member_by_name(enum_types: list[type[Enum]], value: Any) -> Any:
    if not isinstance(value, str):
        return value
    for enum_cls in enum_types:
        if value in enum_cls.__members__:
            return enum_cls[value]
    return value


def _members_by_name(enum_types: list[type[Enum]], value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _members_by_name(enum_types, v) for k, v in value.items()}
    if isinstance(value, SEQUENCE_TYPES):
        return [_members_by_name(enum_types, v) for v in value]
    return _member_by_name(enum_types, value)


class ApiModel(BaseModel):
    """
    Base model for everything serialized by the API.

    Enums are written as member names, including enums held in lists and
    dict values. On input, member names are accepted as well as raw values.
    """

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _enum_from_name(cls, value: Any, info: ValidationInfo) -> Any:
        if info.field_name is None:
            return value
        field = cls.model_fields.get(info.field_name)
        if field is None:
            return value
        enum_types = _enum_types(field.annotation)
        if not enum_types:
            return value
        return _members_by_name(enum_types, value)

    @field_serializer("*", mode="wrap")
    def _enum_to_name(self, value: Any, handler: SerializerFunctionWrapHandler):
        # No return annotation: keeps each field's own JSON schema in the docs
        if not has_enum(value):
            return handler(value)
        return enum_name(value)


# =============================================================================
# Response Model Checks
# =============================================================================

def value_enum_types(annotation: Any) -> list[str]:
    """
    Name the types in a response annotation that would write enums by value.

    That is a bare enum outside any ApiModel (e.g. ``list[Role]``), or a
    plain BaseModel whose fields reach an enum.
    """
    found: list[str] = []
    _collect_value_enums(annotation, named=False, found=found, seen=set())
    return found


def _collect_value_enums(annotation: Any, named: bool, found: list[str], seen: set) -> None:
    if get_origin(annotation) is None and isinstance(annotation, type):
        if issubclass(annotation, Enum):
            if not named and annotation.__name__ not in found:
                found.append(annotation.__name__)
            return
        if issubclass(annotation, BaseModel) and annotation not in seen:
            seen.add(annotation)
            is_api_model = issubclass(annotation, ApiModel)
            before = len(found)
            for field in annotation.model_fields.values():
                _collect_value_enums(field.annotation, is_api_model, found, seen)
            if not is_api_model and len(found) > before:
                found.append(annotation.__name__)
        return
    for arg in get_args(annotation):
        _collect_value_enums(arg, named, found, seen)
