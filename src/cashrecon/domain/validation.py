"""Input coercion shared by the domain services."""

from enum import Enum
from typing import Optional, TypeVar

from cashrecon.domain.errors import ValidationError

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: type[E], value: "E | str", field: str) -> E:
    """Accept an enum member or its string value.

    Raises:
        ValidationError: If the value is not a member of ``enum_cls``
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {allowed}")


def coerce_optional_enum(enum_cls: type[E], value: "Optional[E | str]", field: str) -> Optional[E]:
    if value is None:
        return None
    return coerce_enum(enum_cls, value, field)


def require_identity(identity: Optional[str], field: str) -> str:
    """Identity strings are trusted as given but must not be blank."""
    if identity is None or not str(identity).strip():
        raise ValidationError(f"{field} is required")
    return str(identity).strip()
