"""Partial-update helpers shared by the record services."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from core.exceptions import InvalidFieldError


def build_patch(
    changes: Mapping[str, Any],
    required: frozenset[str],
    nullable: frozenset[str],
) -> dict[str, Any]:
    """Turn caller-supplied changes into a row patch.

    Only keys present in ``changes`` are written. ``None`` clears a nullable
    field and is refused for a required one.

    Raises:
        InvalidFieldError: An unknown field, or null for a required field.
    """
    patch: dict[str, Any] = {}
    for field, value in changes.items():
        if field not in required and field not in nullable:
            raise InvalidFieldError(field, "cannot be updated")
        if value is None and field in required:
            raise InvalidFieldError(field, "may not be null")
        patch[field] = value.value if isinstance(value, Enum) else value
    return patch
