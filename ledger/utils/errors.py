"""Utility helpers for standardized error responses."""
from __future__ import annotations

import enum
from typing import Any, Iterable, TypeVar

from fastapi import HTTPException, status

E = TypeVar("E", bound=enum.Enum)


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


def not_found(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error_response(code, message))


def coerce_enum(enum_cls: type[E], value: Any, *, code: str) -> E:
    """Return ``value`` as a member of ``enum_cls`` or reject it with a 422."""

    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_response(
                code,
                f"Unknown {enum_cls.__name__} value: {value!r}.",
                {"allowed": allowed},
            ),
        ) from None


def coerce_enum_list(enum_cls: type[E], values: Iterable[Any], *, code: str) -> list[E]:
    return [coerce_enum(enum_cls, value, code=code) for value in values]


__all__ = ["error_response", "not_found", "coerce_enum", "coerce_enum_list"]
