"""Audit payload helpers."""
from __future__ import annotations

import enum
from typing import Any, Mapping

SENSITIVE_KEYS = {
    "cpf",
    "rg",
    "cns",
    "email",
    "phone",
    "card_number",
    "password",
    "token",
    "download_url",
}


def _mask_value(key: str, value: Any) -> Any:
    if value is None:
        return None

    if key in {"password", "token"}:
        return "***"

    if key in {"cpf", "rg", "cns", "card_number", "phone"}:
        digits = "".join(ch for ch in str(value) if ch.isalnum())
        if len(digits) <= 4:
            return "***"
        return f"***{digits[-2:]}"

    if key == "email":
        text = str(value)
        if "@" in text:
            _, domain = text.split("@", 1)
            return f"***@{domain}"
        return "***"

    if key == "download_url":
        base = str(value).split("?", 1)[0]
        if "/" in base:
            prefix = base.rsplit("/", 1)[0]
            return f"{prefix}/***"
        return "***/***"

    return value


def sanitize_payload_for_audit(data: Any) -> Any:
    """Return a copy of ``data`` with obvious PII fields masked."""

    if isinstance(data, Mapping):
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            masked_value = _mask_value(key, value) if key in SENSITIVE_KEYS else value
            sanitized[key] = sanitize_payload_for_audit(masked_value)
        return sanitized

    if isinstance(data, (list, tuple)):
        return [sanitize_payload_for_audit(item) for item in data]

    if isinstance(data, enum.Enum):
        return data.value

    return data


def diff_fields(previous: Mapping[str, Any] | None, new: Mapping[str, Any] | None) -> list[str]:
    """Return the keys whose value differs between ``previous`` and ``new``.

    Keys are listed in the order they appear in ``new``, then any keys only
    present in ``previous``.
    """

    previous = previous or {}
    new = new or {}
    changed = [key for key, value in new.items() if key not in previous or previous[key] != value]
    changed.extend(key for key in previous if key not in new)
    return changed


__all__ = ["SENSITIVE_KEYS", "sanitize_payload_for_audit", "diff_fields"]
