"""Shared input sanitizers for API models."""

from __future__ import annotations

import re
from collections.abc import Iterable

NAME_MAX_LENGTH = 80
PROMPT_MAX_LENGTH = 600
KEYWORD_MAX = 20
KEYWORD_MAX_LENGTH = 40
PHONE_PATTERN = re.compile(r"^[0-9+()\-\.\s]{6,32}$")


def _squash_whitespace(text: str) -> str:
    return " ".join(text.split())


def normalize_display_name(value: str, *, field: str = "name") -> str:
    if not isinstance(value, str):  # pragma: no cover - Pydantic guards by default
        raise ValueError(f"{field} must be a string")
    cleaned = _squash_whitespace(value.strip())
    if not cleaned:
        raise ValueError(f"{field} cannot be blank")
    if len(cleaned) > NAME_MAX_LENGTH:
        raise ValueError(f"{field} must be <= {NAME_MAX_LENGTH} characters")
    return cleaned


def normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if not PHONE_PATTERN.fullmatch(cleaned):
        raise ValueError(
            "phone must contain digits, spaces, '.', '-', '()' or '+' and be 6-32 characters"
        )
    return cleaned


def normalize_prompt(value: str) -> str:
    cleaned = _squash_whitespace((value or "").strip())
    if not cleaned:
        raise ValueError("prompt cannot be blank")
    if len(cleaned) > PROMPT_MAX_LENGTH:
        raise ValueError(f"prompt must be <= {PROMPT_MAX_LENGTH} characters")
    return cleaned


def normalize_keywords(
    items: Iterable[str] | str | None,
    *,
    field: str = "keywords",
    max_items: int = KEYWORD_MAX,
    max_length: int = KEYWORD_MAX_LENGTH,
) -> list[str]:
    """Trim, lowercase and de-duplicate a keyword list, preserving order."""
    if items is None:
        return []
    if isinstance(items, str):
        items = items.split(",")
    cleaned: list[str] = []
    seen: set[str] = set()
    for raw in items:
        if not isinstance(raw, str):
            raise ValueError(f"{field} entries must be strings")
        token = _squash_whitespace(raw.strip()).lower()
        if not token or token in seen:
            continue
        if len(token) > max_length:
            raise ValueError(f"{field} entries must be <= {max_length} characters")
        seen.add(token)
        cleaned.append(token)
    if len(cleaned) > max_items:
        raise ValueError(f"{field} accepts at most {max_items} entries")
    return cleaned
