"""Input sanitizers for free-text fields submitted by customers and staff.

These run after schema validation, so they only ever see strings of the
validated length. Every function returns ``None`` for empty input.
"""

from __future__ import annotations

import re

_HTML_TAG = re.compile(r"<[^>]*>")
_ANGLE_BRACKETS = re.compile(r"[<>]")
_HTML_ENTITY = re.compile(r"&[a-zA-Z]+;")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_NAME_UNSAFE = re.compile(r"[^a-zA-Z0-9\s\-'.]")
_MENU_NAME_UNSAFE = re.compile(r"[^a-zA-Z0-9\s\-'&(),.!]")


def sanitize_text(value: str | None, max_length: int = 500) -> str | None:
    if not value:
        return None
    cleaned = _HTML_TAG.sub("", value)
    cleaned = _ANGLE_BRACKETS.sub("", cleaned)
    cleaned = _HTML_ENTITY.sub("", cleaned)
    cleaned = _JS_PROTOCOL.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    return cleaned.strip()[:max_length] or None


def sanitize_name(value: str | None, max_length: int = 100) -> str | None:
    """Customer names: letters, digits, spaces, hyphens, apostrophes and dots."""
    if not value:
        return None
    cleaned = _NAME_UNSAFE.sub("", value)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip()[:max_length] or None


def sanitize_menu_item_name(value: str | None, max_length: int = 100) -> str | None:
    if not value:
        return None
    cleaned = _HTML_TAG.sub("", value)
    cleaned = _MENU_NAME_UNSAFE.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip()[:max_length] or None


def sanitize_instructions(value: str | None, max_length: int = 500) -> str | None:
    if not value:
        return None
    cleaned = _HTML_TAG.sub("", value)
    cleaned = _ANGLE_BRACKETS.sub("", cleaned)
    return cleaned.strip()[:max_length] or None


def sanitize_email(value: str | None, max_length: int = 254) -> str | None:
    if not value:
        return None
    return value.strip().lower()[:max_length] or None
