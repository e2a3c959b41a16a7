"""Utility helpers for the DiscShelf service."""

from __future__ import annotations

import re
from typing import Any

import httpx


PUNCTUATION_RE = re.compile(r"[\",:]")
NOISE_TOKEN_RE = re.compile(
    r"""
    \bdvd\b
    | \bblu-ray\b
    | \bset\b
    | \bedition\b
    | \b\d{4}\b
    | -disc\b
    | \bblister\s+pack\b
    | \bby\b
    | \bmovie\b
    | \bno\.\s*\d+\b
    """,
    re.IGNORECASE | re.VERBOSE,
)
EMPTY_BRACKETS_RE = re.compile(r"\(\s*\)|\[\s*\]")
WHITESPACE_RE = re.compile(r"\s+")

MIN_SEARCHABLE_TITLE_LENGTH = 3


def _clean_once(value: str) -> str:
    value = NOISE_TOKEN_RE.sub(" ", value)
    value = PUNCTUATION_RE.sub("", value)
    value = EMPTY_BRACKETS_RE.sub(" ", value)
    return WHITESPACE_RE.sub(" ", value).strip()


def normalize_title(raw_title: str) -> str:
    """Turn a retail product title into a movie search query.

    Packaging noise ("DVD", "Blu-ray", "2-disc", years, "blister pack", ...)
    is dropped along with quotes, commas and colons, and whitespace is
    collapsed. Removing one token can expose another (``"no. no. 5 5"``), so
    the cleanup runs until the value is stable.
    """

    value = (raw_title or "").lower()
    while True:
        cleaned = _clean_once(value)
        if cleaned == value:
            return cleaned
        value = cleaned


def is_searchable_title(title: str) -> bool:
    return len(title) >= MIN_SEARCHABLE_TITLE_LENGTH


def parse_release_year(value: Any) -> int | None:
    """Return the year encoded in the first four characters of a date."""

    if not isinstance(value, str) or len(value) < 4:
        return None
    try:
        return int(value[:4])
    except ValueError:
        return None


def build_image_url(base_url: str, width: str, path: str | None) -> str | None:
    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"{base_url.rstrip('/')}/{width}/{path.lstrip('/')}"


def describe_error_response(response: httpx.Response) -> str:
    """Return a short, human-readable reason for a failed upstream reply."""

    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("status_message", "message", "error", "code"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()
