"""Internal helpers for notionport."""

from __future__ import annotations

from .text_split import split_string, utf16_length

__all__ = [
    "split_string",
    "utf16_length",
]
