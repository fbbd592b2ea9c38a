"""Cosmetic punctuation cleanup for exported annotation text.

Kindle exports space punctuation out ("word , word", "“ Quote ”"). Spaces
before closing marks and after opening marks are removed.
"""
from __future__ import annotations

import re

_SPACE_BEFORE_RE = re.compile(r"\s+([,;:!’”.?)])")
_SPACE_AFTER_RE = re.compile(r"([“(])\s+")


def clean_note_text(text: str) -> str:
    """Remove stray spaces around punctuation."""
    text = _SPACE_BEFORE_RE.sub(r"\1", text)
    return _SPACE_AFTER_RE.sub(r"\1", text)
