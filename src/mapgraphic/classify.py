"""CSS class derivation for rendered features."""

from __future__ import annotations

import re
from typing import Any

from .models import Feature
from .util import format_number


_WHITESPACE_RE = re.compile(r"\s+")
_NON_TOKEN_RE = re.compile(r"[^\w\-]+", re.ASCII)
_DASH_RUN_RE = re.compile(r"-{2,}")


def classify(text: Any) -> str:
    """Turn arbitrary text into a CSS-safe class token."""
    token = _stringify(text).lower()
    token = _WHITESPACE_RE.sub("-", token)
    token = _NON_TOKEN_RE.sub("", token)
    token = _DASH_RUN_RE.sub("-", token)
    return token.strip("-")


def classify_feature(feature: Feature) -> str:
    """Class string: the id token, then one `key-value` token per property."""
    tokens: list[str] = []
    if feature.id:
        tokens.append(classify(feature.id))
    for key, value in feature.properties.items():
        tokens.append(classify(f"{key}-{_stringify(value)}"))
    return " ".join(tokens)


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (bool, int, float)):
        return format_number(value)
    return str(value)
