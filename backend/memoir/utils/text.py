"""Text normalisation helpers for embedding input and lexical search."""

from __future__ import annotations

_WHITESPACE = frozenset("\u0009\u000a\u000b\u000c\u000d\u0020\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a\u202f\u205f\u3000")


def collapse_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces."""

    if not text:
        return ""

    parts: list[str] = []
    current: list[str] = []
    for char in text:
        if char in _WHITESPACE:
            if current:
                parts.append("".join(current))
                current.clear()
        else:
            current.append(char)
    if current:
        parts.append("".join(current))
    return " ".join(parts)


def prepare_embedding_input(text: str, max_chars: int) -> str:
    """Return the collapsed text clipped to *max_chars* characters."""

    collapsed = collapse_whitespace(text.strip())
    if max_chars > 0 and len(collapsed) > max_chars:
        return collapsed[:max_chars]
    return collapsed


def first_search_term(query: str) -> str:
    """Pick the first whitespace-delimited token of *query*, or the whole query when it has none."""

    tokens = query.split()
    return tokens[0] if tokens else query
