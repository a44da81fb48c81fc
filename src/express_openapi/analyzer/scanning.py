"""Bracket- and quote-aware helpers for scanning JavaScript snippets.

Line and block comments outside string literals are skipped.
"""

import re

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = frozenset(OPENERS.values())
QUOTES = frozenset("'\"`")

IDENTIFIER = r"[A-Za-z_$][\w$]*"


def comment_end(text: str, index: int) -> int | None:
    """Return the index just past a comment starting at ``index``, if one does."""
    if text.startswith("//", index):
        end = text.find("\n", index)
        return len(text) if end == -1 else end
    if text.startswith("/*", index):
        end = text.find("*/", index + 2)
        return len(text) if end == -1 else end + 2
    return None


def strip_comments(text: str) -> str:
    """Drop comments that sit outside string literals."""
    out = []
    quote = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                out.append(text[i:i + 2])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        else:
            end = comment_end(text, i)
            if end is not None:
                out.append(" ")
                i = end
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def enclosed(text: str, open_index: int) -> str:
    """Return the text between the bracket at ``open_index`` and its match.

    Strings and comments are skipped so brackets inside them do not count.
    An unterminated group yields everything up to the end of ``text``.
    """
    depth = 0
    quote = None
    i = open_index
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        else:
            end = comment_end(text, i)
            if end is not None:
                i = end
                continue
            if ch in OPENERS:
                depth += 1
            elif ch in CLOSERS:
                depth -= 1
                if depth == 0:
                    return text[open_index + 1:i]
        i += 1
    return text[open_index + 1:]


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` where it is not nested in brackets or strings.

    Comments are removed from the returned parts.
    """
    text = strip_comments(text)
    parts = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
        i += 1
    parts.append(text[start:].strip())
    return [p for p in parts if p]


def object_entries(literal: str) -> list[tuple[str, str | None]]:
    """Parse the body of an object literal into ``(key, value)`` pairs.

    Shorthand entries have a ``None`` value. Spread and computed entries
    are dropped.
    """
    entries = []
    for part in split_top_level(literal):
        if part.startswith("..."):
            continue
        key, colon, value = part.partition(":")
        key = key.strip().strip("'\"")
        if not re.fullmatch(IDENTIFIER, key):
            continue
        entries.append((key, value.strip() if colon else None))
    return entries


def destructured_names(pattern: str) -> list[str]:
    """Return the property names bound by an object destructuring pattern.

    ``a: renamed`` yields ``a`` and ``b = 1`` yields ``b``; rest elements
    are skipped.
    """
    names = []
    for part in split_top_level(pattern):
        if part.startswith("..."):
            continue
        name = re.split(r"[:=]", part, maxsplit=1)[0].strip().strip("'\"")
        if re.fullmatch(IDENTIFIER, name) and name not in names:
            names.append(name)
    return names
