from __future__ import annotations

import re


# A placeholder is any run of characters between a literal "{" and "}".
# Nested braces and escaping are not supported: "{a{b}" yields "b".
_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def extract_variables(content: str | None) -> list[str]:
    """Return the placeholder names of ``content`` in first-occurrence order.

    Duplicates are dropped; unbalanced braces simply produce no match.
    """
    if not content:
        return []
    seen: set[str] = set()
    names: list[str] = []
    for match in _PLACEHOLDER_RE.finditer(content):
        name = match.group(1)
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names
