"""Minimal CPE name helpers for the URI (2.2) and formatted string (2.3) bindings."""

from typing import List

ATTRIBUTES = ("part", "vendor", "product", "version", "update", "edition", "language")


def components(cpe: str) -> List[str]:
    """Split a CPE name into its leading attributes, unescaped bindings left as-is."""
    value = cpe.strip()
    if value.startswith("cpe:2.3:"):
        fields = value[len("cpe:2.3:"):].split(":")
        return ["" if f in ("*", "-") else f for f in fields]
    if value.startswith("cpe:/"):
        return value[len("cpe:/"):].split(":")
    return []


def attribute(cpe: str, name: str) -> str:
    """Return one named attribute of a CPE, or the empty string."""
    index = ATTRIBUTES.index(name)
    fields = components(cpe)
    return fields[index] if index < len(fields) else ""


def is_valid(cpe: str) -> bool:
    fields = components(cpe)
    return len(fields) >= 3 and fields[0] in ("a", "o", "h")


def matches(pattern: str, target: str) -> bool:
    """
    True if ``target`` falls within ``pattern``.

    Attributes missing or empty in the pattern match anything; all others
    must be equal, ignoring case.
    """
    want = components(pattern)
    have = components(target)
    if not want or not have:
        return False
    for i, value in enumerate(want):
        if not value:
            continue
        if i >= len(have) or have[i].lower() != value.lower():
            return False
    return True
