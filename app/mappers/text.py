import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_WS_RE = re.compile(r"\s+")
_LIST_SPLIT_RE = re.compile(r"[•,\n]")


def slugify_name(name: str) -> str:
    """Lower-case, non-alphanumerics to single hyphens, trimmed.

    "O'Brien" -> "o-brien", "Mary--Ann " -> "mary-ann"
    """
    return _NON_ALNUM_RE.sub("-", name.lower()).strip("-")


def collapse_ws(text: str | None) -> str:
    """Collapse whitespace runs to single spaces and strip."""
    return _WS_RE.sub(" ", text or "").strip()


def split_names(text: str) -> list[str]:
    """Split a "A • B, C" style list (or one entry per line) into clean entries."""
    return [collapse_ws(part) for part in _LIST_SPLIT_RE.split(text) if part.strip()]


def dedup_preserving_order(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
