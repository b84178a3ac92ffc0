import re
from typing import Optional

MIN_POINT_LENGTH = 10

_STAR_RE = re.compile(r"\*+")
# Applied after stars are gone so a removed "*" cannot leave a fresh "__" behind.
_UNDERSCORE_EMPHASIS_RE = re.compile(r"__")
_LEADING_MARKER_RE = re.compile(r"^(?:(?:[-•*]|#+)\s*)+")
_WHITESPACE_RE = re.compile(r"\s+")
_SEPARATOR_START = (":", "#", "-", "=")


def clean_line(line: str) -> str:
    cleaned = _UNDERSCORE_EMPHASIS_RE.sub("", _STAR_RE.sub("", line))
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return _LEADING_MARKER_RE.sub("", cleaned)


def is_point(candidate: str) -> bool:
    if not candidate or candidate.startswith(_SEPARATOR_START):
        return False
    return len(candidate) > MIN_POINT_LENGTH


def normalize_points(raw: Optional[str]) -> list[str]:
    """Turn free model text into one clean sentence per entry.

    Markdown emphasis, bullets and headings are stripped; separator rows and
    fragments of ten characters or fewer are dropped. Order is preserved and
    duplicates are kept. Running the output back through is a no-op.
    """
    if not raw:
        return []
    points: list[str] = []
    for line in raw.splitlines():
        candidate = clean_line(line)
        if is_point(candidate):
            points.append(candidate)
    return points
