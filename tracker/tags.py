"""Extract [STATUS:...] and [NEXT:...] annotations from commit messages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Keyword is case-insensitive; the value runs up to the first closing bracket.
_TAG_RE = re.compile(r"\[(STATUS|NEXT)\s*:([^\]]*)\]", re.IGNORECASE)

# Known manifest statuses, keyed by the upper-cased, underscore form of the tag value
_STATUS_ALIASES = {
    "BACKLOG": "Backlog",
    "IN_PROGRESS": "In Progress",
    "TESTING": "Testing",
    "DONE": "Done",
}


@dataclass
class ParsedTags:
    status: str | None = None
    next_steps: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.status is None and not self.next_steps


def normalize_status(value: str) -> str:
    """Canonicalize known statuses (``in_progress`` -> ``In Progress``); pass others through."""
    key = re.sub(r"[\s-]+", "_", value.strip()).upper()
    return _STATUS_ALIASES.get(key, value.strip())


def parse_commit_tags(message: str) -> ParsedTags:
    """Parse the tags in a commit message.

    The first STATUS tag wins. NEXT tags accumulate in order of appearance.
    Any other bracketed text (``[#123]``, ``[skip ci]``) is ignored.
    """
    parsed = ParsedTags()
    for match in _TAG_RE.finditer(message or ""):
        keyword = match.group(1).upper()
        value = match.group(2).strip()
        if not value:
            continue
        if keyword == "STATUS":
            if parsed.status is None:
                parsed.status = normalize_status(value)
        else:
            parsed.next_steps.append(value)
    return parsed


def summarize_tags(tags: ParsedTags) -> str:
    parts = []
    if tags.status:
        parts.append(f"Status → {tags.status}")
    if tags.next_steps:
        parts.append(f"Next: {', '.join(tags.next_steps)}")
    return " | ".join(parts) or "No changes detected"
