"""Find the commits in a push that touch manifest files."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from posixpath import basename

from tracker.events import Commit

DEFAULT_MANIFEST_FILENAME = "vibe.json"


@dataclass(frozen=True)
class ManifestChangeEvent:
    commit: Commit
    matching_paths: tuple[str, ...]


def is_manifest_path(path: str, manifest_filename: str = DEFAULT_MANIFEST_FILENAME) -> bool:
    """Exact basename match; no globbing."""
    return basename(path) == manifest_filename


def extract_manifest_changes(
    commits: Iterable[Commit],
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME,
) -> list[ManifestChangeEvent]:
    """Return manifest-touching commits in delivery order (oldest first)."""
    events = []
    for commit in commits:
        matches = tuple(
            path for path in commit.changed_paths()
            if is_manifest_path(path, manifest_filename)
        )
        if matches:
            events.append(ManifestChangeEvent(commit=commit, matching_paths=matches))
    return events
