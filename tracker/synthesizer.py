"""Turn tagged manifest commits into pending CommitSuggestion rows."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.commit_suggestion import CommitSuggestion
from src.models.microservice import Microservice
from tracker.extractor import ManifestChangeEvent
from tracker.tags import ParsedTags, parse_commit_tags, summarize_tags

logger = logging.getLogger(__name__)


@dataclass
class PriorManifest:
    status: str | None = None
    next_steps: list[str] = field(default_factory=list)


@dataclass
class SynthesisResult:
    created: list[str] = field(default_factory=list)      # suggestion ids
    duplicates: int = 0
    skipped: list[str] = field(default_factory=list)      # unresolvable manifest paths
    errors: list[str] = field(default_factory=list)
    store_failed: bool = False

    @property
    def suggestions_created(self) -> int:
        return len(self.created)


def build_manifest_patch(
    tags: ParsedTags,
    commit_timestamp: datetime,
    prior: PriorManifest | None = None,
) -> dict:
    """Build the partial manifest a commit asserts.

    Only fields carried by the tags appear, plus ``lastUpdate``. New next
    steps are appended to the prior ones without duplicates.
    """
    prior = prior or PriorManifest()
    patch: dict = {}

    if tags.status:
        patch["status"] = tags.status

    if tags.next_steps:
        merged = list(dict.fromkeys([*prior.next_steps, *tags.next_steps]))
        patch["nextSteps"] = merged
        if tags.status and tags.status != prior.status:
            patch["currentTask"] = merged[0]

    patch["lastUpdate"] = commit_timestamp.isoformat()
    return patch


def _insert_ignoring_duplicates(db: AsyncSession):
    """Return a dialect-specific INSERT supporting ON CONFLICT DO NOTHING."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"insert-or-ignore not supported for {dialect}")
    return insert(CommitSuggestion.__table__)


async def find_microservice(
    db: AsyncSession, repository_id: str, manifest_path: str
) -> Microservice | None:
    result = await db.execute(
        select(Microservice).where(
            Microservice.repository_id == repository_id,
            Microservice.manifest_path == manifest_path,
        )
    )
    return result.scalar_one_or_none()


async def create_suggestion(
    db: AsyncSession,
    microservice_id: str,
    commit_sha: str,
    commit_message: str,
    tags: ParsedTags,
    patch: dict,
) -> str | None:
    """Insert a pending suggestion; returns its id, or None if one already exists.

    Uniqueness of (microservice_id, commit_sha) is enforced by the database so
    concurrent deliveries of the same commit race safely.
    """
    stmt = (
        _insert_ignoring_duplicates(db)
        .values(
            microservice_id=microservice_id,
            commit_sha=commit_sha,
            commit_message=commit_message,
            parsed_status=tags.status,
            parsed_next_steps=tags.next_steps or None,
            suggested_manifest=patch,
            is_applied=False,
        )
        .on_conflict_do_nothing(index_elements=["microservice_id", "commit_sha"])
    )
    result = await db.execute(stmt)
    await db.commit()
    if result.rowcount != 1:
        return None

    created = await db.execute(
        select(CommitSuggestion.id).where(
            CommitSuggestion.microservice_id == microservice_id,
            CommitSuggestion.commit_sha == commit_sha,
        )
    )
    return created.scalar_one()


async def synthesize_suggestions(
    db: AsyncSession,
    repository_id: str,
    events: Iterable[ManifestChangeEvent],
) -> SynthesisResult:
    """Create suggestions for each tagged (commit, manifest path) pair.

    Failures are collected per commit; one bad commit never stops the batch.
    """
    outcome = SynthesisResult()

    for event in events:
        commit = event.commit
        short_sha = commit.id[:7]
        tags = parse_commit_tags(commit.message)
        if tags.is_empty:
            logger.debug("Commit %s touches a manifest but carries no tags", short_sha)
            continue

        for path in event.matching_paths:
            try:
                microservice = await find_microservice(db, repository_id, path)
                if microservice is None:
                    logger.warning(
                        "No microservice registered for %s (commit %s), skipping",
                        path, short_sha,
                    )
                    outcome.skipped.append(path)
                    continue

                service_name = microservice.service_name
                prior = PriorManifest(
                    status=microservice.status,
                    next_steps=list(microservice.next_steps or []),
                )
                patch = build_manifest_patch(tags, commit.timestamp, prior)
                suggestion_id = await create_suggestion(
                    db, microservice.id, commit.id, commit.message, tags, patch
                )
                if suggestion_id is None:
                    outcome.duplicates += 1
                    logger.info(
                        "Suggestion for %s @ %s already exists", service_name, short_sha
                    )
                else:
                    outcome.created.append(suggestion_id)
                    logger.info(
                        "Suggestion %s created for %s from commit %s (%s)",
                        suggestion_id, service_name, short_sha, summarize_tags(tags),
                    )
            except SQLAlchemyError as exc:
                await db.rollback()
                outcome.store_failed = True
                outcome.errors.append(f"Error processing {path} @ {short_sha}: record store unavailable")
                logger.error("Record store failure for %s @ %s: %s", path, short_sha, exc)
            except Exception as exc:
                await db.rollback()
                outcome.errors.append(f"Error processing {path} @ {short_sha}: {type(exc).__name__}")
                logger.exception("Failed to synthesize suggestion for %s @ %s", path, short_sha)

    return outcome
