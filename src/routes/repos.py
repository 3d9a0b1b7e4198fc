"""Connect and disconnect GitHub repositories.

Connecting is quota gated. Webhook registration and deletion on GitHub are
best effort: a failure is logged and never undoes the database change.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user_id
from src.config import settings
from src.database import get_db
from src.models.microservice import Microservice
from src.models.repository import Repository
from src.models.user import User
from src.schemas.repos import ConnectRepoRequest, ConnectRepoResponse, RepositoryResponse
from src.usage_limits import UsageType, can_user_add, limit_exceeded_message
from tracker.github_client import GitHubClient
from tracker.manifest import ManifestError, parse_manifest, service_name_from_path
from tracker.signature import generate_webhook_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/repos", tags=["repos"])


def github_client_for(token: str) -> GitHubClient:
    return GitHubClient(token)


async def _load_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.access_token:
        raise HTTPException(status_code=400, detail="GitHub access token not found")
    return user


async def _register_manifests(
    db: AsyncSession,
    client: GitHubClient,
    user_id: str,
    repository: Repository,
) -> tuple[int, list[str]]:
    """Create a Microservice per manifest found; stops at the plan ceiling."""
    created = 0
    errors: list[str] = []
    paths = await client.find_manifests(
        repository.owner, repository.repo_name, settings.manifest_filename
    )
    for path in paths:
        decision = await can_user_add(db, user_id, UsageType.MICROSERVICES)
        if not decision.allowed:
            errors.append(limit_exceeded_message(UsageType.MICROSERVICES, decision.usage.plan))
            break
        try:
            file = await client.get_file_content(repository.owner, repository.repo_name, path)
            if file is None:
                errors.append(f"File not found: {path}")
                continue
            manifest = parse_manifest(file.content)
        except ManifestError as exc:
            errors.append(f"Invalid manifest {path}: {exc}")
            continue
        except Exception as exc:
            logger.warning("Failed to read %s from %s: %s", path, repository.full_name, exc)
            errors.append(f"Failed to read {path}")
            continue

        db.add(Microservice(
            repository_id=repository.id,
            service_name=manifest.service_name or service_name_from_path(path),
            manifest_path=path,
            status=manifest.status.value,
            current_task=manifest.current_task,
            progress=manifest.progress,
            last_update=manifest.last_update,
            next_steps=manifest.next_steps,
        ))
        await db.commit()
        created += 1
    return created, errors


@router.post("", response_model=ConnectRepoResponse, status_code=201)
async def connect_repository(
    body: ConnectRepoRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Track a repository: store it, register the webhook, and import its manifests."""
    user = await _load_user(db, user_id)

    decision = await can_user_add(db, user_id, UsageType.REPOSITORIES)
    if not decision.allowed:
        raise HTTPException(
            status_code=403,
            detail=limit_exceeded_message(UsageType.REPOSITORIES, decision.usage.plan),
        )

    client = github_client_for(user.access_token)
    try:
        try:
            gh_repo = await client.get_repository(body.owner, body.repo)
        except httpx.HTTPError as exc:
            logger.warning("GitHub lookup of %s/%s failed: %s", body.owner, body.repo, exc)
            raise HTTPException(status_code=502, detail="Could not fetch repository from GitHub")

        existing = await db.execute(
            select(Repository).where(Repository.github_repo_id == gh_repo["id"])
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(status_code=409, detail="Repository already connected")

        repository = Repository(
            user_id=user_id,
            github_repo_id=gh_repo["id"],
            owner=gh_repo.get("owner", {}).get("login", body.owner),
            repo_name=gh_repo.get("name", body.repo),
            full_name=gh_repo.get("full_name", f"{body.owner}/{body.repo}"),
            webhook_secret=generate_webhook_secret(),
        )
        db.add(repository)
        await db.commit()
        await db.refresh(repository)

        webhook_created = False
        if body.setup_webhook:
            url = f"{settings.public_url.rstrip('/')}{settings.api_prefix}/webhook/{repository.id}"
            try:
                hook = await client.create_webhook(
                    repository.owner, repository.repo_name, url, repository.webhook_secret
                )
                repository.webhook_id = hook.get("id")
                await db.commit()
                webhook_created = True
            except Exception as exc:
                # The user can still add the webhook by hand.
                logger.warning("Failed to create webhook for %s: %s", repository.full_name, exc)

        try:
            created, errors = await _register_manifests(db, client, user_id, repository)
        except Exception as exc:
            logger.warning("Manifest scan failed for %s: %s", repository.full_name, exc)
            created, errors = 0, ["Failed to scan repository for manifests"]
    finally:
        await client.close()

    await db.refresh(repository)
    return ConnectRepoResponse(
        repository=RepositoryResponse.model_validate(repository),
        webhook_created=webhook_created,
        microservices_created=created,
        errors=errors,
    )


@router.delete("/{repository_id}")
async def disconnect_repository(
    repository_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Stop tracking a repository; its microservices and suggestions are deleted with it."""
    repository = await db.get(Repository, repository_id)
    if repository is None:
        raise HTTPException(status_code=404, detail=f"Repository {repository_id} not found")
    if repository.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    user = await db.get(User, user_id)
    if repository.webhook_id and user is not None and user.access_token:
        client = github_client_for(user.access_token)
        try:
            await client.delete_webhook(
                repository.owner, repository.repo_name, repository.webhook_id
            )
        except Exception as exc:
            logger.warning("Failed to delete webhook for %s: %s", repository.full_name, exc)
        finally:
            await client.close()

    await db.delete(repository)
    await db.commit()
    return {"success": True, "message": "Repository disconnected"}
