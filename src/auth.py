"""Caller identity.

Sessions are issued by the upstream auth layer, which forwards the
authenticated GitHub user id in ``X-User-Id``.
"""

from __future__ import annotations

from fastapi import Header, HTTPException


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
