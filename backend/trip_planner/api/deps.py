# backend/trip_planner/api/deps.py

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from trip_planner.core.security import AuthVerifier
from trip_planner.db.storage import SQLiteStorage
from trip_planner.services.attractions_cache import AttractionsCache
from trip_planner.services.llm_providers import ProviderDispatch


# -----------------------------
# Collaborators (one per process; tests override these)
# -----------------------------
@lru_cache
def get_storage() -> SQLiteStorage:
    return SQLiteStorage()


@lru_cache
def get_dispatch() -> ProviderDispatch:
    return ProviderDispatch.from_settings()


@lru_cache
def get_cache() -> AttractionsCache:
    return AttractionsCache()


@lru_cache
def get_auth() -> AuthVerifier:
    return AuthVerifier()


# -----------------------------
# Identity
# -----------------------------
def get_current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthVerifier = Depends(get_auth),
) -> str:
    return auth.verify(authorization)


def get_optional_user(
    authorization: Optional[str] = Header(None),
    auth: AuthVerifier = Depends(get_auth),
) -> Optional[str]:
    return auth.verify_optional(authorization)
