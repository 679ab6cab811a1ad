# backend/trip_planner/core/security.py

import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional

from trip_planner.core.config_loader import settings
from trip_planner.core.errors import Unauthorized
from trip_planner.core.logger import get_logger

log = get_logger("auth")


# ---------------------------------------------------------------------------
# JWT CREATION (local tooling / tests; production tokens come from the
# identity provider and share its signing secret)
# ---------------------------------------------------------------------------
def create_access_token(subject: str, expires_minutes: int = 7 * 24 * 60) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now,
    }
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# JWT VERIFY
# ---------------------------------------------------------------------------
def decode_token(token: str) -> Optional[dict]:
    kwargs = {"algorithms": [settings.JWT_ALGORITHM]}
    if settings.JWT_AUDIENCE:
        kwargs["audience"] = settings.JWT_AUDIENCE
    else:
        kwargs["options"] = {"verify_aud": False}

    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, **kwargs)
    except jwt.PyJWTError as e:
        log.info(f"Rejected bearer token: {e}")
        return None


class AuthVerifier:
    """Bearer-token verifier: `Authorization` header in, user id out."""

    def verify(self, authorization: Optional[str]) -> str:
        if not authorization:
            raise Unauthorized("Missing Authorization header", "Cabeçalho de autorização obrigatório")
        if not authorization.startswith("Bearer "):
            raise Unauthorized("Authorization header is not a bearer token")

        payload = decode_token(authorization.split(" ", 1)[1].strip())
        if not payload or not payload.get("sub"):
            raise Unauthorized("Invalid or expired token")
        return str(payload["sub"])

    def verify_optional(self, authorization: Optional[str]) -> Optional[str]:
        """Anonymous callers get None; a present but invalid token is still rejected."""
        if not authorization:
            return None
        return self.verify(authorization)
