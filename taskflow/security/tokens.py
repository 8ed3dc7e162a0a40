from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims carried by an access token."""

    id: str
    username: str


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and verify signed, time-limited identity tokens (JWT).

    Built once at startup from settings; holds no mutable state afterwards.
    Expiry is absolute, there is no refresh.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.audience = audience
        self.issuer = issuer

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_EXPIRE_MIN,
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )

    def issue(self, user_id: str, username: str) -> str:
        """Return a signed token for the user, valid for `expire_minutes`."""
        now = _now_utc()
        payload: Dict[str, Any] = {
            "sub": user_id,
            "id": user_id,
            "username": username,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        if self.audience:
            payload["aud"] = self.audience
        if self.issuer:
            payload["iss"] = self.issuer
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenIdentity:
        """Decode and check a token; raise AuthError on any failure."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as exc:
            logger.info("token rejected reason=%s", exc)
            raise AuthError("Invalid token") from exc

        user_id = payload.get("id") or payload.get("sub")
        username = payload.get("username")
        if not user_id or username is None:
            raise AuthError("Invalid token")
        return TokenIdentity(id=str(user_id), username=str(username))
