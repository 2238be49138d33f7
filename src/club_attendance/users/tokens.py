from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from ..core.constants import DEFAULT_JWT_REFRESH_EXPIRE_DAYS
from ..core.exceptions import AuthenticationError
from .model import User

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: str


class TokenCodec:
    """Issue and verify bearer access tokens and refresh tokens (HS256 JWT).

    Refresh tokens are signed with their own secret, so an access token is
    never accepted where a refresh token is expected (and the reverse).
    """

    def __init__(
        self,
        secret: str,
        *,
        expire_minutes: int,
        refresh_secret: Optional[str] = None,
        refresh_expire_days: int = DEFAULT_JWT_REFRESH_EXPIRE_DAYS,
    ):
        self._secret = secret
        self._expire = timedelta(minutes=int(expire_minutes))
        self._refresh_secret = refresh_secret or f"{secret}:refresh"
        self._refresh_expire = timedelta(days=int(refresh_expire_days))

    def issue(self, user: User, *, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.user_id),
            "role": user.role.value,
            "iat": issued_at,
            "exp": issued_at + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def issue_refresh(self, user: User, *, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.user_id),
            "jti": uuid.uuid4().hex,
            "iat": issued_at,
            "exp": issued_at + self._refresh_expire,
        }
        return jwt.encode(payload, self._refresh_secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        return self._decode(
            token,
            self._secret,
            expired="Token expired",
            invalid="Not authorized, invalid token",
        )

    def decode_refresh(self, token: str) -> TokenClaims:
        return self._decode(
            token,
            self._refresh_secret,
            expired="Refresh token expired, please login again",
            invalid="Invalid refresh token",
        )

    @staticmethod
    def _decode(token: str, secret: str, *, expired: str, invalid: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise AuthenticationError(expired)
        except JWTError:
            raise AuthenticationError(invalid)

        sub = payload.get("sub")
        if not sub or not str(sub).isdigit():
            raise AuthenticationError(invalid)
        return TokenClaims(user_id=int(sub), role=str(payload.get("role", "")))
