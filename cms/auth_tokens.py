from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import bcrypt
from fastapi import Request
from jose import JWTError, jwt

from cms.config import Settings, dlog
from cms.errors import InvalidCredentialsError, InvalidTokenError, MissingTokenError


ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)
ADMIN_ROLE = "admin"
ISSUER = "cms-backend"


@dataclass(frozen=True)
class Credential:
    token: str
    username: str
    role: str
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "tokenType": "Bearer",
            "expiresIn": int(TOKEN_TTL.total_seconds()),
            "expiresAt": self.expires_at.isoformat(),
            "user": {"username": self.username, "role": self.role},
        }


class AuthGate:
    """Single fixed admin identity; stateless signed tokens.

    There is no revocation list, so logout is left to the client.
    """

    def __init__(
        self,
        *,
        secret: str,
        username: str,
        password: str | None = None,
        password_hash: str | None = None,
        ttl: timedelta = TOKEN_TTL,
    ) -> None:
        self._secret = secret
        self.username = username
        self._password = password
        self._password_hash = password_hash
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthGate":
        return cls(
            secret=settings.jwt_secret,
            username=settings.admin_username,
            password=settings.admin_password,
            password_hash=settings.admin_password_hash,
        )

    def _verify_password(self, provided: str) -> bool:
        if self._password_hash:
            try:
                return bcrypt.checkpw(provided.encode("utf-8"), self._password_hash.encode("utf-8"))
            except ValueError:
                return False
        if self._password is not None:
            return hmac.compare_digest(self._password.encode("utf-8"), (provided or "").encode("utf-8"))
        return False

    def login(self, username: str, password: str) -> Credential:
        user_ok = hmac.compare_digest(self.username.encode("utf-8"), (username or "").encode("utf-8"))
        if not user_ok or not self._verify_password(password or ""):
            dlog("auth_login_failed", {"username": username})
            raise InvalidCredentialsError()
        return self.issue(self.username)

    def issue(self, username: str, role: str = ADMIN_ROLE) -> Credential:
        now = datetime.now(timezone.utc)
        expires_at = now + self.ttl
        claims = {
            "sub": username,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "iss": ISSUER,
        }
        token = jwt.encode(claims, self._secret, algorithm=ALGORITHM)
        dlog("auth_token_issued", {"username": username, "expires_at": expires_at.isoformat()})
        return Credential(token=token, username=username, role=role, expires_at=expires_at)

    def verify(self, token: str | None) -> Dict[str, str]:
        if not token:
            raise MissingTokenError()
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM], issuer=ISSUER)
        except JWTError as e:
            dlog("auth_token_rejected", f"{type(e).__name__}: {e}")
            raise InvalidTokenError() from e
        username = claims.get("sub")
        role = claims.get("role")
        if not username or not role:
            raise InvalidTokenError()
        return {"username": username, "role": role}


def bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


def require_admin(gate: AuthGate) -> Callable[[Request], Dict[str, str]]:
    """FastAPI dependency guarding mutating routes.

    Raises MissingTokenError / InvalidTokenError; the app maps them to 401/403.
    """

    def dependency(request: Request) -> Dict[str, str]:
        identity = gate.verify(bearer_token(request))
        if identity.get("role") != ADMIN_ROLE:
            raise InvalidTokenError("Admin role required")
        return identity

    return dependency
