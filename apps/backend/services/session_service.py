from __future__ import annotations

import secrets
import threading
import time
from typing import Optional

from jose import JWTError, jwt


ROLE_USER = "user"
ROLE_ADMIN = "admin"


class SessionService:
    def __init__(self, secret: str, *, algorithm: str = "HS256", ttl_seconds: int = 60 * 60 * 24) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = int(ttl_seconds)
        # jti -> unix time the token would have expired anyway
        self._revoked_tokens: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def create_session(self, subject: str | int, role: str) -> str:
        now = int(time.time())
        payload = {
            "sub": str(subject),
            "role": role,
            "iat": now,
            "exp": now + self._ttl_seconds,
            "jti": secrets.token_urlsafe(12),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def get_subject(self, token: str, role: str) -> Optional[str]:
        claims = self._decode(token)
        if claims is None or claims.get("role") != role:
            return None
        jti = claims.get("jti")
        with self._lock:
            self._prune_revoked()
            if jti in self._revoked_tokens:
                return None
        subject = claims.get("sub")
        return str(subject) if subject is not None else None

    def delete_session(self, token: str) -> None:
        claims = self._decode(token)
        if claims is None or not claims.get("jti"):
            return
        with self._lock:
            self._revoked_tokens[str(claims["jti"])] = float(claims.get("exp", time.time() + self._ttl_seconds))

    def _decode(self, token: str) -> Optional[dict]:
        if not token:
            return None
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None

    def _prune_revoked(self) -> None:
        now = time.time()
        expired = [jti for jti, until in self._revoked_tokens.items() if until <= now]
        for jti in expired:
            self._revoked_tokens.pop(jti, None)
