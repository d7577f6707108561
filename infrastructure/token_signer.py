"""Session token signer (JWT via PyJWT).

RS256 when a key pair is configured, HS256 with JWT_SECRET otherwise.
issue() stamps iss/aud/iat/exp on top of the caller's claims; verify()
returns the decoded claims or None for any invalid, expired or foreign token.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from config import JWTSettings
from shared.logging import get_logger

log = get_logger(__name__)


class TokenSigner:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verifying_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._signing_key = settings.jwt_secret
            self._verifying_key = settings.jwt_secret
            self._algorithm = "HS256"

    @property
    def default_ttl_seconds(self) -> int:
        return self._settings.access_token_ttl_seconds

    def issue(self, claims: dict[str, Any], ttl_seconds: Optional[int] = None) -> str:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
        }
        return jwt.encode(payload, self._signing_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[dict[str, Any]]:
        try:
            return jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            log.info("session_token_expired")
            return None
        except jwt.InvalidTokenError as e:
            log.info("session_token_invalid", error_type=type(e).__name__)
            return None
