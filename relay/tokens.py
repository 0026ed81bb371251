import time
from typing import Optional

import jwt

from .errors import InvalidToken


ALGORITHM = "HS256"


def bearer_token(header: Optional[str]) -> str:
    """Token part of an `Authorization: Bearer <token>` value, or ""."""
    header = header or ""
    return header[7:] if header.startswith("Bearer ") else ""


class TokenIssuer:
    """
    Issues and verifies bearer tokens binding a client id.

    The signing secret is handed in at construction so that separate
    applications (and tests) never share a key.
    """

    def __init__(self, secret: str, ttl_seconds: Optional[int] = None) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def issue(self, client_id: str) -> str:
        claims: dict = {"id": client_id}
        if self.ttl_seconds is not None:
            claims["exp"] = int(time.time()) + self.ttl_seconds
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str:
        if not token:
            raise InvalidToken("missing bearer token")
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise InvalidToken("token expired")
        except jwt.InvalidTokenError:
            raise InvalidToken()

        client_id = claims.get("id")
        if not isinstance(client_id, str) or not client_id:
            raise InvalidToken()
        return client_id
