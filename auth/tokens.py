"""
auth/tokens.py -- Bearer token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the configured token
       secret and carry username, id, iat and exp. Verification needs only the
       shared secret, no key lookup.

  Verification returns None on any failure -- bad signature, malformed
       structure, expired, or missing claims all look the same to the caller.
       Distinguishing them would tell an attacker which part of a forged token
       to fix. The route layer turns None into 401.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone

from jose import JWTError, jwt

from auth.models import CredentialConfig, TokenPayload

_ALGORITHM = "HS256"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class TokenIssuer:
    """Mint and check signed, time-bounded bearer tokens."""

    def __init__(self, config: CredentialConfig) -> None:
        self._secret = config.token_secret
        self._lifetime = config.token_lifetime

    def issue(self, user_id: int, username: str, now: datetime | None = None) -> str:
        """Encode a signed JWT for the given identity.

        Args:
            user_id:  Repository-assigned user id ("id" claim).
            username: Username ("username" claim).
            now:      Issue time. Defaults to the current UTC time; tests pass
                      a past time to mint an already-expired token.
        """
        issued = now or datetime.now(timezone.utc)
        iat = calendar.timegm(issued.utctimetuple())
        exp = iat + int(self._lifetime.total_seconds())
        payload = {
            "username": username,
            "id": user_id,
            "iat": iat,
            "exp": exp,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenPayload | None:
        """Decode and verify a JWT. Returns the payload or None on any failure."""
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        username = claims.get("username")
        user_id = claims.get("id")
        iat = claims.get("iat")
        exp = claims.get("exp")
        if not isinstance(username, str) or not _is_int(user_id) or not _is_int(iat) or not _is_int(exp):
            return None
        return TokenPayload(username=username, user_id=user_id, issued_at=iat, expires_at=exp)
