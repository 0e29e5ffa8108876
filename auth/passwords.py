"""
auth/passwords.py -- Peppered bcrypt hashing and multi-pepper verification.

Security design decisions:
  bcrypt: used directly (no passlib wrapper). Each hash() call generates a
       fresh salt with bcrypt.gensalt(rounds=cost_factor); the salt and cost
       are embedded in the returned modular-crypt string, so verification
       needs nothing but the digest itself.

  Peppers: a server-side secret is prepended to the password before hashing.
       New digests always use the primary pepper (peppers[0]). verify() tries
       every configured pepper in order, current first, so digests made under
       a retired pepper keep working until rotation rewrites them.

  72-byte limit: bcrypt only consumes the first 72 bytes of its input.
       Current bcrypt releases raise ValueError past that point instead of
       truncating, so the peppered secret is truncated here explicitly. hash()
       and verify() truncate identically, which keeps them consistent for any
       input length. CredentialConfig caps each pepper at MAX_PEPPER_BYTES, so
       at least 40 bytes of the window always belong to the password.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.models import CredentialConfig, VerificationOutcome

logger = logging.getLogger("pepperauth.auth")

_BCRYPT_MAX_BYTES = 72


def _peppered(pepper: str, plain: str) -> bytes:
    return (pepper + plain).encode("utf-8")[:_BCRYPT_MAX_BYTES]


class CredentialHasher:
    """Derive and check password digests under the configured peppers.

    Usage:
        hasher = CredentialHasher(config)
        digest = hasher.hash("s3cret1")
        outcome = hasher.verify("s3cret1", digest)
        outcome.matched, outcome.pepper_used
    """

    def __init__(self, config: CredentialConfig) -> None:
        self._config = config

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of primary pepper + plaintext.

        Two calls with the same input return different digests (fresh salt).
        """
        salt = bcrypt.gensalt(rounds=self._config.cost_factor)
        return bcrypt.hashpw(_peppered(self._config.primary_pepper, plain), salt).decode("utf-8")

    def verify(self, plain: str, digest: str | None) -> VerificationOutcome:
        """Check plaintext against a stored digest, trying each pepper in order.

        An empty or missing digest short-circuits to no match without calling
        bcrypt. A digest bcrypt cannot parse is also reported as no match.
        """
        if not digest:
            return VerificationOutcome(matched=False)

        hashed = digest.encode("utf-8")
        for pepper in self._config.peppers:
            try:
                if bcrypt.checkpw(_peppered(pepper, plain), hashed):
                    return VerificationOutcome(matched=True, pepper_used=pepper)
            except ValueError:
                # Malformed digest; every pepper would fail the same way.
                logger.debug("Stored digest is not a valid bcrypt hash")
                return VerificationOutcome(matched=False)
        return VerificationOutcome(matched=False)
