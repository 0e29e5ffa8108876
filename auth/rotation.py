"""
auth/rotation.py -- Pepper rotation policy.

After a successful login, a digest that matched under a retired pepper is
re-derived with the primary pepper and written back. Over time every live
digest converges onto peppers[0], after which an operator can drop the
retired pepper from PEPPERS.

The rewrite is best-effort. A failure is logged here and never changes the
login outcome the caller sees.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.models import CredentialConfig, VerificationOutcome
from auth.store import RepositoryError

if TYPE_CHECKING:
    from auth.passwords import CredentialHasher
    from auth.store import UserRepository

logger = logging.getLogger("pepperauth.auth.rotation")


def needs_rotation(outcome: VerificationOutcome, config: CredentialConfig) -> bool:
    """True when the password matched, but not under the primary pepper."""
    return outcome.matched and outcome.pepper_used != config.primary_pepper


def rotate_digest(hasher: CredentialHasher, repository: UserRepository, user_id: int, plain: str) -> bool:
    """Re-hash under the primary pepper and persist. Returns True on success."""
    digest = hasher.hash(plain)
    try:
        updated = repository.update_digest(user_id, digest)
    except RepositoryError:
        updated = False
    if not updated:
        logger.warning("Pepper rotation failed for user_id=%s; digest left unchanged", user_id)
        return False
    logger.info("Rotated digest onto primary pepper for user_id=%s", user_id)
    return True
