"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's wrap-bug probe
hashes a password longer than 72 bytes, which bcrypt 4.x rejects. Inputs over
72 bytes are refused by auth/validation.py before they get here.

The dummy hash lets the login path run one full verify even when the
identifier matches no account, so response time does not reveal whether an
account exists.
"""

from __future__ import annotations

import bcrypt


class PasswordHasher:
    """Adaptive one-way hashing with a configurable work factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("Aa1!aaaa")
        hasher.verify("Aa1!aaaa", digest)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("companyhub_timing_dummy")

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed. A malformed digest is a mismatch."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one verify's worth of work against the dummy hash."""
        self.verify(plain, self._dummy_hash)
