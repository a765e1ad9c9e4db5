"""
auth/passwords.py -- One-way password hashing (bcrypt).

bcrypt is used directly rather than through passlib: passlib's wrap-bug probe
feeds bcrypt 4.x a >72-byte password, which it now rejects. Each hash carries
its own random salt; checkpw compares digests in constant time.

bcrypt only looks at the first 72 bytes of a password. Older releases silently
drop the rest, so two passwords sharing a 72-byte prefix would verify against
each other. Longer passwords are therefore refused: hash() raises ValueError
and verify() returns False. Callers check accepts() first.
"""

from __future__ import annotations

import bcrypt

MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")


class PasswordHasher:
    """hash() / verify() contract over bcrypt with a configurable cost."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Computed once so verify_dummy() costs the same as a real check.
        self._dummy_hash = self.hash("studytube_timing_dummy")

    @staticmethod
    def accepts(plain: str) -> bool:
        """True if plain fits in bcrypt's 72-byte input window."""
        return len(_encode(plain)) <= MAX_PASSWORD_BYTES

    def hash(self, plain: str) -> str:
        if not self.accepts(plain):
            raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed.

        Malformed digests and over-long passwords verify as False.
        """
        if not self.accepts(plain):
            return False
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, plain: str) -> bool:
        """Burn one verification against a fixed hash; always False.

        Called when the account does not exist so that response time does not
        reveal whether an email is registered.
        """
        self.verify(plain, self._dummy_hash)
        return False
