"""
Password hashing with bcrypt.

bcrypt is CPU-bound; the async helpers run it in a worker thread so one
slow hash never stalls other requests on the event loop.
"""

import asyncio

import bcrypt


class PasswordHasher:
    """Salted, adaptive password hashing with a fixed cost factor."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        # Compared against when the email is unknown, so a miss costs the
        # same as a wrong password.
        self._dummy_hash = self.hash("book-tracker-timing-dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext password."""
        return bcrypt.hashpw(
            plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            # over-long password or corrupt stored hash
            return False

    async def hash_async(self, plain: str) -> str:
        return await asyncio.to_thread(self.hash, plain)

    async def verify_async(self, plain: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify, plain, hashed)

    async def burn_time(self, plain: str) -> None:
        """Run a comparison against the dummy hash and discard the result."""
        await self.verify_async(plain, self._dummy_hash)
