"""Password hashing helpers."""
from __future__ import annotations

import anyio
import anyio.to_thread
from passlib.context import CryptContext

from .config import get_settings


class PasswordHasher:
    """Hash and verify user passwords using salted bcrypt.

    ``hash_async`` moves the CPU-bound work onto a worker thread; the
    ``CapacityLimiter`` caps how many hashes run at once.
    """

    def __init__(self, rounds: int | None = None, max_workers: int | None = None) -> None:
        if rounds is None or max_workers is None:
            settings = get_settings()
            rounds = settings.password_hash_rounds if rounds is None else rounds
            max_workers = settings.password_hash_workers if max_workers is None else max_workers
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        self._limiter: anyio.CapacityLimiter | None = None
        self._max_workers = max_workers

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            return False

    async def hash_async(self, password: str) -> str:
        # CapacityLimiter binds to the running event loop, so create it lazily.
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self._max_workers)
        return await anyio.to_thread.run_sync(self.hash, password, limiter=self._limiter)
