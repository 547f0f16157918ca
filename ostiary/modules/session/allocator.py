"""
Session identifier allocation.

The existence check and the later persist are not atomic. A collision
between them is benign: the write simply lands on a fresh random id.
"""

import logging
import uuid
from typing import Awaitable, Callable, Optional

from ...exceptions import AllocationExhausted

MAX_ATTEMPTS = 5

ExistsCheck = Callable[[str], Awaitable[bool]]


class IdentifierAllocator:
    """Produces a UUID v4 not currently used by a live record."""

    def __init__(
        self,
        exists: ExistsCheck,
        generator: Callable[[], str] = lambda: str(uuid.uuid4()),
        max_attempts: int = MAX_ATTEMPTS,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize allocator.

        Args:
            exists: Async callable returning True if an id is already taken
            generator: Candidate id source (UUID v4 strings)
            max_attempts: Candidates to try before giving up
            logger: Injected logger
        """
        self.exists = exists
        self.generator = generator
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger("ostiary.session.allocator")

    async def allocate(self) -> str:
        """
        Allocate a session identifier.

        Returns:
            Identifier with no live record behind it

        Raises:
            AllocationExhausted: If every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator()
            if not await self.exists(candidate):
                return candidate
            self.logger.warning(
                f"Session identifier collision on attempt {attempt}/{self.max_attempts}"
            )

        # Random UUIDs should never collide this often; the random source is suspect
        self.logger.critical(
            f"Unable to allocate a unique session identifier after {self.max_attempts} attempts"
        )
        raise AllocationExhausted(
            f"Unable to define a unique UUID for new session after {self.max_attempts} attempts"
        )
