"""
Timeout and retry handling for repository fetches.

Every data-store read is a suspension point; this is the only place where
they get a deadline and a retry budget.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError

from phasebudget.core.config import settings
from phasebudget.core.exceptions import TransientFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (asyncio.TimeoutError, ConnectionError, OSError)


def is_transient(exc: BaseException) -> bool:
    """Database errors only count when the connection itself was lost."""
    if isinstance(exc, DBAPIError):
        return exc.connection_invalidated
    return isinstance(exc, TRANSIENT_ERRORS)


@dataclass(frozen=True)
class FetchPolicy:
    timeout_seconds: float = 10.0
    retries: int = 2
    backoff_seconds: float = 0.2

    @classmethod
    def from_settings(cls) -> "FetchPolicy":
        return cls(
            timeout_seconds=settings.BUDGET_FETCH_TIMEOUT_SECONDS,
            retries=settings.BUDGET_FETCH_RETRIES,
            backoff_seconds=settings.BUDGET_RETRY_BACKOFF_SECONDS,
        )

    async def run(self, operation: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """
        Awaits ``fetch()`` under the timeout, retrying transient failures.
        Raises TransientFetchError once the attempts are used up.
        """
        attempts = max(self.retries, 0) + 1
        last_error: BaseException | None = None

        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(fetch(), timeout=self.timeout_seconds)
            except Exception as exc:
                if not is_transient(exc):
                    raise
                last_error = exc
                if attempt < attempts:
                    logger.warning(
                        "%s failed (attempt %d/%d): %r, retrying",
                        operation, attempt, attempts, exc,
                    )
                    await asyncio.sleep(self.backoff_seconds * attempt)

        logger.error("%s failed after %d attempt(s): %r", operation, attempts, last_error)
        raise TransientFetchError(operation, attempts, last_error) from last_error
