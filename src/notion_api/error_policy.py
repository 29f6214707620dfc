"""Single retry/skip policy for remote writes.

Every remote write of the migration goes through ErrorPolicy.run(). Rate
limits are retried with backoff; any other failure is logged with the
operation, source path and destination id, recorded, and then either
swallowed (the caller continues with the next sibling or subtree) or
re-raised as RemoteWriteError when the caller asked to decide a fallback.
Configuration errors always propagate.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from .errors import FatalConfigError, RemoteWriteError
from .retry_logic import DEFAULT_MAX_RETRIES, retry_on_rate_limit

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FailureRecord:
    """A remote write that was given up on.

    Attributes:
        operation: Name of the failed operation (e.g. "append_blocks")
        source_path: Source document the write belonged to
        destination_id: Notion id the write targeted
        error: Text of the final error
    """
    operation: str
    source_path: Optional[str]
    destination_id: Optional[str]
    error: str


class ErrorPolicy:
    """Retry-then-skip policy shared by the walker and the materializer.

    Attributes:
        failures: Every failure recorded so far, in order

    Example:
        >>> policy = ErrorPolicy()
        >>> ids = await policy.run("append_blocks", client.append_blocks, page_id, batch,
        ...                        source_path="/docs/a.md", destination_id=page_id)
        >>> if ids is None:
        ...     pass  # logged and skipped
    """

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES):
        self._max_retries = max_retries
        self.failures: List[FailureRecord] = []

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    async def run(
        self,
        operation: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        source_path: Optional[str] = None,
        destination_id: Optional[str] = None,
        reraise: bool = False,
        **kwargs: Any,
    ) -> Optional[T]:
        """Run a remote write under the policy.

        Args:
            operation: Operation name used in logs and failure records
            func: Coroutine function performing the write
            *args: Positional arguments for ``func``
            source_path: Source document, for context
            destination_id: Target Notion id, for context
            reraise: Raise RemoteWriteError instead of returning None on failure
            **kwargs: Keyword arguments for ``func``

        Returns:
            The result of ``func``, or None when the write was skipped

        Raises:
            FatalConfigError: Always propagated
            RemoteWriteError: On failure when ``reraise`` is set
        """
        try:
            return await retry_on_rate_limit(
                func, *args, max_retries=self._max_retries, **kwargs
            )
        except FatalConfigError:
            raise
        except Exception as e:
            self.failures.append(FailureRecord(
                operation=operation,
                source_path=source_path,
                destination_id=destination_id,
                error=str(e),
            ))
            logger.error(
                f"{operation} failed for {source_path or '-'} "
                f"(destination: {destination_id or '-'}): {e}"
            )
            if reraise:
                raise RemoteWriteError(operation, source_path, destination_id, e) from e
            return None
