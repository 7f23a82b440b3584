"""
Error handler with retry logic for listing store fetches.

Implements exponential backoff, timeout escalation and failure diagnostics.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from datetime import datetime

from listing_search.config import FetchConfig


# Configure logging
logger = logging.getLogger(__name__)


class SearchError(Exception):
    """Base class for errors raised by the search engine."""


class DataUnavailable(SearchError):
    """The listing store could not be reached and no cached data exists.

    The message is safe to show to end users; the underlying failure is
    chained as __cause__.
    """

    retryable = True

    def __init__(self, message: str = "Listings are temporarily unavailable. Please try again."):
        super().__init__(message)
        self.message = message


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Maximum number of attempts
        initial_timeout_ms: Timeout of the first attempt in milliseconds
        timeout_multiplier: Multiplier for timeout escalation on each retry
        backoff_base_seconds: Delay before the first retry
    """
    max_retries: int = 2
    initial_timeout_ms: int = 10000
    timeout_multiplier: float = 1.5
    backoff_base_seconds: float = 0.5

    @classmethod
    def from_fetch_config(cls, fetch: FetchConfig) -> 'RetryConfig':
        return cls(
            max_retries=fetch.max_retries,
            initial_timeout_ms=fetch.timeout_ms,
            timeout_multiplier=fetch.timeout_multiplier,
            backoff_base_seconds=fetch.backoff_base_seconds,
        )

    def get_timeout(self, attempt: int) -> int:
        """
        Calculate timeout for a specific retry attempt.

        timeout = initial_timeout_ms * (timeout_multiplier ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Timeout value in milliseconds for the given attempt
        """
        return int(self.initial_timeout_ms * (self.timeout_multiplier ** attempt))

    def get_backoff_delay(self, attempt: int) -> float:
        """
        Calculate backoff delay before retry attempt.

        delay = backoff_base_seconds * (2 ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Delay in seconds before the retry attempt
        """
        return self.backoff_base_seconds * (2 ** attempt)


class ErrorHandler:
    """
    Error handler with retry logic and diagnostic capabilities.

    Attributes:
        config: Retry configuration
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        Attempts the operation up to max_retries times, with escalating timeouts
        and exponential backoff delays between attempts. If the operation takes
        a ``timeout_ms`` keyword argument it receives the escalated timeout.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            Exception: The last exception encountered if all retries are exhausted
        """
        last_exception = None
        attempts = max(1, self.config.max_retries)
        name = getattr(operation, '__name__', repr(operation))

        for attempt in range(attempts):
            try:
                logger.debug(f"Attempt {attempt + 1}/{attempts} for operation {name}")

                if 'timeout_ms' in kwargs:
                    kwargs['timeout_ms'] = self.config.get_timeout(attempt)

                return await operation(*args, **kwargs)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_exception = e

                self._log_error(
                    operation_name=name,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error=e,
                    kwargs=kwargs
                )

                if attempt == attempts - 1:
                    logger.error(
                        f"Operation {name} failed after {attempts} attempts. "
                        f"Final error: {str(e)}"
                    )
                    break

                backoff_delay = self.config.get_backoff_delay(attempt)
                logger.info(f"Waiting {backoff_delay:.1f}s before retry...")
                await asyncio.sleep(backoff_delay)

        raise last_exception

    def describe_fetch_failure(self, error: Exception) -> Dict[str, Any]:
        """
        Analyze a failed listing store fetch and suggest recovery steps.

        Args:
            error: The exception raised by the fetch

        Returns:
            Dictionary with error analysis and recovery suggestions
        """
        error_str = str(error).lower()

        diagnosis = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now().isoformat(),
            'recovery_suggestions': []
        }

        if isinstance(error, asyncio.TimeoutError) or 'timeout' in error_str or 'timed out' in error_str:
            diagnosis['recovery_suggestions'].extend([
                'Increase FETCH_TIMEOUT_MS',
                'Check the latency of the listing store',
            ])
        elif isinstance(error, (ConnectionError, OSError)) or 'connect' in error_str:
            diagnosis['recovery_suggestions'].extend([
                'Verify the listing store is running and reachable',
                'Check LISTING_STORE_URL / LISTING_DATA_PATH',
            ])
        elif isinstance(error, (KeyError, ValueError, TypeError)):
            diagnosis['recovery_suggestions'].extend([
                'Inspect the listing store records for missing or invalid fields',
            ])
        else:
            diagnosis['recovery_suggestions'].append('Check the listing store logs')

        return diagnosis

    def _log_error(
        self,
        operation_name: str,
        attempt: int,
        max_attempts: int,
        error: Exception,
        kwargs: dict
    ) -> None:
        """
        Log error with timestamp, context and diagnostic data.

        Args:
            operation_name: Name of the operation that failed
            attempt: Current attempt number
            max_attempts: Maximum number of attempts
            error: The exception that occurred
            kwargs: Keyword arguments passed to the operation
        """
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{max_attempts}",
            'error_type': type(error).__name__,
            'error_message': str(error),
            'kwargs': {k: str(v) for k, v in kwargs.items()} if kwargs else {}
        }

        logger.error(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{max_attempts} | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {context}")
