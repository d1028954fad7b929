# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for startup resilience.

Only bootstrap operations (schema init, initial store connection) retry.
Request paths never retry: a failed open is dropped and a failed stats query
is reported to the caller.

Standard retry: 10 attempts over ~60 seconds (schema bootstrap)
Light retry: 3 attempts over ~7 seconds (server startup)
"""

import logging
from typing import Tuple, Type

import psycopg2
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Exponential backoff: 1s, 2s, 4s, 8s, 16s, 32s, 32s, 32s, 32s, 32s = ~63s total
RETRY_ATTEMPTS = 10
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 32  # seconds (cap for exponential backoff)

# Exponential backoff: 1s, 2s, 4s = ~7s total
RETRY_ATTEMPTS_LIGHT = 3

POSTGRES_RETRY_EXCEPTIONS = (
    psycopg2.OperationalError,
    psycopg2.InterfaceError,
)


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt(logger: logging.Logger, attempts: int = RETRY_ATTEMPTS):
    """
    Create a callback that logs retry attempts.

    Args:
        logger: Logger instance to use for logging
        attempts: Total attempts, for the "n/total" part of the message

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            attempts,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Decorators
# ==============================================================================


def retry_standard(exception_types: Tuple[Type[Exception], ...], logger: logging.Logger):
    """
    Create a standard retry decorator (10 attempts, ~60 seconds).

    Example:
        @retry_standard(POSTGRES_RETRY_EXCEPTIONS, logger)
        def ensure_schema(settings):
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt(logger),
        reraise=True,
    )


def retry_light(exception_types: Tuple[Type[Exception], ...], logger: logging.Logger):
    """
    Create a light retry decorator (3 attempts, ~7 seconds).

    Example:
        @retry_light((StoreError,), logger)
        def connect_store():
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS_LIGHT),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt(logger, RETRY_ATTEMPTS_LIGHT),
        reraise=True,
    )
