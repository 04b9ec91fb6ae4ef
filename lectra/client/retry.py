"""Retry policy shared by client queries and mutations."""

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from lectra.client.api_client import APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_transient


def call_with_retries(fn: Callable[[], T], retries: int, max_wait: float = 4.0) -> T:
    """Call *fn*, retrying up to *retries* extra times on transient ``APIError``.

    Validation and 4xx errors are raised on the first attempt.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(retries, 0) + 1),
        wait=wait_exponential(multiplier=0.5, max=max_wait),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(fn)
