# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Optional

log = logging.getLogger("kubenode")


class RetryError(RuntimeError):
    def __init__(self, msg: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(msg)
        self.attempts = attempts
        self.last_error = last_error


def retry(
    *,
    retries: int,
    delay: float,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
):
    """
    Retry decorator for idempotent operations.

    retries: number of attempts
    delay: seconds between attempts
    retry_on: exception types to retry
    on_retry: callback(attempt, exception)
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            last_exc = None
            for attempt in range(1, retries + 1):
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    last_exc = exc
                    if on_retry:
                        on_retry(attempt, exc)
                    if attempt == retries:
                        break
                    time.sleep(delay)
            raise RetryError(
                f"{fn.__name__} failed after {retries} retries", retries, last_exc
            ) from last_exc
        return wrapper
    return decorator


def wait_for(
    predicate: Callable[[], bool],
    *,
    attempts: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Poll *predicate* until it returns True, at most *attempts* times,
    sleeping *interval* seconds after every unsuccessful attempt.

    An exception raised by the predicate counts as an unsuccessful attempt;
    the last one is kept on the RetryError for diagnostics.
    Returns the number of attempts it took.
    """
    last_exc: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            if predicate():
                return attempt
        except Exception as exc:
            last_exc = exc
            log.debug("wait attempt %d/%d raised: %s", attempt, attempts, exc)
        sleep(interval)
    raise RetryError(
        f"maximum number of retries ({attempts}) exceeded", attempts, last_exc
    ) from last_exc
