"""Retry classifiers — decide whether a failed poll attempt may be retried.

A classifier is any callable ``(exc) -> bool``; ``True`` means retry.
Both built-in operators use ``retry_all``: transient network and service
errors dominate, and the one fatal condition (a malformed connection
string) is rejected before any attempt is made.
"""

from __future__ import annotations

from collections.abc import Callable

from azure_wait.core.exceptions import WaitError

RetryClassifier = Callable[[BaseException], bool]


def retry_all(exc: BaseException) -> bool:  # noqa: ARG001
    """Retry on every error."""
    return True


def retry_never(exc: BaseException) -> bool:  # noqa: ARG001
    """Fail on every error."""
    return False


def retry_if(
    *exc_types: type[BaseException],
    predicate: Callable[[BaseException], bool] | None = None,
) -> RetryClassifier:
    """Retry only errors of *exc_types* (optionally also matching *predicate*)."""

    def classify(exc: BaseException) -> bool:
        if not isinstance(exc, exc_types):
            return False
        return predicate(exc) if predicate is not None else True

    return classify


def retry_unless(
    *exc_types: type[BaseException],
    predicate: Callable[[BaseException], bool] | None = None,
) -> RetryClassifier:
    """Retry every error except those of *exc_types* (optionally matching *predicate*)."""
    is_excluded = retry_if(*exc_types, predicate=predicate)

    def classify(exc: BaseException) -> bool:
        return not is_excluded(exc)

    return classify


def retry_by_taxonomy(exc: BaseException) -> bool:
    """Honour ``WaitError.retryable``; errors outside the taxonomy are retried."""
    if isinstance(exc, WaitError):
        return exc.retryable
    return True
