"""Helpers for running Firestore transactions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from firebase_admin import firestore
from google.api_core.exceptions import Aborted

from matchday.errors import RetryExhaustedError

from .constants import DEFAULT_TRANSACTION_ATTEMPTS

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EXHAUSTED_PREFIX = "Failed to commit transaction"


def _is_exhausted(exc: ValueError) -> bool:
    """Tell the client's retry-exhausted ValueError apart from other ones."""
    return isinstance(exc.__cause__, Aborted) or str(exc).startswith(
        _EXHAUSTED_PREFIX
    )


def run_in_transaction(
    db: Client,
    body: Callable[..., T],
    *args: Any,
    max_attempts: int | None = None,
) -> T:
    """Run ``body(transaction, *args)`` as a retried Firestore transaction.

    The body must issue all of its reads before its first write. Firestore
    replays it on contention up to ``max_attempts`` times; when every attempt
    aborts the caller gets a RetryExhaustedError instead of the client's
    ValueError.
    """
    attempts = max_attempts or DEFAULT_TRANSACTION_ATTEMPTS
    transaction: Transaction = db.transaction(max_attempts=attempts)
    try:
        return firestore.transactional(body)(transaction, *args)
    except ValueError as exc:
        if not _is_exhausted(exc):
            raise
        name = getattr(body, "__name__", "transaction")
        logger.warning(f"{name} gave up after {attempts} attempts: {exc}")
        raise RetryExhaustedError() from exc
