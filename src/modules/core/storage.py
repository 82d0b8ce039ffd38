"""Explicit storage handle for the inventory engine.

Every repository and service receives a ``StorageContext`` instead of
reaching for a process-wide connection.  The context names the Django
database alias to use and the statement timeout callers want applied.

``unit_of_work`` opens one atomic block on that alias.  Everything done
inside it commits or rolls back together, which is what gives order
transitions their all-or-nothing semantics.

Driver-level failures (lost connection, lock timeout, statement timeout)
are surfaced as ``StorageUnavailable`` so callers can retry; they are
never reported as business failures.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, TypeVar
from uuid import UUID

import structlog
from django.conf import settings
from django.db import (
    DEFAULT_DB_ALIAS,
    InterfaceError,
    OperationalError,
    connections,
    transaction,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StorageUnavailable(Exception):
    """The store could not be reached in time; the request may be retried."""


@dataclass(frozen=True)
class StorageContext:
    """Which database to talk to and how long a statement may run."""

    using: str = DEFAULT_DB_ALIAS
    statement_timeout_ms: Optional[int] = None

    @classmethod
    def from_settings(cls) -> StorageContext:
        return cls(
            using=getattr(settings, "INVENTORY_DATABASE_ALIAS", DEFAULT_DB_ALIAS),
            statement_timeout_ms=getattr(settings, "STORAGE_STATEMENT_TIMEOUT_MS", None),
        )


@contextmanager
def storage_guard(context: StorageContext) -> Iterator[None]:
    """Translate driver errors raised inside the block into ``StorageUnavailable``."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.warning("storage.unavailable", using=context.using, error=str(exc))
        raise StorageUnavailable(f"Storage '{context.using}' unavailable: {exc}") from exc


@contextmanager
def unit_of_work(context: StorageContext) -> Iterator[None]:
    """Run the block inside a single atomic transaction on ``context.using``.

    Nested calls join the outer transaction (Django savepoint semantics).
    The guard wraps the atomic block so a failed commit is translated too.
    """
    with storage_guard(context):
        with transaction.atomic(using=context.using):
            _apply_statement_timeout(context)
            yield


def _apply_statement_timeout(context: StorageContext) -> None:
    if not context.statement_timeout_ms:
        return
    connection = connections[context.using]
    if connection.vendor != "postgresql":
        return
    with connection.cursor() as cursor:
        cursor.execute(
            "SET LOCAL statement_timeout = %s", [int(context.statement_timeout_ms)]
        )


def guarded(method: Callable[..., T]) -> Callable[..., T]:
    """Decorate a repository method so driver errors become ``StorageUnavailable``.

    The decorated object must expose its ``StorageContext`` as ``context``.
    A call made outside any atomic block runs in its own ``unit_of_work`` so
    the statement timeout applies to it; inside one it joins the enclosing
    transaction and its timeout.
    """

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        context = self.context
        if connections[context.using].in_atomic_block:
            with storage_guard(context):
                return method(self, *args, **kwargs)
        with unit_of_work(context):
            return method(self, *args, **kwargs)

    return wrapper


def as_uuid(value: Any) -> Optional[UUID]:
    """Coerce an opaque id into a UUID; ``None`` when it is not one."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
