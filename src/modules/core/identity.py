"""Caller identity as seen by the inventory engine.

The identity provider is Django's auth system: a user's role is the name
of the first group it belongs to that matches a ``Role`` value.
Superusers are always treated as ``admin``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    MANAGER = "manager", "Manager"
    SUPPLIER = "supplier", "Supplier"
    CUSTOMER = "customer", "Customer"


ADMINISTRATIVE_ROLES: frozenset[str] = frozenset({Role.ADMIN, Role.MANAGER})


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: an opaque id plus the role it acts under."""

    id: str
    role: Optional[str] = None

    @property
    def is_administrative(self) -> bool:
        return self.role in ADMINISTRATIVE_ROLES


def principal_from_user(user: Any) -> Principal:
    """Build a ``Principal`` from an authenticated Django user."""
    if getattr(user, "is_superuser", False):
        return Principal(id=str(user.pk), role=Role.ADMIN)

    role: Optional[str] = None
    groups = getattr(user, "groups", None)
    if groups is not None:
        names = set(groups.values_list("name", flat=True))
        role = next((r.value for r in Role if r.value in names), None)
    return Principal(id=str(user.pk), role=role)
