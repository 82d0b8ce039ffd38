"""DRF permissions built on the caller's ``Principal``."""

from __future__ import annotations

from typing import Any, Type

from rest_framework.permissions import BasePermission

from modules.core.identity import principal_from_user


class IsAdministrative(BasePermission):
    """Admins and managers only."""

    message = "Only admins and managers may perform this action."

    def has_permission(self, request: Any, view: Any) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return principal_from_user(user).is_administrative


def role_required(*roles: str) -> Type[BasePermission]:
    """Build a permission class admitting callers acting under one of ``roles``."""

    class HasRole(BasePermission):
        message = f"Requires role: {', '.join(roles)}."

        def has_permission(self, request: Any, view: Any) -> bool:
            user = request.user
            if not user or not user.is_authenticated:
                return False
            return principal_from_user(user).role in roles

    HasRole.__name__ = f"HasRole_{'_'.join(roles)}"
    return HasRole
