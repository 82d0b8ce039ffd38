"""API error rendering.

Framework errors (authentication, parsing, validation) are rendered by
``drf-standardized-errors`` as ``{type, errors: [{code, detail, attr}]}``.
``StorageUnavailable`` escaping a view becomes a 503 with ``Retry-After``
so clients know the request may be retried.
"""

from __future__ import annotations

from django.conf import settings
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework import status
from rest_framework.exceptions import APIException

from modules.core.storage import StorageUnavailable


class ServiceUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable, retry later."
    default_code = "storage_unavailable"

    def __init__(self, detail=None, code=None, wait=None):
        super().__init__(detail, code)
        self.wait = wait


class InventoryExceptionHandler(ExceptionHandler):
    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, StorageUnavailable):
            return ServiceUnavailable(wait=getattr(settings, "STORAGE_RETRY_AFTER_SECONDS", 5))
        return super().convert_known_exceptions(exc)
