"""Transaction repositories package."""

from modules.transactions.repositories.django_repository import (
    TransactionDjangoRepository,
)
from modules.transactions.repositories.interfaces import ITransactionRepository

__all__ = ["ITransactionRepository", "TransactionDjangoRepository"]
