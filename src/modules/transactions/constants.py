"""Transaction domain constants.

Defines kinds, statuses, decision tokens and the valid status
transitions for the transaction state machine.
"""

from django.db import models


class TransactionKind(models.TextChoices):
    PURCHASE = "purchase", "Purchase"
    SALE = "sale", "Sale"


class TransactionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    PURCHASED = "purchased", "Purchased"
    CANCELLED = "cancelled", "Cancelled"


class SalesDecision(models.TextChoices):
    YES = "yes", "Yes"
    NO = "no", "No"


class PurchaseDecision(models.TextChoices):
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


VALID_TRANSITIONS: dict[str, dict[str, set[str]]] = {
    TransactionKind.SALE: {
        TransactionStatus.PENDING: {
            TransactionStatus.PURCHASED,
            TransactionStatus.CANCELLED,
        },
    },
    TransactionKind.PURCHASE: {
        TransactionStatus.PENDING: {
            TransactionStatus.APPROVED,
            TransactionStatus.REJECTED,
        },
    },
}

TERMINAL_STATES: set[str] = {
    TransactionStatus.APPROVED,
    TransactionStatus.REJECTED,
    TransactionStatus.PURCHASED,
    TransactionStatus.CANCELLED,
}

REFERENCE_PREFIXES: dict[str, str] = {
    TransactionKind.SALE: "SO",
    TransactionKind.PURCHASE: "PO",
}

REFERENCE_MAX_RETRIES = 5
