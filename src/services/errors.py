"""Custom exception classes for rent billing.

Provides domain-specific exceptions for clear error handling and reporting.
"""


class BillingError(Exception):
    """Base exception for billing errors."""

    pass


class InvalidBillingMonthError(BillingError, ValueError):
    """Billing month is malformed or out of range."""

    pass


class DuplicatePaymentError(BillingError):
    """Store rejected a rent row because one already exists for that member and month."""

    def __init__(self, tenancy_member_id: int, due_month: str):
        self.tenancy_member_id = tenancy_member_id
        self.due_month = due_month
        super().__init__(
            f"Rent payment already exists for member {tenancy_member_id} in {due_month}"
        )
