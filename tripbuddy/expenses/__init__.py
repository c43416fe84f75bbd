from tripbuddy.expenses.splits import (
    ShareAmount,
    SplitPolicy,
    ValidationError,
    compute_shares,
    currency_exponent,
)

__all__ = ["ShareAmount", "SplitPolicy", "ValidationError", "compute_shares", "currency_exponent"]
