"""
Expense storage operations.

An expense and its per-participant shares are written in one transaction:
limit check, then split computation, then a single commit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from tripbuddy.expenses import SplitPolicy, compute_shares
from tripbuddy.logging_config import get_logger
from tripbuddy.models import Expense, ExpenseShare
from tripbuddy.storage.trip_writer import get_trip_by_id
from tripbuddy.storage.usage import get_usage_counters
from tripbuddy.subscriptions import AccessDecision, ResourceKind, SubscriptionPlan, check_plan_limit

logger = get_logger(__name__)


@dataclass
class ExpenseWriteResult:
    """Result of an expense write operation."""
    success: bool
    expense_id: UUID | None = None
    expense: Expense | None = None
    error: str | None = None
    access: AccessDecision | None = None


def get_expense_by_id(db: Session, expense_id: UUID) -> Expense | None:
    """Get expense by ID."""
    return db.get(Expense, expense_id)


def get_trip_expenses(db: Session, trip_id: UUID) -> list[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.trip_id == trip_id)
        .order_by(Expense.created_at)
        .all()
    )


def create_expense(
    db: Session,
    trip_id: UUID,
    title: str,
    amount,
    paid_by: str,
    participant_ids: Iterable[str],
    policy: SplitPolicy = SplitPolicy.EQUAL,
    policy_input: Mapping[str, object] | None = None,
    currency: str | None = None,
    category: str = "other",
    plan: SubscriptionPlan = SubscriptionPlan.FREE,
) -> ExpenseWriteResult:
    """
    Create an expense with its split shares.

    Args:
        db: Database session
        trip_id: Trip UUID
        title: Expense title
        amount: Positive expense amount
        paid_by: User ID of the payer
        participant_ids: Users sharing the expense
        policy: Split policy
        policy_input: Percentages or custom amounts per participant
        currency: ISO 4217 code; defaults to the trip currency
        category: Expense category
        plan: The trip owner's effective plan

    Returns:
        ExpenseWriteResult

    Raises:
        ValidationError: if the split input is invalid
    """
    trip = get_trip_by_id(db, trip_id)
    if not trip:
        return ExpenseWriteResult(success=False, error="Trip not found")

    usage = get_usage_counters(db, trip.creator_id, trip_id)
    decision = check_plan_limit(plan, ResourceKind.EXPENSE, usage.expense_count)
    if not decision.allowed:
        logger.info("expense_limit_reached", trip_id=str(trip_id), current_usage=decision.current_usage)
        return ExpenseWriteResult(success=False, error="Expense limit reached", access=decision)

    currency = (currency or trip.currency).upper()
    shares = compute_shares(amount, participant_ids, policy, policy_input, currency)
    total = sum((share.amount for share in shares), Decimal(0))

    try:
        expense = Expense(
            trip_id=trip_id,
            title=title,
            amount=total,
            currency=currency,
            category=category,
            paid_by=paid_by,
            split_policy=SplitPolicy(policy).value,
        )
        expense.shares = [
            ExpenseShare(participant_id=share.participant_id, share_amount=share.amount, position=i)
            for i, share in enumerate(shares)
        ]
        db.add(expense)
        db.commit()
        db.refresh(expense)

        logger.info(
            "expense_created",
            expense_id=str(expense.id),
            trip_id=str(trip_id),
            amount=str(total),
            currency=currency,
            policy=expense.split_policy,
            shares=len(shares),
        )
        return ExpenseWriteResult(success=True, expense_id=expense.id, expense=expense, access=decision)

    except Exception as e:
        db.rollback()
        logger.error("create_expense_failed", trip_id=str(trip_id), error=str(e), exc_info=True)
        return ExpenseWriteResult(success=False, error=str(e))


def delete_expense(db: Session, expense_id: UUID) -> ExpenseWriteResult:
    """Delete an expense together with its shares."""
    try:
        expense = get_expense_by_id(db, expense_id)
        if not expense:
            return ExpenseWriteResult(success=False, error="Expense not found")

        db.delete(expense)
        db.commit()

        logger.info("expense_deleted", expense_id=str(expense_id))
        return ExpenseWriteResult(success=True, expense_id=expense_id)

    except Exception as e:
        db.rollback()
        logger.error("delete_expense_failed", expense_id=str(expense_id), error=str(e))
        return ExpenseWriteResult(success=False, error=str(e))
