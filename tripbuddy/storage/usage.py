"""Usage counters read from the document store for limit checks."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tripbuddy.models import Expense, Trip, TripCollaborator, TripDocument
from tripbuddy.subscriptions import UsageCounters


def _count(db: Session, model, *criteria) -> int:
    return db.scalar(select(func.count()).select_from(model).where(*criteria)) or 0


def get_usage_counters(db: Session, user_id: str, trip_id: UUID | None = None) -> UsageCounters:
    """
    Count a user's trips and, when ``trip_id`` is given, that trip's
    collaborators, expenses and documents.
    """
    counters = UsageCounters(trip_count=_count(db, Trip, Trip.creator_id == user_id))

    if trip_id is not None:
        counters.collaborator_count = _count(db, TripCollaborator, TripCollaborator.trip_id == trip_id)
        counters.expense_count = _count(db, Expense, Expense.trip_id == trip_id)
        counters.document_count = _count(db, TripDocument, TripDocument.trip_id == trip_id)

    return counters
