"""
Trip storage operations.

Handles trip creation (gated by the plan's trip limit), lookup and deletion.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from tripbuddy.logging_config import get_logger
from tripbuddy.models import Trip
from tripbuddy.storage.usage import get_usage_counters
from tripbuddy.subscriptions import AccessDecision, ResourceKind, SubscriptionPlan, check_plan_limit

logger = get_logger(__name__)


@dataclass
class TripWriteResult:
    """Result of a trip write operation."""
    success: bool
    trip_id: UUID | None = None
    trip: Trip | None = None
    error: str | None = None
    access: AccessDecision | None = None


def get_trip_by_id(db: Session, trip_id: UUID) -> Trip | None:
    """Get trip by ID."""
    return db.get(Trip, trip_id)


def get_user_trips(db: Session, user_id: str) -> list[Trip]:
    """Trips created by a user, newest first."""
    return (
        db.query(Trip)
        .filter(Trip.creator_id == user_id)
        .order_by(Trip.created_at.desc())
        .all()
    )


def create_trip(
    db: Session,
    user_id: str,
    title: str,
    plan: SubscriptionPlan = SubscriptionPlan.FREE,
    destination: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    currency: str = "USD",
    description: str | None = None,
) -> TripWriteResult:
    """
    Create a new trip if the user's plan allows another one.

    Args:
        db: Database session
        user_id: Creator's user ID
        title: Trip title
        plan: The user's effective subscription plan
        destination: Optional destination name
        start_date: Optional start date
        end_date: Optional end date
        currency: Trip currency (ISO 4217)
        description: Optional description

    Returns:
        TripWriteResult; on a limit denial ``access`` holds the decision
    """
    usage = get_usage_counters(db, user_id)
    decision = check_plan_limit(plan, ResourceKind.TRIP, usage.trip_count)
    if not decision.allowed:
        logger.info(
            "trip_limit_reached",
            user_id=user_id,
            plan=str(plan),
            current_usage=decision.current_usage,
        )
        return TripWriteResult(success=False, error="Trip limit reached", access=decision)

    try:
        trip = Trip(
            creator_id=user_id,
            title=title,
            description=description,
            destination=destination,
            start_date=start_date,
            end_date=end_date,
            currency=currency.upper(),
        )
        db.add(trip)
        db.commit()
        db.refresh(trip)

        logger.info("trip_created", trip_id=str(trip.id), user_id=user_id, title=title)
        return TripWriteResult(success=True, trip_id=trip.id, trip=trip, access=decision)

    except Exception as e:
        db.rollback()
        logger.error("create_trip_failed", user_id=user_id, error=str(e), exc_info=True)
        return TripWriteResult(success=False, error=str(e))


def delete_trip(db: Session, trip_id: UUID) -> TripWriteResult:
    """Delete a trip with its collaborators, expenses and documents."""
    try:
        trip = get_trip_by_id(db, trip_id)
        if not trip:
            return TripWriteResult(success=False, error="Trip not found")

        db.delete(trip)
        db.commit()

        logger.info("trip_deleted", trip_id=str(trip_id))
        return TripWriteResult(success=True, trip_id=trip_id)

    except Exception as e:
        db.rollback()
        logger.error("delete_trip_failed", trip_id=str(trip_id), error=str(e))
        return TripWriteResult(success=False, error=str(e))
