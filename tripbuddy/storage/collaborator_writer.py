"""
Collaborator and trip document storage operations.

Both are per-trip resources counted against the plan's per-trip limits.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from tripbuddy.logging_config import get_logger
from tripbuddy.models import TripCollaborator, TripDocument
from tripbuddy.storage.trip_writer import get_trip_by_id
from tripbuddy.storage.usage import get_usage_counters
from tripbuddy.subscriptions import AccessDecision, ResourceKind, SubscriptionPlan, check_plan_limit

logger = get_logger(__name__)

COLLABORATOR_ROLES = {"viewer", "editor"}


@dataclass
class CollaboratorWriteResult:
    """Result of a collaborator write operation."""
    success: bool
    collaborator: TripCollaborator | None = None
    error: str | None = None
    access: AccessDecision | None = None


@dataclass
class DocumentWriteResult:
    """Result of a trip document write operation."""
    success: bool
    document: TripDocument | None = None
    error: str | None = None
    access: AccessDecision | None = None


def get_trip_collaborators(db: Session, trip_id: UUID) -> list[TripCollaborator]:
    return (
        db.query(TripCollaborator)
        .filter(TripCollaborator.trip_id == trip_id)
        .order_by(TripCollaborator.created_at)
        .all()
    )


def add_collaborator(
    db: Session,
    trip_id: UUID,
    user_id: str,
    role: str = "editor",
    plan: SubscriptionPlan = SubscriptionPlan.FREE,
) -> CollaboratorWriteResult:
    """
    Invite a user to a trip if the trip owner's plan allows another collaborator.

    Args:
        db: Database session
        trip_id: Trip UUID
        user_id: Invited user's ID
        role: viewer or editor
        plan: The trip owner's effective plan

    Returns:
        CollaboratorWriteResult
    """
    if role not in COLLABORATOR_ROLES:
        return CollaboratorWriteResult(success=False, error=f"Invalid role: {role}")

    trip = get_trip_by_id(db, trip_id)
    if not trip:
        return CollaboratorWriteResult(success=False, error="Trip not found")

    usage = get_usage_counters(db, trip.creator_id, trip_id)
    decision = check_plan_limit(plan, ResourceKind.COLLABORATOR, usage.collaborator_count)
    if not decision.allowed:
        logger.info("collaborator_limit_reached", trip_id=str(trip_id), current_usage=decision.current_usage)
        return CollaboratorWriteResult(success=False, error="Collaborator limit reached", access=decision)

    try:
        collaborator = TripCollaborator(trip_id=trip_id, user_id=user_id, role=role)
        db.add(collaborator)
        db.commit()
        db.refresh(collaborator)

        logger.info("collaborator_added", trip_id=str(trip_id), user_id=user_id, role=role)
        return CollaboratorWriteResult(success=True, collaborator=collaborator, access=decision)

    except Exception as e:
        db.rollback()
        logger.error("add_collaborator_failed", trip_id=str(trip_id), user_id=user_id, error=str(e))
        return CollaboratorWriteResult(success=False, error=str(e))


def remove_collaborator(db: Session, trip_id: UUID, user_id: str) -> CollaboratorWriteResult:
    """Remove a collaborator. Removing someone who isn't on the trip succeeds."""
    try:
        db.query(TripCollaborator).filter(
            TripCollaborator.trip_id == trip_id,
            TripCollaborator.user_id == user_id,
        ).delete()
        db.commit()
        logger.info("collaborator_removed", trip_id=str(trip_id), user_id=user_id)
        return CollaboratorWriteResult(success=True)

    except Exception as e:
        db.rollback()
        logger.error("remove_collaborator_failed", trip_id=str(trip_id), error=str(e))
        return CollaboratorWriteResult(success=False, error=str(e))


def add_document(
    db: Session,
    trip_id: UUID,
    file_name: str,
    url: str,
    uploaded_by: str,
    doc_type: str = "other",
    plan: SubscriptionPlan = SubscriptionPlan.FREE,
) -> DocumentWriteResult:
    """Attach a document to a trip if the plan allows another one."""
    trip = get_trip_by_id(db, trip_id)
    if not trip:
        return DocumentWriteResult(success=False, error="Trip not found")

    usage = get_usage_counters(db, trip.creator_id, trip_id)
    decision = check_plan_limit(plan, ResourceKind.DOCUMENT, usage.document_count)
    if not decision.allowed:
        logger.info("document_limit_reached", trip_id=str(trip_id), current_usage=decision.current_usage)
        return DocumentWriteResult(success=False, error="Document limit reached", access=decision)

    try:
        document = TripDocument(
            trip_id=trip_id,
            file_name=file_name,
            url=url,
            type=doc_type,
            uploaded_by=uploaded_by,
        )
        db.add(document)
        db.commit()
        db.refresh(document)

        logger.info("trip_document_added", trip_id=str(trip_id), document_id=str(document.id))
        return DocumentWriteResult(success=True, document=document, access=decision)

    except Exception as e:
        db.rollback()
        logger.error("add_document_failed", trip_id=str(trip_id), error=str(e))
        return DocumentWriteResult(success=False, error=str(e))
