"""Trip and collaborator models."""

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripbuddy.database import Base

if TYPE_CHECKING:
    from tripbuddy.models.expense import Expense


class Trip(Base):
    """
    A trip owned by one user and shared with collaborators.
    Scopes expenses, documents and offline map regions.
    """

    __tablename__ = "trip"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)

    # Trip Info
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    destination: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Dates
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    currency: Mapped[str] = mapped_column(String(3), default="USD")  # ISO 4217

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    collaborators: Mapped[list["TripCollaborator"]] = relationship(
        "TripCollaborator", back_populates="trip", cascade="all, delete-orphan"
    )
    expenses: Mapped[list["Expense"]] = relationship(
        "Expense", back_populates="trip", cascade="all, delete-orphan"
    )
    documents: Mapped[list["TripDocument"]] = relationship(
        "TripDocument", back_populates="trip", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, title={self.title}, creator={self.creator_id})>"


class TripCollaborator(Base):
    """A user invited to a trip."""

    __tablename__ = "trip_collaborator"
    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_collaborator"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="editor")  # viewer, editor

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    trip: Mapped["Trip"] = relationship("Trip", back_populates="collaborators")

    def __repr__(self) -> str:
        return f"<TripCollaborator(trip={self.trip_id}, user={self.user_id}, role={self.role})>"


class TripDocument(Base):
    """
    A document attached to a trip (ticket, booking, passport scan).
    Downloading it for offline use creates a CachedDocument.
    """

    __tablename__ = "trip_document"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="other")  # ticket, booking, passport, visa, insurance, other
    uploaded_by: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    trip: Mapped["Trip"] = relationship("Trip", back_populates="documents")

    def __repr__(self) -> str:
        return f"<TripDocument(id={self.id}, trip={self.trip_id}, file={self.file_name})>"
