"""Expense model and its per-participant shares."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tripbuddy.database import Base

if TYPE_CHECKING:
    from tripbuddy.models.trip import Trip


class Expense(Base):
    """
    A trip expense paid by one member and split among participants.
    Shares are written in the same transaction and removed with the expense.
    """

    __tablename__ = "expense"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=3), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)  # ISO 4217
    category: Mapped[str] = mapped_column(String(30), default="other")
    paid_by: Mapped[str] = mapped_column(String(128), nullable=False)
    split_policy: Mapped[str] = mapped_column(String(20), nullable=False)  # equal, percentage, custom

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    trip: Mapped["Trip"] = relationship("Trip", back_populates="expenses")
    shares: Mapped[list["ExpenseShare"]] = relationship(
        "ExpenseShare",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.position",
    )

    def __repr__(self) -> str:
        return (
            f"<Expense(id={self.id}, amount={self.amount} {self.currency}, "
            f"title={self.title[:30]})>"
        )


class ExpenseShare(Base):
    """One participant's owed share of an expense."""

    __tablename__ = "expense_share"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    expense_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("expense.id", ondelete="CASCADE"), nullable=False
    )
    participant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    share_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=3), nullable=False
    )
    position: Mapped[int] = mapped_column(default=0)

    expense: Mapped["Expense"] = relationship("Expense", back_populates="shares")

    def __repr__(self) -> str:
        return f"<ExpenseShare(participant={self.participant_id}, amount={self.share_amount})>"
