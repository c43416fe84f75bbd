"""Unit tests for trip_writer storage module."""

import uuid
from datetime import date

from tripbuddy.models import Trip
from tripbuddy.storage.trip_writer import (
    create_trip,
    delete_trip,
    get_trip_by_id,
    get_user_trips,
)
from tripbuddy.subscriptions import AccessDenialReason, SubscriptionPlan


class TestCreateTrip:
    """Tests for create_trip function."""

    def test_creates_trip(self, db):
        """Should create a trip for the user."""
        result = create_trip(
            db=db,
            user_id="user-ana",
            title="Kyoto in Spring",
            destination="Kyoto",
            start_date=date(2026, 4, 1),
            end_date=date(2026, 4, 10),
            currency="jpy",
        )

        assert result.success is True
        assert result.trip_id is not None
        assert result.trip.title == "Kyoto in Spring"
        assert result.trip.currency == "JPY"
        assert result.access.allowed is True

    def test_free_plan_stops_at_three_trips(self, db):
        """The fourth trip on the free plan is refused with a limit decision."""
        for i in range(3):
            assert create_trip(db, "user-ana", f"Trip {i}").success is True

        result = create_trip(db, "user-ana", "One too many")

        assert result.success is False
        assert result.error == "Trip limit reached"
        assert result.access.reason == AccessDenialReason.LIMIT_REACHED
        assert result.access.current_usage == 3
        assert result.access.limit == 3
        assert db.query(Trip).count() == 3

    def test_limit_is_per_user(self, db):
        for i in range(3):
            create_trip(db, "user-ana", f"Trip {i}")

        assert create_trip(db, "user-ben", "Ben's first trip").success is True

    def test_pro_plan_is_unlimited(self, db):
        for i in range(5):
            result = create_trip(db, "user-ana", f"Trip {i}", plan=SubscriptionPlan.PRO)

        assert result.success is True
        assert len(get_user_trips(db, "user-ana")) == 5

    def test_database_error_returns_failure(self, db, mocker):
        """Should roll back and report failure if the commit fails."""
        mocker.patch.object(db, "commit", side_effect=RuntimeError("disk I/O error"))
        rollback = mocker.spy(db, "rollback")

        result = create_trip(db, "user-ana", "Broken")

        assert result.success is False
        assert "disk I/O error" in result.error
        rollback.assert_called_once()


class TestDeleteTrip:
    """Tests for delete_trip function."""

    def test_deletes_trip(self, db, sample_trip):
        result = delete_trip(db, sample_trip.id)

        assert result.success is True
        assert get_trip_by_id(db, sample_trip.id) is None

    def test_missing_trip(self, db):
        result = delete_trip(db, uuid.uuid4())

        assert result.success is False
        assert result.error == "Trip not found"
