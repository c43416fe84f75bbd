"""Unit tests for usage counters."""

from tripbuddy.storage import add_collaborator, add_document, create_expense, create_trip, get_usage_counters
from tripbuddy.subscriptions import ResourceKind, SubscriptionPlan, can_create, usage_for


class TestGetUsageCounters:
    """Tests for get_usage_counters."""

    def test_counts_user_trips_only(self, db):
        create_trip(db, "user-ana", "Lisbon")
        create_trip(db, "user-ana", "Porto")
        create_trip(db, "user-ben", "Madrid")

        counters = get_usage_counters(db, "user-ana")

        assert counters.trip_count == 2
        assert counters.expense_count == 0

    def test_counts_per_trip_resources(self, db, sample_trip):
        add_collaborator(db, sample_trip.id, "user-ben")
        create_expense(db, sample_trip.id, "Lunch", "30", "user-ana", ["user-ana", "user-ben"])
        create_expense(db, sample_trip.id, "Museum", "24", "user-ben", ["user-ana", "user-ben"])
        add_document(db, sample_trip.id, "ticket.pdf", "https://files.example.com/t.pdf", "user-ana")

        counters = get_usage_counters(db, "user-ana", sample_trip.id)

        assert counters.trip_count == 1
        assert counters.collaborator_count == 1
        assert counters.expense_count == 2
        assert counters.document_count == 1

    def test_feeds_can_create(self, db):
        for title in ("A", "B", "C"):
            create_trip(db, "user-ana", title)

        counters = get_usage_counters(db, "user-ana")
        check = can_create(SubscriptionPlan.FREE, ResourceKind.TRIP, usage_for(counters, ResourceKind.TRIP))

        assert check.allowed is False
        assert check.required_plan == SubscriptionPlan.PRO
