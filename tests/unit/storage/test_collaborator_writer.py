"""Unit tests for collaborator_writer storage module."""

from tripbuddy.storage.collaborator_writer import (
    add_collaborator,
    add_document,
    get_trip_collaborators,
    remove_collaborator,
)
from tripbuddy.subscriptions import SubscriptionPlan


class TestAddCollaborator:
    """Tests for add_collaborator function."""

    def test_adds_collaborator(self, db, sample_trip):
        result = add_collaborator(db, sample_trip.id, "user-ben", role="viewer")

        assert result.success is True
        assert result.collaborator.role == "viewer"
        assert [c.user_id for c in get_trip_collaborators(db, sample_trip.id)] == ["user-ben"]

    def test_free_plan_allows_two(self, db, sample_trip):
        assert add_collaborator(db, sample_trip.id, "user-ben").success is True
        assert add_collaborator(db, sample_trip.id, "user-caro").success is True

        result = add_collaborator(db, sample_trip.id, "user-dan")

        assert result.success is False
        assert result.error == "Collaborator limit reached"
        assert result.access.limit == 2

    def test_pro_plan_allows_more(self, db, sample_trip):
        for name in ("ben", "caro", "dan"):
            result = add_collaborator(db, sample_trip.id, f"user-{name}", plan=SubscriptionPlan.PRO)

        assert result.success is True
        assert len(get_trip_collaborators(db, sample_trip.id)) == 3

    def test_invalid_role(self, db, sample_trip):
        result = add_collaborator(db, sample_trip.id, "user-ben", role="owner")

        assert result.success is False
        assert "Invalid role" in result.error

    def test_duplicate_collaborator_fails_cleanly(self, db, sample_trip):
        """The unique constraint error is reported, not raised."""
        add_collaborator(db, sample_trip.id, "user-ben")

        result = add_collaborator(db, sample_trip.id, "user-ben")

        assert result.success is False
        assert len(get_trip_collaborators(db, sample_trip.id)) == 1

    def test_remove_collaborator(self, db, sample_trip):
        add_collaborator(db, sample_trip.id, "user-ben")

        assert remove_collaborator(db, sample_trip.id, "user-ben").success is True
        assert remove_collaborator(db, sample_trip.id, "user-ben").success is True
        assert get_trip_collaborators(db, sample_trip.id) == []


class TestAddDocument:
    """Tests for add_document function."""

    def test_free_plan_document_limit(self, db, sample_trip):
        for i in range(5):
            result = add_document(
                db, sample_trip.id, f"doc-{i}.pdf", f"https://files.example.com/{i}.pdf", "user-ana"
            )
            assert result.success is True

        result = add_document(db, sample_trip.id, "doc-6.pdf", "https://files.example.com/6.pdf", "user-ana")

        assert result.success is False
        assert result.access.current_usage == 5
