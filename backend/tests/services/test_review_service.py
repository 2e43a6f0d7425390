from unittest.mock import Mock

import pytest

from tablebook.core.exceptions import (
    AlreadyReviewedException,
    ForbiddenException,
    NotEligibleException,
    NotFoundException,
    ValidationException,
)
from tablebook.models.reservation import ReservationStatus
from tablebook.models.review import Review


@pytest.fixture
def completed(make_reservation, table):
    return make_reservation(table, status=ReservationStatus.COMPLETED.value)


class TestCreateReview:
    def test_diner_reviews_completed_reservation_once(self, review_service, diner, completed):
        review = review_service.create_review(diner, completed.id, 5, "  Lovely evening  ")

        assert review.rating == 5
        assert review.comment == "Lovely evening"
        assert review.diner_id == "diner-1"

        with pytest.raises(AlreadyReviewedException) as exc_info:
            review_service.create_review(diner, completed.id, 4)
        assert exc_info.value.code == "ALREADY_REVIEWED"
        assert review_service.db.query(Review).count() == 1

    def test_concurrent_duplicate_is_reported_as_already_reviewed(self, review_service, diner, completed):
        review_service.create_review(diner, completed.id, 5)
        # The duplicate check ran before the first review was committed
        review_service.repository.exists_for_reservation = Mock(return_value=False)

        with pytest.raises(AlreadyReviewedException) as exc_info:
            review_service.create_review(diner, completed.id, 2)

        assert exc_info.value.code == "ALREADY_REVIEWED"
        assert exc_info.value.status_code == 409
        assert review_service.db.query(Review).count() == 1
        assert review_service.db.query(Review).one().rating == 5

    def test_other_diner_is_denied(self, review_service, other_diner, completed):
        with pytest.raises(ForbiddenException):
            review_service.create_review(other_diner, completed.id, 3)

    @pytest.mark.parametrize(
        "status",
        [ReservationStatus.PENDING, ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED],
    )
    def test_only_completed_reservations_are_eligible(self, review_service, make_reservation, diner, table, status):
        reservation = make_reservation(table, status=status.value)
        with pytest.raises(NotEligibleException) as exc_info:
            review_service.create_review(diner, reservation.id, 4)
        assert exc_info.value.details["status"] == status.value

    def test_stranger_is_refused_before_eligibility_is_revealed(
        self, review_service, make_reservation, other_diner, table
    ):
        pending = make_reservation(table)
        with pytest.raises(ForbiddenException):
            review_service.create_review(other_diner, pending.id, 4)

    @pytest.mark.parametrize("who", ["admin", "operator"])
    def test_staff_cannot_review(self, request, review_service, completed, who):
        with pytest.raises(ForbiddenException):
            review_service.create_review(request.getfixturevalue(who), completed.id, 5)

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_bounds(self, review_service, diner, completed, rating):
        with pytest.raises(ValidationException):
            review_service.create_review(diner, completed.id, rating)

    def test_comment_length(self, review_service, diner, completed):
        with pytest.raises(ValidationException):
            review_service.create_review(diner, completed.id, 4, "x" * 501)
        assert review_service.create_review(diner, completed.id, 4, "x" * 500).comment == "x" * 500

    def test_unknown_reservation(self, review_service, diner):
        with pytest.raises(NotFoundException):
            review_service.create_review(diner, 12345, 4)


class TestEditAndDelete:
    @pytest.fixture
    def review(self, review_service, diner, completed):
        return review_service.create_review(diner, completed.id, 3, "Fine")

    def test_author_updates_rating_and_keeps_comment(self, review_service, diner, review):
        updated = review_service.update_review(diner, review.id, rating=4)
        assert updated.rating == 4
        assert updated.comment == "Fine"

    def test_explicit_none_clears_comment(self, review_service, diner, review):
        assert review_service.update_review(diner, review.id, comment=None).comment is None

    def test_admin_may_edit_and_delete(self, review_service, admin, review):
        review_service.update_review(admin, review.id, rating=1)
        review_service.delete_review(admin, review.id)
        assert review_service.db.query(Review).count() == 0

    @pytest.mark.parametrize("who", ["other_diner", "operator"])
    def test_others_cannot_edit_or_delete(self, request, review_service, review, who):
        principal = request.getfixturevalue(who)
        with pytest.raises(ForbiddenException):
            review_service.update_review(principal, review.id, rating=5)
        with pytest.raises(ForbiddenException):
            review_service.delete_review(principal, review.id)

    def test_invalid_update_leaves_review_alone(self, review_service, diner, review):
        with pytest.raises(ValidationException):
            review_service.update_review(diner, review.id, rating=9)
        review_service.db.expire_all()
        assert review_service.get_review(diner, review.id).rating == 3

    def test_deleting_review_makes_reservation_reviewable_again(self, review_service, diner, review, completed):
        review_service.delete_review(diner, review.id)
        assert [r.id for r in review_service.list_reviewable_reservations(diner)] == [completed.id]


class TestQueries:
    def test_visibility(self, review_service, diner, other_diner, operator, other_operator, admin, completed):
        review = review_service.create_review(diner, completed.id, 5)

        assert review_service.get_review(operator, review.id).id == review.id
        assert [r.id for r in review_service.list_reviews(admin)] == [review.id]
        assert [r.id for r in review_service.list_reviews(diner)] == [review.id]
        assert review_service.list_reviews(other_diner) == []
        assert review_service.list_reviews(other_operator) == []
        with pytest.raises(ForbiddenException):
            review_service.get_review(other_diner, review.id)

    def test_reviewable_reservations(self, review_service, make_reservation, diner, operator, table, completed):
        make_reservation(table, reserved_at=completed.reserved_at.replace(hour=21))
        assert [r.id for r in review_service.list_reviewable_reservations(diner)] == [completed.id]

        review_service.create_review(diner, completed.id, 4)

        assert review_service.list_reviewable_reservations(diner) == []
        assert review_service.list_reviewable_reservations(operator) == []
