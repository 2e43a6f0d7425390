import pytest

from tablebook.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from tablebook.models import DiningTable, Reservation, Restaurant, Review
from tablebook.models.reservation import ReservationStatus


class TestRestaurants:
    def test_operator_owns_what_they_create(self, restaurant_service, operator):
        created = restaurant_service.create_restaurant(operator, " Chez Op ", "3 Quay", "555-0300")
        assert created.owner_id == "op-1"
        assert created.name == "Chez Op"

    def test_operator_cannot_create_for_someone_else(self, restaurant_service, operator):
        with pytest.raises(ForbiddenException):
            restaurant_service.create_restaurant(operator, "Sneaky", "4 Quay", "555-0400", owner_id="op-2")

    def test_admin_may_leave_a_restaurant_unclaimed(self, restaurant_service, admin, operator):
        created = restaurant_service.create_restaurant(admin, "Orphan", "5 Quay", "555-0500")
        assert created.owner_id is None
        assert created.id not in [r.id for r in restaurant_service.list_restaurants(operator)]

    def test_diners_cannot_create(self, restaurant_service, diner):
        with pytest.raises(ForbiddenException):
            restaurant_service.create_restaurant(diner, "Mine", "6 Quay", "555-0600")

    def test_blank_name_is_rejected(self, restaurant_service, operator):
        with pytest.raises(ValidationException):
            restaurant_service.create_restaurant(operator, "   ", "7 Quay", "555-0700")

    def test_owner_updates_details(self, restaurant_service, operator, restaurant):
        updated = restaurant_service.update_restaurant(operator, restaurant.id, phone="555-9999")
        assert updated.phone == "555-9999"
        assert updated.name == "Bistro Uno"

    def test_only_admin_reassigns_owner(self, restaurant_service, admin, operator, restaurant):
        with pytest.raises(ForbiddenException):
            restaurant_service.update_restaurant(operator, restaurant.id, owner_id="op-2")
        assert restaurant_service.update_restaurant(admin, restaurant.id, owner_id="op-2").owner_id == "op-2"

    def test_unknown_fields_are_rejected(self, restaurant_service, operator, restaurant):
        with pytest.raises(ValidationException):
            restaurant_service.update_restaurant(operator, restaurant.id, cuisine="french")

    def test_other_operator_cannot_see_or_update(self, restaurant_service, other_operator, restaurant):
        with pytest.raises(ForbiddenException):
            restaurant_service.get_restaurant(other_operator, restaurant.id)
        with pytest.raises(ForbiddenException):
            restaurant_service.update_restaurant(other_operator, restaurant.id, name="Taken")

    def test_listing_is_scoped(
        self, restaurant_service, admin, operator, diner, restaurant, other_restaurant
    ):
        assert [r.name for r in restaurant_service.list_restaurants(operator)] == ["Bistro Uno"]
        assert [r.name for r in restaurant_service.list_restaurants(diner)] == ["Bistro Uno", "Trattoria Due"]
        assert len(restaurant_service.list_restaurants(admin)) == 2

    def test_unknown_restaurant(self, restaurant_service, admin):
        with pytest.raises(NotFoundException):
            restaurant_service.get_restaurant(admin, 999)


class TestRestaurantDeletion:
    def test_operator_cannot_delete_own_restaurant(self, restaurant_service, operator, restaurant):
        with pytest.raises(ForbiddenException):
            restaurant_service.delete_restaurant(operator, restaurant.id)

    @pytest.mark.parametrize("status", [ReservationStatus.PENDING, ReservationStatus.CONFIRMED])
    def test_open_reservations_block_deletion(self, restaurant_service, make_reservation, admin, restaurant, table, status):
        make_reservation(table, status=status.value)

        with pytest.raises(ConflictException) as exc_info:
            restaurant_service.delete_restaurant(admin, restaurant.id)

        assert exc_info.value.code == "ACTIVE_RESERVATIONS"
        assert restaurant_service.db.query(Restaurant).count() == 1

    def test_history_is_removed_with_the_restaurant(
        self, restaurant_service, review_service, make_reservation, admin, diner, restaurant, table, other_table
    ):
        done = make_reservation(table, status=ReservationStatus.COMPLETED.value)
        make_reservation(table, diner_id="diner-2", status=ReservationStatus.CANCELLED.value)
        review_service.create_review(diner, done.id, 5)
        make_reservation(other_table, diner_id="diner-2")

        restaurant_service.delete_restaurant(admin, restaurant.id)

        db = restaurant_service.db
        db.expire_all()
        assert db.query(Restaurant).count() == 1
        assert [t.code for t in db.query(DiningTable).all()] == ["T9"]
        assert db.query(Reservation).count() == 1
        assert db.query(Review).count() == 0


class TestTables:
    def test_operator_adds_table(self, restaurant_service, operator, restaurant):
        added = restaurant_service.create_table(operator, restaurant.id, "P1", 6)
        assert (added.code, added.capacity, added.restaurant_id) == ("P1", 6, restaurant.id)

    @pytest.mark.parametrize("capacity", [0, 21, -3])
    def test_capacity_bounds(self, restaurant_service, operator, restaurant, capacity):
        with pytest.raises(ValidationException):
            restaurant_service.create_table(operator, restaurant.id, "BAD", capacity)

    @pytest.mark.parametrize("capacity", [1, 20])
    def test_capacity_limits_are_inclusive(self, restaurant_service, operator, restaurant, capacity):
        assert restaurant_service.create_table(operator, restaurant.id, f"C{capacity}", capacity).capacity == capacity

    def test_other_operator_cannot_add_tables(self, restaurant_service, other_operator, restaurant):
        with pytest.raises(ForbiddenException):
            restaurant_service.create_table(other_operator, restaurant.id, "X1", 2)

    def test_update_table(self, restaurant_service, operator, table):
        updated = restaurant_service.update_table(operator, table.id, capacity=8)
        assert (updated.code, updated.capacity) == ("T1", 8)
        with pytest.raises(ValidationException):
            restaurant_service.update_table(operator, table.id, capacity=25)

    def test_operator_deletes_own_table(self, restaurant_service, operator, table, second_table):
        restaurant_service.delete_table(operator, table.id)
        assert [t.id for t in restaurant_service.list_tables(operator)] == [second_table.id]

    def test_open_reservation_blocks_table_deletion(self, restaurant_service, make_reservation, operator, table):
        make_reservation(table)
        with pytest.raises(ConflictException) as exc_info:
            restaurant_service.delete_table(operator, table.id)
        assert exc_info.value.details == {"table_id": table.id}

    def test_list_tables_scoping_and_filter(
        self, restaurant_service, operator, diner, restaurant, table, second_table, other_table
    ):
        assert {t.id for t in restaurant_service.list_tables(operator)} == {table.id, second_table.id}
        assert len(restaurant_service.list_tables(diner)) == 3
        assert [t.id for t in restaurant_service.list_tables(diner, restaurant_id=other_table.restaurant_id)] == [
            other_table.id
        ]
        with pytest.raises(NotFoundException):
            restaurant_service.list_tables(diner, restaurant_id=999)

    def test_get_table_visibility(self, restaurant_service, other_operator, diner, table):
        assert restaurant_service.get_table(diner, table.id).id == table.id
        with pytest.raises(ForbiddenException):
            restaurant_service.get_table(other_operator, table.id)
