"""Tests for individual production orders."""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy import func, select

from quartermaster.domain.enums import Lane, OrderStatus, Role
from quartermaster.domain.errors import AuthorizationError, NotFound, ValidationError
from quartermaster.domain.orders import LineRequest
from quartermaster.factory import create_order_service
from quartermaster.models import ArchivedOrder, Order, OrderItem, War


@pytest.fixture
def service(session):
    return create_order_service(session)


@pytest.fixture
def order(service, world):
    return service.create_individual(
        world.actor(Role.MEMBER),
        world.war_id,
        "Rifles for the front",
        [LineRequest(world.rifle_id, 100), LineRequest(world.shell_id, 20)],
    )


class TestCreate:
    def test_creates_open_order_with_zero_progress(self, order, world):
        assert order.status == OrderStatus.OPEN
        assert order.type == "production"
        assert order.created_by == "profile-member"
        assert [(line.item_id, line.qty_required, line.qty_done) for line in order.items] == [
            (world.rifle_id, 100, 0),
            (world.shell_id, 20, 0),
        ]

    def test_duplicate_items_are_summed(self, service, session, world):
        order = service.create_individual(
            world.actor(Role.MEMBER),
            world.war_id,
            "",
            [
                LineRequest(world.rifle_id, 10),
                LineRequest(world.rifle_id, 5),
            ],
        )
        assert len(order.items) == 1
        assert order.items[0].qty_required == 15

    def test_empty_title_gets_a_summary(self, service, world):
        order = service.create_individual(
            world.actor(Role.MEMBER),
            world.war_id,
            "   ",
            [
                LineRequest(world.shell_id, 5),
                LineRequest(world.rifle_id, 10),
            ],
        )
        assert order.title == "5x 120mm Shell • 10x Argenti Rifle"

    def test_order_numbers_increase_per_war(self, service, session, order, world):
        second = service.create_individual(
            world.actor(Role.OFFICER), world.war_id, "More", [LineRequest(world.rifle_id, 1)]
        )
        assert second.order_no == order.order_no + 1
        assert session.get(War, world.war_id).next_order_no == second.order_no + 1

    def test_recruit_cannot_order(self, service, world):
        with pytest.raises(AuthorizationError):
            service.create_individual(
                world.actor(Role.RECRUIT),
                world.war_id,
                "x",
                [LineRequest(world.rifle_id, 1)],
            )

    def test_missing_war(self, service, world):
        with pytest.raises(ValidationError, match="war_id is required"):
            service.create_individual(
                world.actor(Role.MEMBER), None, "x", [LineRequest(world.rifle_id, 1)]
            )

    def test_no_usable_lines(self, service, session, world):
        with pytest.raises(ValidationError):
            service.create_individual(
                world.actor(Role.MEMBER), world.war_id, "x", [LineRequest(world.rifle_id, 0)]
            )
        assert session.scalar(select(func.count(Order.id))) == 0

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("war_id", 0.9, "war_id must be an integer"),
            ("war_id", "str", "war_id must be an integer"),
            ("item_id", 0.7, "item_id must be an integer"),
            ("item_id", "str", "item_id must be an integer"),
            ("qty_required", 0.99, "qty_required must be an integer"),
        ],
    )
    def test_non_integral_values_are_rejected(self, service, session, world, field, value, message):
        values = {"war_id": world.war_id, "item_id": world.rifle_id, "qty_required": 2}
        # a fraction on top of a real id, or the real id as text
        values[field] = str(values[field]) if value == "str" else values[field] + value

        with pytest.raises(ValidationError, match=message):
            service.create_individual(
                world.actor(Role.MEMBER),
                values["war_id"],
                "Fractional",
                [LineRequest(values["item_id"], values["qty_required"])],
            )
        assert session.scalar(select(func.count(Order.id))) == 0
        assert session.scalar(select(func.count(OrderItem.id))) == 0

    def test_unknown_item(self, service, world):
        with pytest.raises(ValidationError, match="Unknown item"):
            service.create_individual(
                world.actor(Role.MEMBER), world.war_id, "x", [LineRequest(777, 1)]
            )


class TestProgress:
    def test_over_request_is_clamped(self, service, order, world):
        line = order.items[0]
        updated = service.update_item_progress(world.actor(Role.MEMBER), order.id, line.id, 150)
        assert updated.qty_done == 100

    def test_negative_request_is_clamped_to_zero(self, service, order, world):
        line = order.items[1]
        updated = service.update_item_progress(world.actor(Role.MEMBER), order.id, line.id, -4)
        assert updated.qty_done == 0

    def test_line_of_another_order_is_not_found(self, service, order, world):
        other = service.create_individual(
            world.actor(Role.MEMBER), world.war_id, "Other", [LineRequest(world.tank_id, 2)]
        )
        with pytest.raises(NotFound, match="Order item not found for this order"):
            service.update_item_progress(
                world.actor(Role.MEMBER), order.id, other.items[0].id, 1
            )

    @pytest.mark.parametrize("qty_done", ["lots", "3", 2.5])
    def test_non_integer_quantity(self, service, session, order, world, qty_done):
        with pytest.raises(ValidationError, match="qty_done must be an integer"):
            service.update_item_progress(
                world.actor(Role.MEMBER), order.id, order.items[0].id, qty_done
            )
        assert session.get(OrderItem, order.items[0].id).qty_done == 0

    def test_fractional_line_id_is_rejected(self, service, order, world):
        line_id = order.items[0].id
        with pytest.raises(ValidationError, match="order_item_id must be an integer"):
            service.update_item_progress(world.actor(Role.MEMBER), order.id, line_id + 0.9, 1)

    @settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(requested=st.integers(-500, 500))
    def test_stored_progress_stays_in_range(self, service, session, order, world, requested):
        line = order.items[0]
        service.update_item_progress(world.actor(Role.MEMBER), order.id, line.id, requested)
        stored = session.scalar(select(OrderItem.qty_done).where(OrderItem.id == line.id))
        assert 0 <= stored <= line.qty_required


class TestStatus:
    def test_lanes_move_freely(self, service, order, world):
        member = world.actor(Role.MEMBER)
        assert service.set_status(member, order.id, "ready").status == OrderStatus.READY
        assert service.set_status(member, order.id, "producing").status == OrderStatus.IN_PROGRESS
        assert service.set_status(member, order.id, "open").status == OrderStatus.OPEN

    def test_invalid_status(self, service, order, world):
        with pytest.raises(ValidationError):
            service.set_status(world.actor(Role.MEMBER), order.id, "teleported")

    def test_complete_archives_regardless_of_progress(self, service, session, order, world):
        result = service.set_status(world.actor(Role.MEMBER), order.id, "complete")

        assert result.archived
        assert result.warning is None
        assert session.get(Order, order.id) is None
        archived = session.scalar(
            select(ArchivedOrder).where(ArchivedOrder.original_order_id == order.id)
        )
        assert archived.archived_by == "profile-member"
        assert len(archived.items) == 2

    def test_unknown_order(self, service, world):
        with pytest.raises(NotFound):
            service.set_status(world.actor(Role.MEMBER), 31337, "ready")


class TestBoard:
    def test_orders_are_grouped_by_lane(self, service, order, world):
        member = world.actor(Role.MEMBER)
        producing = service.create_individual(
            member, world.war_id, "Shells", [LineRequest(world.shell_id, 10)]
        )
        service.update_item_progress(member, producing.id, producing.items[0].id, 5)
        service.set_status(member, producing.id, "in_progress")
        cancelled = service.create_individual(
            member, world.war_id, "Never mind", [LineRequest(world.truck_id, 1)]
        )
        service.set_status(member, cancelled.id, "cancelled")

        board = service.board(member, world.war_id)

        assert board.war_id == world.war_id
        assert [card.id for card in board.lanes[Lane.QUEUED]] == [order.id]
        [card] = board.lanes[Lane.PRODUCING]
        assert (card.id, card.done, card.required, card.progress) == (producing.id, 5, 10, 50)
        assert board.lanes[Lane.READY] == []
        assert all(
            card.id != cancelled.id for cards in board.lanes.values() for card in cards
        )
        assert set(board.to_dict()) == {"queued", "producing", "ready", "complete"}
