from decimal import Decimal

import pytest
from ordering.cart.cart import CartStatus
from shared.exceptions import CartNotFound, InvalidArgument, InvalidQuantity, LineNotFound, ProductNotFound


class TestCreateCart:
    def test_ids_are_unique_and_increasing(self, workflow):
        first = workflow.create_cart(user_id="U1")
        second = workflow.create_cart()
        assert first.id == 1
        assert second.id == 2
        assert second.user_id is None

    def test_new_cart_is_empty(self, workflow):
        cart = workflow.create_cart(user_id="U1")
        assert cart.status == CartStatus.NEW.value
        assert cart.get_total() == Decimal("0.00")
        assert workflow.get_cart(cart.id).is_empty()


class TestGetCart:
    def test_unknown_cart(self, workflow):
        with pytest.raises(CartNotFound):
            workflow.get_cart(99)

    @pytest.mark.parametrize("cart_id", [0, -1, "1", None, True])
    def test_malformed_id(self, workflow, cart_id):
        with pytest.raises(InvalidArgument):
            workflow.get_cart(cart_id)

    def test_returned_cart_is_a_copy(self, workflow, make_product):
        product = make_product()
        cart = workflow.create_cart()
        returned = workflow.add_to_cart(cart.id, product.id, 1)

        returned.items.clear()

        assert len(workflow.get_cart(cart.id).items) == 1


class TestAddToCart:
    def test_adds_line_at_current_price(self, workflow, make_product):
        product = make_product(price="19.99")
        cart = workflow.create_cart()

        cart = workflow.add_to_cart(cart.id, product.id, 3)

        assert cart.items[0].unit_price == Decimal("19.99")
        assert cart.get_total() == Decimal("59.97")

    def test_does_not_touch_stock(self, workflow, catalog, make_product):
        product = make_product(stock=5)
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 2)
        assert catalog.get(product.id).stock == 5

    def test_more_than_stock_is_accepted(self, workflow, make_product):
        product = make_product(stock=1)
        cart = workflow.create_cart()
        cart = workflow.add_to_cart(cart.id, product.id, 4)
        assert cart.total_item_count() == 4

    def test_price_change_after_add_is_not_applied(self, workflow, catalog, make_product):
        product = make_product(price="10")
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 1)

        product.price = Decimal("25")
        catalog.save(product)

        assert workflow.get_cart(cart.id).get_total() == Decimal("10.00")

    def test_unknown_product(self, workflow):
        cart = workflow.create_cart()
        with pytest.raises(ProductNotFound):
            workflow.add_to_cart(cart.id, 42, 1)
        assert workflow.get_cart(cart.id).is_empty()

    def test_inactive_product(self, workflow, make_product):
        product = make_product(stock=0, active=False)
        cart = workflow.create_cart()
        with pytest.raises(InvalidArgument):
            workflow.add_to_cart(cart.id, product.id, 1)

    def test_unknown_cart(self, workflow, make_product):
        product = make_product()
        with pytest.raises(CartNotFound):
            workflow.add_to_cart(7, product.id, 1)

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity(self, workflow, make_product, quantity):
        product = make_product()
        cart = workflow.create_cart()
        with pytest.raises(InvalidQuantity):
            workflow.add_to_cart(cart.id, product.id, quantity)
        assert workflow.get_cart(cart.id).is_empty()


class TestUpdateAndRemove:
    def test_update_quantity(self, workflow, make_product):
        product = make_product(price="60")
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 1)

        cart = workflow.update_cart_item(cart.id, product.id, 3)

        assert cart.total_item_count() == 3
        assert cart.get_total() == Decimal("180.00")

    def test_update_to_zero_drops_line(self, workflow, make_product):
        product = make_product()
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 2)

        cart = workflow.update_cart_item(cart.id, product.id, 0)

        assert cart.items == []

    def test_update_absent_product(self, workflow, make_product):
        product = make_product()
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 2)

        with pytest.raises(LineNotFound):
            workflow.update_cart_item(cart.id, 999, 1)
        assert len(workflow.get_cart(cart.id).items) == 1

    def test_remove_all_lines_for_product(self, workflow, make_product):
        widget = make_product(name="Widget")
        gizmo = make_product(name="Gizmo")
        cart = workflow.create_cart()
        for product_id in (widget.id, widget.id, gizmo.id, widget.id):
            workflow.add_to_cart(cart.id, product_id, 1)

        cart = workflow.remove_from_cart(cart.id, widget.id)

        assert [line.product_id for line in cart.items] == [gizmo.id]

    def test_remove_absent_product_is_noop(self, workflow, make_product):
        product = make_product()
        cart = workflow.create_cart()
        workflow.add_to_cart(cart.id, product.id, 1)

        cart = workflow.remove_from_cart(cart.id, 999)

        assert len(cart.items) == 1


class TestCartTimestamps:
    def test_every_mutation_stamps_the_engine_clock(self, workflow, clock, make_product):
        widget = make_product()
        gizmo = make_product(name="Gizmo")
        cart = workflow.create_cart()
        assert cart.created_at == clock.now

        clock.advance(minutes=5)
        cart = workflow.add_to_cart(cart.id, widget.id, 1)
        assert cart.updated_at == clock.now
        assert cart.items[0].added_at == clock.now

        workflow.add_to_cart(cart.id, gizmo.id, 1)
        clock.advance(minutes=5)
        cart = workflow.update_cart_item(cart.id, widget.id, 3)
        assert cart.updated_at == clock.now

        clock.advance(minutes=5)
        cart = workflow.remove_from_cart(cart.id, gizmo.id)
        assert cart.updated_at == clock.now
        assert workflow.get_cart(cart.id).updated_at == clock.now
