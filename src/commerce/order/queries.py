"""Order reads shared by handlers and the API."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from commerce.errors import NotFoundError, UnauthorizedError
from commerce.order.order import Order


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFoundError(f"Order not found with id of {order_id}") from None


def order_for(order_id, user_id, role=None) -> Order:
    order = load_order(order_id)
    order.assert_accessible_by(user_id, role)
    return order


def orders_of(user_id) -> list[Order]:
    return current_domain.repository_for(Order).for_user(user_id)


def all_orders(role) -> list[Order]:
    if role != "admin":
        raise UnauthorizedError("Only admins can list every order")
    return current_domain.repository_for(Order).newest_first()
