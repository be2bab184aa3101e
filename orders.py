"""
Order submission.

Persist the order, then notify, then (for cart checkouts) clear the cart.
There is no atomicity across these steps: if notification fails after the
order was stored, the order stays and nothing is sent.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from pymongo.errors import PyMongoError

from cart import CartConflictError, CartLine, CartStore, order_totals
from database import create_document
from forms import CheckoutForm
from notifications import NotificationError, OrderDetails
from schemas import Order

logger = logging.getLogger(__name__)


class OrderPersistError(Exception):
    pass


class EmptyOrderError(Exception):
    pass


@dataclass
class OrderResult:
    order_id: str
    total_amount: float
    whatsapp_url: str


def submit_order(
    form: CheckoutForm,
    lines: List[CartLine],
    notifier,
    cart_store: Optional[CartStore] = None,
    session_id: Optional[str] = None,
) -> OrderResult:
    """Place an order for ``lines``.

    Passing ``cart_store`` and ``session_id`` marks this as a cart checkout:
    the ordered lines are taken out of the session cart once the notification
    has gone out, leaving anything added in the meantime. Buy-now
    orders pass neither and never touch the cart.
    """
    if not lines:
        raise EmptyOrderError("Cart is empty")

    from_cart = cart_store is not None and session_id is not None
    totals = order_totals(lines)
    order = Order(
        customer_name=form.name,
        customer_phone=form.phone,
        customer_email=form.email or None,
        customer_address=form.flat_address(),
        products=[{"name": line.name, "price": line.price, "quantity": line.quantity} for line in lines],
        subtotal=totals.subtotal,
        shipping=totals.shipping,
        total_amount=totals.total,
        source="cart" if from_cart else "buy_now",
    )

    try:
        order_id = create_document("orders", order.model_dump())
    except PyMongoError as e:
        logger.exception("Error saving order for %s", order.customer_phone)
        raise OrderPersistError("Failed to place order. Please try again.") from e

    details = OrderDetails(
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=form.email,
        customer_address=order.customer_address,
        products=[p.model_dump() for p in order.products],
        total_amount=order.total_amount,
    )
    try:
        url = notifier.send(details)
    except NotificationError:
        logger.exception("Order %s saved but notification failed", order_id)
        raise

    if from_cart:
        try:
            cart_store.remove_ordered(session_id, lines)
        except CartConflictError:
            logger.warning("Order %s placed but cart %s could not be cleared", order_id, session_id)

    logger.info("Order %s placed (%s, total %s)", order_id, order.source, order.total_amount)
    return OrderResult(order_id=order_id, total_amount=order.total_amount, whatsapp_url=url)
