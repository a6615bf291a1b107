"""
checkout.py - Converts a visitor's cart into a persisted order

CHECKOUT FLOW:
    1. Validate cart and order form together
       - empty cart: one cart-level error (field is None)
       - each blank required header field: one error for that field
       Any error rejects the attempt. Nothing is written anywhere.

    2. Snapshot the cart lines into new OrderLine rows owned by the order
    3. Save the order (flushed inside the open DB transaction)
    4. Persist an empty cart to the visitor's session
    5. Commit, then empty the in-memory cart

FAILURE HANDLING:
    - Failure in steps 3-4: DB transaction rolled back, session untouched
      or still holding the old cart, in-memory cart untouched
    - Failure in step 5: DB transaction rolled back and the previous cart
      written back to the session
    Failures are raised as PersistenceFailure and are not retried here.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.exceptions import PersistenceFailure
from shared.session_store import VisitorSession
from store_service.cart import Cart, CartLine
from store_service.cart_store import CartStore
from store_service.models import Order, OrderLine
from store_service.repository import OrderRepository
from store_service.schemas import CheckoutResult, FieldError, OrderForm

logger = logging.getLogger(__name__)

EMPTY_CART_MESSAGE = "Sorry, your cart is empty!"

REQUIRED_FIELDS: Dict[str, str] = {
    "name": "Please enter a name",
    "address": "Please enter the address",
    "city": "Please enter a city",
    "state": "Please enter a state",
    "country": "Please enter the country",
}


def validate_order(cart: Cart, form: OrderForm) -> List[FieldError]:
    """Collect every reason the cart and form cannot be checked out."""
    errors: List[FieldError] = []

    if cart.is_empty():
        errors.append(FieldError(field=None, message=EMPTY_CART_MESSAGE))

    for field, message in REQUIRED_FIELDS.items():
        value = getattr(form, field)
        if value is None or not value.strip():
            errors.append(FieldError(field=field, message=message))

    return errors


def build_order(form: OrderForm, lines: List[CartLine]) -> Order:
    """Create an unsaved order holding its own copy of the cart lines."""
    order = Order(
        name=form.name,
        address=form.address,
        city=form.city,
        state=form.state,
        zip=form.zip,
        country=form.country,
        gift_wrap=form.gift_wrap,
    )
    order.lines = [
        OrderLine(product_id=line.product.product_id, quantity=line.quantity)
        for line in lines
    ]
    return order


class CheckoutWorkflow:
    """Runs one checkout attempt for one visitor."""

    def __init__(self, db: Session, cart_store: CartStore):
        self.db = db
        self.cart_store = cart_store
        self.repo = OrderRepository(db)

    def checkout(self, session: Optional[VisitorSession], cart: Cart, form: OrderForm) -> CheckoutResult:
        """Validate, then save the order and empty the cart as one unit."""
        session_extra = {"session_id": session.session_id} if session else {}

        errors = validate_order(cart, form)
        if errors:
            logger.info(f"Checkout rejected with {len(errors)} error(s)", extra=session_extra)
            return CheckoutResult(accepted=False, errors=errors)

        order = build_order(form, list(cart.lines))

        try:
            self.repo.save_order(order)
            order_id = order.order_id
            self.cart_store.persist(session, Cart())
        except Exception:
            self.db.rollback()
            logger.error("Checkout failed before commit, order rolled back", extra=session_extra)
            raise

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Checkout commit failed: {e}", extra=session_extra)
            self._restore_cart(session, cart)
            raise PersistenceFailure(f"Order could not be committed: {e}") from e

        cart.clear()
        logger.info(f"Checkout accepted, order {order_id} saved", extra={**session_extra, "order_id": order_id})
        return CheckoutResult(accepted=True, order_id=order_id)

    def _restore_cart(self, session: Optional[VisitorSession], cart: Cart) -> None:
        try:
            self.cart_store.persist(session, cart)
        except PersistenceFailure as e:
            logger.error(
                f"Could not restore cart after failed checkout: {e}",
                exc_info=True,
                extra={"session_id": session.session_id if session else None},
            )
