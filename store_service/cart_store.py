"""
Cart Store Module

Binds a Cart to the visitor's session so it survives across stateless HTTP
requests. Handlers resolve the cart at the start of a request and persist it
after every mutation; anything not persisted is lost with the request.

Data Format (session value "Cart"):
    '{"lines": [
        {"product": {"product_id": 1, "name": "Kayak", "description": "...",
                     "price": "275.00", "category": "Watersports"},
         "quantity": 2}
    ]}'

An empty cart is stored as '{"lines": []}' and comes back as an empty cart,
exactly like a session that never stored one.

Example Usage:
    ```python
    store = RedisSessionStore(redis_client)
    session = VisitorSession(store, "9f1c...")
    cart_store = CartStore()

    cart = cart_store.resolve(session)
    cart.add_item(product, 1)
    cart_store.persist(session, cart)
    ```
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ValidationError

from shared.exceptions import DeserializationFailure
from shared.session_store import VisitorSession
from store_service.cart import Cart, CartLine

logger = logging.getLogger(__name__)


class CartPayload(BaseModel):
    """Serialized form of a cart."""

    lines: List[CartLine] = []


class CartStore:
    """Loads and saves a visitor's cart under a fixed session key."""

    CART_KEY = "Cart"

    def resolve(self, session: Optional[VisitorSession]) -> Cart:
        """Return the session's cart, or a new empty cart if none is stored.

        A session of None means no session support is available; the cart
        then lives only for the current request.
        """
        if session is None:
            return Cart()

        cart_json = session.get(self.CART_KEY)
        if cart_json is None:
            return Cart()

        try:
            payload = CartPayload.model_validate_json(cart_json)
        except ValidationError as e:
            logger.error(
                f"Stored cart could not be decoded: {e.error_count()} error(s)",
                extra={"session_id": session.session_id},
            )
            raise DeserializationFailure("Stored cart is corrupt or incompatible", key=self.CART_KEY) from e

        return Cart(payload.lines)

    def persist(self, session: Optional[VisitorSession], cart: Cart) -> None:
        """Write the full cart to the session, replacing what was there."""
        if session is None:
            logger.debug("No session available, cart not persisted")
            return

        payload = CartPayload(lines=list(cart.lines))
        session.set(self.CART_KEY, payload.model_dump_json())
        logger.info(
            f"Persisted cart with {len(cart)} line(s)",
            extra={"session_id": session.session_id},
        )
