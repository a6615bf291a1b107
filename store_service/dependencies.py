"""
Request-scoped providers for the store routes.

main.py fills in the module globals during startup; tests replace the
providers through app.dependency_overrides instead.
"""

from typing import Iterator, Optional
from uuid import uuid4

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session, sessionmaker

from shared.database import get_db as open_db
from shared.session_store import RedisSessionStore, VisitorSession
from store_service.cart import Cart
from store_service.cart_store import CartStore

# Will be injected by main.py
session_factory: Optional[sessionmaker] = None
session_store: Optional[RedisSessionStore] = None
session_cookie_name: str = "store_session"

cart_store = CartStore()


def get_db() -> Iterator[Session]:
    """Database session for one request."""
    if session_factory is None:
        raise RuntimeError("Database is not configured")
    yield from open_db(session_factory)


def get_session_store() -> Optional[RedisSessionStore]:
    return session_store


def get_cart_store() -> CartStore:
    return cart_store


def get_visitor_session(
    request: Request,
    response: Response,
    store: Optional[RedisSessionStore] = Depends(get_session_store),
) -> Optional[VisitorSession]:
    """The caller's session, issuing a session cookie on first contact."""
    if store is None:
        return None

    session_id = request.cookies.get(session_cookie_name)
    if not session_id:
        session_id = uuid4().hex
        response.set_cookie(session_cookie_name, session_id, httponly=True, max_age=store.ttl)
    return VisitorSession(store, session_id)


def get_cart(
    session: Optional[VisitorSession] = Depends(get_visitor_session),
    store: CartStore = Depends(get_cart_store),
) -> Cart:
    """The visitor's cart, loaded from the session."""
    return store.resolve(session)
