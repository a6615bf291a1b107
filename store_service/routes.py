import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from shared.session_store import VisitorSession
from store_service.cart import Cart
from store_service.cart_store import CartStore
from store_service.checkout import CheckoutWorkflow
from store_service.dependencies import get_cart, get_cart_store, get_db, get_visitor_session
from store_service.models import Order
from store_service.repository import OrderRepository, ProductRepository
from store_service.schemas import (
    AddToCartRequest,
    CartLineResponse,
    CartResponse,
    CheckoutRejectedResponse,
    OrderForm,
    OrderResponse,
    PagingInfo,
    ProductRequest,
    ProductSchema,
    ProductsPage,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 4

catalog_router = APIRouter(tags=["catalog"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
order_router = APIRouter(tags=["orders"])
admin_router = APIRouter(prefix="/admin/products", tags=["admin"])


def _cart_response(cart: Cart) -> CartResponse:
    return CartResponse(
        lines=[
            CartLineResponse(product=line.product, quantity=line.quantity, line_total=line.line_total)
            for line in cart.lines
        ],
        total_value=cart.compute_total_value(),
        item_count=cart.item_count(),
    )


def _find_product(db: Session, product_id: int) -> ProductSchema:
    product = ProductRepository(db).get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {product_id} not found",
        )
    return ProductSchema.model_validate(product)


# --- Catalog ------------------------------------------------------------------


@catalog_router.get("/products", response_model=ProductsPage)
async def list_products(
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
) -> ProductsPage:
    """One page of the catalog, optionally restricted to a category."""
    products, total = ProductRepository(db).list_products(category, page, PAGE_SIZE)
    return ProductsPage(
        products=[ProductSchema.model_validate(p) for p in products],
        paging_info=PagingInfo(current_page=page, items_per_page=PAGE_SIZE, total_items=total),
        current_category=category,
    )


@catalog_router.get("/products/{product_id}", response_model=ProductSchema)
async def get_product(product_id: int, db: Session = Depends(get_db)) -> ProductSchema:
    return _find_product(db, product_id)


@catalog_router.get("/categories", response_model=List[str])
async def list_categories(db: Session = Depends(get_db)) -> List[str]:
    """Categories for the navigation menu."""
    return ProductRepository(db).categories()


# --- Cart ---------------------------------------------------------------------


@cart_router.get("", response_model=CartResponse)
async def view_cart(cart: Cart = Depends(get_cart)) -> CartResponse:
    """Get the visitor's cart."""
    return _cart_response(cart)


@cart_router.get("/count")
async def cart_item_count(cart: Cart = Depends(get_cart)) -> dict:
    """Total units in the cart, for the cart summary widget."""
    return {"count": cart.item_count()}


@cart_router.post("/lines", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item: AddToCartRequest,
    db: Session = Depends(get_db),
    session: Optional[VisitorSession] = Depends(get_visitor_session),
    cart: Cart = Depends(get_cart),
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    """Add a product to the cart and persist it."""
    product = _find_product(db, item.product_id)
    cart.add_item(product, item.quantity)
    store.persist(session, cart)
    logger.info(f"Added {item.quantity} x product {product.product_id} to cart")
    return _cart_response(cart)


@cart_router.delete("/lines/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: int,
    db: Session = Depends(get_db),
    session: Optional[VisitorSession] = Depends(get_visitor_session),
    cart: Cart = Depends(get_cart),
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    """Remove a product's line from the cart and persist it."""
    product = _find_product(db, product_id)
    cart.remove_line(product)
    store.persist(session, cart)
    return _cart_response(cart)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(
    session: Optional[VisitorSession] = Depends(get_visitor_session),
    cart: Cart = Depends(get_cart),
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    """Empty the cart and persist it."""
    cart.clear()
    store.persist(session, cart)
    return _cart_response(cart)


# --- Checkout and orders ------------------------------------------------------


@order_router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout(
    form: OrderForm,
    response: Response,
    db: Session = Depends(get_db),
    session: Optional[VisitorSession] = Depends(get_visitor_session),
    cart: Cart = Depends(get_cart),
    store: CartStore = Depends(get_cart_store),
) -> dict:
    """Place an order for the cart contents.

    A rejected attempt answers 422 with the errors and the submitted form so
    the visitor can correct it.
    """
    result = CheckoutWorkflow(db, store).checkout(session, cart, form)

    if not result.accepted:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return CheckoutRejectedResponse(errors=result.errors, form=form).model_dump()

    return {"message": "Order placed", "order_id": result.order_id}


@order_router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    gift_wrap: Optional[bool] = None,
    db: Session = Depends(get_db),
) -> List[OrderResponse]:
    """Persisted orders, newest first."""
    query = OrderRepository(db).orders()
    if gift_wrap is not None:
        query = query.filter(Order.gift_wrap == gift_wrap)
    return [OrderResponse.model_validate(order) for order in query.order_by(Order.order_id.desc())]


@order_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: Session = Depends(get_db)) -> OrderResponse:
    order = OrderRepository(db).get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found",
        )
    return OrderResponse.model_validate(order)


# --- Catalog administration ---------------------------------------------------


@admin_router.post("", response_model=ProductSchema, status_code=status.HTTP_201_CREATED)
async def create_product(request: ProductRequest, db: Session = Depends(get_db)) -> ProductSchema:
    product = ProductRepository(db).create_product(
        request.name, request.description, request.price, request.category
    )
    db.commit()
    return ProductSchema.model_validate(product)


@admin_router.put("/{product_id}", response_model=ProductSchema)
async def edit_product(
    product_id: int, request: ProductRequest, db: Session = Depends(get_db)
) -> ProductSchema:
    repo = ProductRepository(db)
    product = repo.get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {product_id} not found",
        )

    for field, value in request.model_dump().items():
        setattr(product, field, value)
    repo.save_product(product)
    db.commit()
    return ProductSchema.model_validate(product)


@admin_router.delete("/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db)) -> dict:
    repo = ProductRepository(db)
    product = repo.get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {product_id} not found",
        )

    name = product.name
    repo.delete_product(product)
    db.commit()
    return {"message": f"{name} deleted"}
