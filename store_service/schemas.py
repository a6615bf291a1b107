from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ProductSchema(BaseModel):
    """Catalog product as seen by the cart and the API."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    product_id: int
    name: str
    description: str = ""
    price: Decimal
    category: str = ""


class ProductRequest(BaseModel):
    """Request model for creating or editing a catalog product."""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category: str = Field(min_length=1, max_length=50)


class PagingInfo(BaseModel):
    """Paging information for a product listing."""

    current_page: int
    items_per_page: int
    total_items: int

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.items_per_page == 0:
            return 0
        return -(-self.total_items // self.items_per_page)


class ProductsPage(BaseModel):
    """Response model for one page of the catalog."""

    products: List[ProductSchema]
    paging_info: PagingInfo
    current_category: Optional[str] = None


class AddToCartRequest(BaseModel):
    """Request model for adding a product to the cart."""

    product_id: int
    quantity: int = 1


class CartLineResponse(BaseModel):
    """Response model for a cart line."""

    product: ProductSchema
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    """Response model for the visitor's cart."""

    lines: List[CartLineResponse]
    total_value: Decimal
    item_count: int


class OrderForm(BaseModel):
    """Shipping details submitted at checkout.

    Every field is optional here; required fields are checked by the checkout
    workflow so that missing values come back as per-field errors instead of
    a request parsing failure.
    """

    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    gift_wrap: bool = False


class FieldError(BaseModel):
    """A validation error; field is None for cart-level errors."""

    field: Optional[str] = None
    message: str


class CheckoutResult(BaseModel):
    """Outcome of one checkout attempt."""

    accepted: bool
    order_id: Optional[int] = None
    errors: List[FieldError] = Field(default_factory=list)


class CheckoutRejectedResponse(BaseModel):
    """Response model for a rejected checkout."""

    errors: List[FieldError]
    form: OrderForm


class OrderLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product: ProductSchema
    quantity: int


class OrderResponse(BaseModel):
    """Response model for a persisted order."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    name: str
    address: str
    city: str
    state: Optional[str] = None
    zip: Optional[str] = None
    country: str
    gift_wrap: bool
    created_at: Optional[datetime] = None
    lines: List[OrderLineResponse]


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    version: str
