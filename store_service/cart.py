"""
Shopping cart aggregate.

A Cart is an insertion-ordered list of lines holding at most one line per
product (matched by product_id). It does no I/O; the CartStore moves it in
and out of the visitor's session between requests.

Quantities are stored exactly as given. Zero and negative values are not
rejected here; callers that need positive quantities must check them.
"""

from decimal import Decimal
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict

from store_service.schemas import ProductSchema


class CartLine(BaseModel):
    """One product/quantity pairing."""

    model_config = ConfigDict(frozen=True)

    product: ProductSchema
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class Cart:
    """Lines a visitor intends to buy."""

    def __init__(self, lines: Iterable[CartLine] = ()):
        self._lines: List[CartLine] = []
        for line in lines:
            self.add_item(line.product, line.quantity)

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def _index_of(self, product: ProductSchema) -> int:
        for index, line in enumerate(self._lines):
            if line.product.product_id == product.product_id:
                return index
        return -1

    def add_item(self, product: ProductSchema, quantity: int) -> None:
        """Add quantity of product, merging into the product's existing line."""
        index = self._index_of(product)
        if index < 0:
            self._lines.append(CartLine(product=product, quantity=quantity))
        else:
            line = self._lines[index]
            self._lines[index] = line.model_copy(update={"quantity": line.quantity + quantity})

    def remove_line(self, product: ProductSchema) -> None:
        """Remove the product's line; does nothing if it is not in the cart."""
        index = self._index_of(product)
        if index >= 0:
            del self._lines[index]

    def clear(self) -> None:
        self._lines.clear()

    def compute_total_value(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)
