import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from shared.exceptions import PersistenceFailure
from store_service.models import Order, OrderLine, Product

logger = logging.getLogger(__name__)


class ProductRepository:
    """Repository for catalog operations."""

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def products(self) -> Query:
        """All products, as a query callers can filter further."""
        return self.db.query(Product)

    def get_product(self, product_id: int) -> Optional[Product]:
        """Get product by ID."""
        return self.db.get(Product, product_id)

    def list_products(
        self, category: Optional[str] = None, page: int = 1, page_size: int = 4
    ) -> Tuple[List[Product], int]:
        """Return one page of products ordered by id, and the total matching count."""
        query = self.products()
        if category is not None:
            query = query.filter(Product.category == category)

        total = query.count()
        page = max(page, 1)
        products = (
            query.order_by(Product.product_id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return products, total

    def categories(self) -> List[str]:
        """Distinct categories in alphabetical order."""
        rows = self.db.query(Product.category).distinct().order_by(Product.category).all()
        return [row[0] for row in rows]

    def create_product(self, name: str, description: str, price: Decimal, category: str) -> Product:
        """Create a new product."""
        product = Product(name=name, description=description, price=price, category=category)
        self.db.add(product)
        self.db.flush()
        logger.info(f"Created product {product.product_id}: {name}")
        return product

    def save_product(self, product: Product) -> Product:
        """Insert a new product or flush edits to an existing one."""
        if product.product_id is None:
            self.db.add(product)
        self.db.flush()
        logger.info(f"Saved product {product.product_id}: {product.name}")
        return product

    def delete_product(self, product: Product) -> None:
        """Delete a product that no order references."""
        product_id, name = product.product_id, product.name
        try:
            self.db.delete(product)
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete product {product_id}: {e}")
            raise PersistenceFailure(f"Product {product_id} could not be deleted: {e}") from e
        logger.info(f"Deleted product {product_id}: {name}")


class OrderRepository:
    """Repository for order operations.

    Methods flush but never commit; the caller owns the transaction.
    """

    HEADER_FIELDS = ("name", "address", "city", "state", "zip", "country", "gift_wrap")

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def orders(self) -> Query:
        """Persisted orders with their lines and products loaded eagerly.

        The query is not executed until iterated, so callers may keep
        filtering and ordering it.
        """
        return self.db.query(Order).options(
            selectinload(Order.lines).joinedload(OrderLine.product)
        )

    def get_order(self, order_id: int) -> Optional[Order]:
        """Get order by order_id."""
        return self.orders().filter(Order.order_id == order_id).first()

    def save_order(self, order: Order) -> Order:
        """Insert a new order, or update the stored copy of an existing one.

        Updating replaces the stored line collection with copies of the
        given order's lines.
        """
        try:
            if order.order_id is None:
                self._check_products_exist(order)
                self.db.add(order)
                self.db.flush()
                logger.info(
                    f"Created order {order.order_id} with {len(order.lines)} line(s)",
                    extra={"order_id": order.order_id},
                )
                return order

            stored = self.db.get(Order, order.order_id)
            if stored is None:
                raise PersistenceFailure(f"Order {order.order_id} does not exist")

            self._check_products_exist(order)
            if stored is not order:
                for field in self.HEADER_FIELDS:
                    setattr(stored, field, getattr(order, field))
                stored.lines = [
                    OrderLine(product_id=line.product_id, quantity=line.quantity)
                    for line in order.lines
                ]
            self.db.flush()
            logger.info(f"Updated order {stored.order_id}", extra={"order_id": stored.order_id})
            return stored
        except SQLAlchemyError as e:
            logger.error(f"Failed to save order: {e}")
            raise PersistenceFailure(f"Order could not be saved: {e}") from e

    def _check_products_exist(self, order: Order) -> None:
        product_ids = {line.product_id for line in order.lines}
        if not product_ids:
            return
        found = {
            row[0]
            for row in self.db.query(Product.product_id).filter(Product.product_id.in_(product_ids)).all()
        }
        missing = sorted(product_ids - found)
        if missing:
            raise PersistenceFailure(f"Order references unknown product(s): {missing}")
