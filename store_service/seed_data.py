import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from store_service.repository import ProductRepository

logger = logging.getLogger(__name__)

# Sample catalog: (name, description, category, price)
SAMPLE_PRODUCTS = [
    ("Kayak", "A boat for one person", "Watersports", Decimal("275")),
    ("Lifejacket", "Protective and fashionable", "Watersports", Decimal("48.95")),
    ("Soccer Ball", "FIFA-approved size and weight", "Soccer", Decimal("19.50")),
    ("Corner Flags", "Give your playing field a professional touch", "Soccer", Decimal("34.95")),
    ("Stadium", "Flat-packed 35,000-seat stadium", "Soccer", Decimal("79500")),
    ("Thinking Cap", "Improve brain efficiency by 75%", "Chess", Decimal("16")),
    ("Unsteady Chair", "Secretly give your opponent a disadvantage", "Chess", Decimal("29.95")),
    ("Human Chess Board", "A fun game for the family", "Chess", Decimal("75")),
    ("Bling-Bling King", "Gold-plated, diamond-studded King", "Chess", Decimal("1200")),
]


def seed_products(db: Session) -> int:
    """Seed an empty catalog with sample products. Returns the number added."""
    repo = ProductRepository(db)

    existing = repo.products().count()
    if existing:
        logger.info(f"Catalog already holds {existing} products, skipping seed")
        return 0

    logger.info("Catalog is empty, seeding products...")
    for name, description, category, price in SAMPLE_PRODUCTS:
        repo.create_product(name, description, price, category)

    db.commit()
    logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} products")
    return len(SAMPLE_PRODUCTS)
