# catalog.py
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from errors import CatalogError
from models import Product, ProductDescription
from schemas import ProductRead, ProductWithIntroRead


logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20

# known misspellings users type for product names
QUERY_FIXUPS = {
    "ipone": "iphone",
}


def normalize_query(query: str) -> str:
    """
    trim + lowercase a search keyword and apply the known spelling fix-ups.

    this is a narrow, explicit list, not fuzzy matching.
    """
    q = (query or "").strip().lower()
    for wrong, right in QUERY_FIXUPS.items():
        q = q.replace(wrong, right)
    return q


class Catalog:
    """
    read-only access to the product catalog.

    every call opens its own session and closes it afterwards, so one
    Catalog can be shared by all requests. database failures are raised as
    CatalogError straight away; there is no retry here.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _run(self, label: str, fn):
        db = self._session_factory()
        try:
            return fn(db)
        except SQLAlchemyError as e:
            logger.exception("catalog query %s failed", label)
            raise CatalogError(f"catalog query {label} failed: {e}") from e
        finally:
            db.close()

    def search_products(self, query: str) -> list[ProductRead]:
        q = normalize_query(query)
        logger.info("search_products query=%r normalized=%r", query, q)

        stmt = (
            select(Product)
            .where(func.lower(Product.name).contains(q, autoescape=True))
            .order_by(Product.price.desc(), Product.id.asc())
            .limit(SEARCH_LIMIT)
        )

        def fetch(db):
            return [ProductRead.model_validate(p) for p in db.scalars(stmt)]

        return self._run("search_products", fetch)

    def get_most_expensive_product(self) -> ProductRead | None:
        stmt = select(Product).order_by(Product.price.desc(), Product.id.asc()).limit(1)

        def fetch(db):
            row = db.scalars(stmt).first()
            return ProductRead.model_validate(row) if row is not None else None

        return self._run("get_most_expensive_product", fetch)

    def get_cheapest_product(self) -> ProductWithIntroRead | None:
        # left join: a product without a description row is still a candidate
        stmt = (
            select(Product.id, Product.name, Product.price, ProductDescription.intro)
            .outerjoin(ProductDescription, ProductDescription.product_id == Product.id)
            .order_by(Product.price.asc(), Product.id.asc())
            .limit(1)
        )

        def fetch(db):
            row = db.execute(stmt).first()
            if row is None:
                return None
            return ProductWithIntroRead.model_validate(dict(row._mapping))

        return self._run("get_cheapest_product", fetch)
