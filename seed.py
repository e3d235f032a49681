# seed.py
import argparse
import logging
from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from config import load_settings
from database import Base, build_engine, build_session_factory
from models import Product, ProductDescription


logger = logging.getLogger(__name__)


SEED_PRODUCTS = [
    {
        "name": "Apple iPhone 15",
        "price": 5999,
        "intro": "苹果最新一代 iPhone，整体体验均衡，适合追求流畅使用体验与生态联动的用户。",
    },
    {
        "name": "Xiaomi 14",
        "price": 3999,
        "intro": "小米旗舰机型，主打性能与性价比，适合预算更敏感但想要旗舰体验的人。",
    },
    {
        "name": "MacBook Air M3",
        "price": 8999,
        "intro": "轻薄本代表，续航与性能兼顾，适合学习办公与日常创作等场景。",
    },
    {
        "name": "iPad Air",
        "price": 4799,
        "intro": "介于入门与 Pro 之间的平衡款，适合学习、手写记录和轻办公。",
    },
]


def seed_catalog(session_factory: sessionmaker, products=None) -> int:
    """
    upsert demo products and their descriptions.

    products are matched by name (price gets updated), descriptions by
    product id (intro gets updated), so running this twice is harmless.
    returns the number of products written.
    """
    products = SEED_PRODUCTS if products is None else products

    db = session_factory()
    try:
        for item in products:
            product = db.scalars(select(Product).filter_by(name=item["name"])).first()
            if product is None:
                product = Product(name=item["name"], price=item["price"])
                db.add(product)
            else:
                product.price = item["price"]
            # need the id for the description row
            db.flush()

            intro = item.get("intro")
            if intro is None:
                continue

            desc = db.scalars(select(ProductDescription).filter_by(product_id=product.id)).first()
            if desc is None:
                db.add(ProductDescription(product_id=product.id, intro=intro))
            else:
                desc.intro = intro

        db.commit()
        logger.info("seeded %d products", len(products))
        return len(products)

    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def dump_catalog(session_factory: sessionmaker) -> list[dict]:
    db = session_factory()
    try:
        stmt = (
            select(Product.id, Product.name, Product.price, ProductDescription.intro)
            .outerjoin(ProductDescription, ProductDescription.product_id == Product.id)
            .order_by(Product.id.asc())
        )
        return [dict(row._mapping) for row in db.execute(stmt)]
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="seed the demo product catalog")
    parser.add_argument("--database-url", help="override DATABASE_URL / MYSQL_* settings")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings()
    if args.database_url:
        settings = replace(settings, database_url=args.database_url)

    engine = build_engine(settings)
    try:
        Base.metadata.create_all(bind=engine)
        session_factory = build_session_factory(engine)
        seed_catalog(session_factory)

        for row in dump_catalog(session_factory):
            print(f"{row['id']:>4}  {row['name']:<20} {row['price']:>10}  {row['intro'] or ''}")
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
