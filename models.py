# models.py
from sqlalchemy import (
    Column,
    Integer,
    Numeric,
    String,
    Text,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    price = Column(Numeric(10, 2), nullable=False)

    description = relationship(
        "ProductDescription",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )


class ProductDescription(Base):
    __tablename__ = "product_descriptions"

    id = Column(Integer, primary_key=True, index=True)
    # column keeps the camelCase name used by the hosted catalog
    product_id = Column(
        "productId",
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    intro = Column(Text, nullable=True)

    product = relationship("Product", back_populates="description")
