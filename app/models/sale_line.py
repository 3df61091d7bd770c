"""Sale Line model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntPK


class SaleLine(Base):
    """Sale Line (detalle de venta). Product data is a snapshot, not a FK to the catalog."""

    __tablename__ = 'sale_line'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=False, index=True)

    variant_id = Column(String(64), nullable=False)
    sku = Column(String(64), nullable=True)
    product_name = Column(String(255), nullable=False)
    collection = Column(String(100), nullable=True)
    product_type = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)
    size = Column(String(20), nullable=True)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    line_total = Column(Numeric(10, 2), nullable=False)
    promotion_id = Column(String(36), nullable=True)

    # Relationships
    sale = relationship('Sale', back_populates='lines')

    def to_dict(self):
        return {
            'variant_id': self.variant_id,
            'sku': self.sku,
            'product_name': self.product_name,
            'collection': self.collection,
            'product_type': self.product_type,
            'gender': self.gender,
            'color': self.color,
            'size': self.size,
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'discount': str(self.discount),
            'line_total': str(self.line_total),
            'promotion_id': self.promotion_id,
        }

    def __repr__(self):
        return f"<SaleLine(id={self.id}, variant_id={self.variant_id}, qty={self.quantity})>"
