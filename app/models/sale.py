"""Sale model."""
from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntPK
import enum


class SaleStatus(str, enum.Enum):
    """Delivery lifecycle of a sale."""
    ADELANTADO = 'ADELANTADO'  # deposit taken
    COMPLETO = 'COMPLETO'
    ENTREGADO = 'ENTREGADO'
    CANCELADO = 'CANCELADO'


class PaymentStatus(str, enum.Enum):
    """Payment status."""
    PENDIENTE = 'PENDIENTE'
    PAGADO = 'PAGADO'


class Department(str, enum.Enum):
    """Delivery departments served."""
    LIMA = 'LIMA'
    CALLAO = 'CALLAO'


class Sale(Base):
    """Sale (venta registrada desde el POS)."""

    __tablename__ = 'sale'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # Customer snapshot
    customer_name = Column(String(200), nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_phone = Column(String(50), nullable=True)
    department = Column(Enum(Department, name='department'), nullable=False, default=Department.LIMA)
    district = Column(String(100), nullable=False)
    reference = Column(Text, nullable=True)

    # Money snapshot
    subtotal = Column(Numeric(10, 2), nullable=False)
    per_item_discount = Column(Numeric(10, 2), nullable=False, default=0)
    global_discount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    promotions_applied = Column(JSON, nullable=False, default=list)

    status = Column(Enum(SaleStatus, name='sale_status'), nullable=False, default=SaleStatus.ADELANTADO)
    payment_status = Column(Enum(PaymentStatus, name='payment_status'), nullable=False, default=PaymentStatus.PENDIENTE)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    lines = relationship('SaleLine', back_populates='sale', cascade='all, delete-orphan', order_by='SaleLine.id')

    @property
    def discount_total(self):
        """Promotions plus manual discount."""
        return (self.per_item_discount or 0) + (self.global_discount or 0)

    def to_dict(self, include_lines=True):
        data = {
            'id': self.id,
            'customer': {
                'name': self.customer_name,
                'address': self.customer_address,
                'phone': self.customer_phone,
                'department': self.department.value if self.department else None,
                'district': self.district,
                'reference': self.reference,
            },
            'subtotal': str(self.subtotal),
            'per_item_discount': str(self.per_item_discount),
            'global_discount': str(self.global_discount),
            'discount_total': str(self.discount_total),
            'shipping_cost': str(self.shipping_cost),
            'total': str(self.total),
            'promotions_applied': list(self.promotions_applied or []),
            'status': self.status.value if self.status else None,
            'payment_status': self.payment_status.value if self.payment_status else None,
            'delivery_date': self.delivery_date.isoformat() if self.delivery_date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_lines:
            data['items'] = [line.to_dict() for line in self.lines]
        return data

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, status={self.status.value if self.status else None})>"
